"""
Contexto de execução compartilhado de uma run.

Este módulo define o `RunContext`, passado ao executor e a cada unidade
plugável em `perform(ctx)`. Ele concentra a identidade da execução, a
configuração resolvida, o diretório de trabalho e o registro estruturado
de eventos (o mecanismo de logging do ml-process).

Princípios fundamentais:
    - Isolamento por execução (cada run possui seu próprio contexto)
    - Logs são eventos estruturados, não texto livre
    - Warnings não fatais são agrupados por step id

Invariantes:
    - Todo evento inclui `run_id`, `step_id`, `level`, `message` e `timestamp`
    - Eventos preservam a ordem de chamada
    - É seguro registrar eventos a partir de threads de workers

Limites explícitos:
    - Não executa Steps
    - Não persiste eventos (ver traceability.manifest)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


@dataclass
class RunContext:
    """
    Contexto de execução compartilhado de uma run.

    Campos:
        - run_id: identificador da execução
        - created_at: timestamp (UTC) de criação
        - config: configuração resolvida
        - work_dir: base para caminhos relativos de artefatos
        - meta: metadados livres (ex.: origem do cenário)

    `log_level` (vindo de `engine.log_level`) filtra eventos abaixo do nível
    configurado; níveis desconhecidos nunca são filtrados.
    """
    run_id: str
    created_at: datetime
    config: Dict[str, Any]
    work_dir: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def log_level(self) -> str:
        engine = (self.config or {}).get("engine") or {}
        return str(engine.get("log_level", "INFO")).upper()

    def resolve_path(self, artifact: str) -> Path:
        """Caminho absoluto de um artefato relativo ao `work_dir`."""
        p = Path(artifact)
        if p.is_absolute() or not self.work_dir:
            return p
        return Path(self.work_dir) / p

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, step_id: str, level: str, message: str, **extra: Any) -> None:
        threshold = _LEVELS.get(self.log_level, 0)
        if _LEVELS.get(level.upper(), threshold) < threshold:
            return

        event = {
            "run_id": self.run_id,
            "step_id": step_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        with self._lock:
            self.events.append(event)

    def add_warning(self, *, step_id: str, message: str) -> None:
        with self._lock:
            self.warnings.setdefault(step_id, []).append(message)

    def warnings_for(self, step_id: str) -> List[str]:
        with self._lock:
            return list(self.warnings.get(step_id, []))
