"""
Run Manifest: registro auditável de uma execução de plano.

O Manifest consolida:
    - metadados da run (run_id, started_at, versão do ml-process)
    - hashes semânticos das entradas (configuração e cenário)
    - estado incremental de cada Step Node executado
    - Event Log ordenado

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - Toda mutação ocorre por chamadas explícitas desta API
    - A ordem do Event Log é a ordem de chamada
    - O Manifest é serializável e reconstruível (round-trip JSON)

Decisões arquiteturais:
    - UTC é o timezone canônico
    - As funções aceitam `RunManifest` ou sua forma `dict`; no segundo caso
      o dict é atualizado in-place
    - Steps não executados (bloqueados por falha, fail-fast) são registrados
      por `step_skipped` com o motivo

Limites explícitos:
    - Não executa unidades
    - Não decide políticas de execução
    - Não migra versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps sem timezone são assumidos como UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class RunManifest:
    """
    Registro de uma execução de plano.

    Campos:
        - run: metadados da execução
        - inputs: hashes de configuração e cenário
        - steps: estado por step id
        - events: Event Log ordenado
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    steps: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "steps": {k: dict(v) for k, v in self.steps.items()},
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            steps={k: dict(v) for k, v in (data.get("steps", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


ManifestLike = Union[RunManifest, Dict[str, Any]]


def create_manifest(
    *,
    run_id: str,
    started_at: datetime,
    ml_process_version: str,
    config_hash: str,
    scenario_hash: Optional[str] = None,
) -> RunManifest:
    """
    Cria o Manifest inicial de uma run, com `steps` e `events` vazios.

    O Event Log só é preenchido por `add_event` e pelas funções `step_*`.
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "started_at": _iso(started_at),
            "ml_process_version": ml_process_version,
        },
        inputs={
            "config_hash": config_hash,
            "scenario_hash": scenario_hash,
        },
    )


def _get_manifest(manifest: ManifestLike) -> Tuple[RunManifest, bool]:
    if isinstance(manifest, RunManifest):
        return manifest, False
    return RunManifest.from_dict(manifest), True


def _sync(manifest: ManifestLike, m: RunManifest, is_dict: bool) -> None:
    if is_dict:
        manifest.clear()  # type: ignore[union-attr]
        manifest.update(m.to_dict())  # type: ignore[union-attr]


def add_event(
    manifest: ManifestLike,
    *,
    event_type: str,
    ts: datetime,
    step_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Acrescenta um evento ao Event Log (ordem de chamada preservada)."""
    m, is_dict = _get_manifest(manifest)
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if step_id is not None:
        ev["step_id"] = step_id
    if payload is not None:
        ev["payload"] = payload
    m.events.append(ev)
    _sync(manifest, m, is_dict)


def step_started(
    manifest: ManifestLike,
    *,
    step_id: str,
    unit_name: str,
    ts: datetime,
    order: int = -1,
) -> None:
    """Marca o Step como `running` e registra `step_started`."""
    m, is_dict = _get_manifest(manifest)
    m.steps.setdefault(step_id, {})
    m.steps[step_id].update(
        {
            "step_id": step_id,
            "unit_name": unit_name,
            "order": order,
            "status": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(m, event_type="step_started", ts=ts, step_id=step_id, payload={"unit_name": unit_name})
    _sync(manifest, m, is_dict)


def _duration_from(step: Dict[str, Any], ts: datetime) -> int:
    started_iso = step.get("started_at")
    if not started_iso:
        return 0
    try:
        started_dt = datetime.fromisoformat(started_iso)
    except ValueError:
        return 0
    return _ms_between(started_dt, ts)


def step_finished(
    manifest: ManifestLike,
    *,
    step_id: str,
    ts: datetime,
    result: Dict[str, Any],
) -> None:
    """
    Registra a conclusão de um Step.

    `result` segue a forma serializada de `StepResult` (status, summary,
    metrics, warnings, artifacts).
    """
    m, is_dict = _get_manifest(manifest)
    s = m.steps.setdefault(step_id, {"step_id": step_id})
    status = result.get("status", "success")
    s.update(
        {
            "status": status,
            "finished_at": _iso(ts),
            "duration_ms": _duration_from(s, ts),
            "summary": result.get("summary"),
            "metrics": result.get("metrics", {}) or {},
            "warnings": result.get("warnings", []) or [],
            "artifacts": result.get("artifacts", {}) or {},
        }
    )
    add_event(
        m,
        event_type="step_finished",
        ts=ts,
        step_id=step_id,
        payload={"status": status, "duration_ms": s["duration_ms"]},
    )
    _sync(manifest, m, is_dict)


def step_failed(
    manifest: ManifestLike,
    *,
    step_id: str,
    ts: datetime,
    error: Dict[str, Any],
) -> None:
    """Marca o Step como `failed`, guardando o ErrorPayload serializado."""
    m, is_dict = _get_manifest(manifest)
    s = m.steps.setdefault(step_id, {"step_id": step_id})
    s.update(
        {
            "status": "failed",
            "finished_at": _iso(ts),
            "duration_ms": _duration_from(s, ts),
            "error": dict(error),
        }
    )
    add_event(
        m,
        event_type="step_failed",
        ts=ts,
        step_id=step_id,
        payload={"type": error.get("type"), "message": error.get("message")},
    )
    _sync(manifest, m, is_dict)


def step_skipped(
    manifest: ManifestLike,
    *,
    step_id: str,
    ts: datetime,
    reason: str,
) -> None:
    """Registra um Step que não foi executado."""
    m, is_dict = _get_manifest(manifest)
    s = m.steps.setdefault(step_id, {"step_id": step_id})
    s.update({"status": "skipped", "reason": reason})
    add_event(m, event_type="step_skipped", ts=ts, step_id=step_id, payload={"reason": reason})
    _sync(manifest, m, is_dict)


def save_manifest(manifest: ManifestLike, path: Union[str, Path]) -> None:
    """Persiste o Manifest em JSON determinístico (chaves ordenadas)."""
    m, _ = _get_manifest(manifest)
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(
        json.dumps(m.to_dict(), ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def load_manifest(path: Union[str, Path]) -> RunManifest:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return RunManifest.from_dict(data)
