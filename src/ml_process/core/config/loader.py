# src/ml_process/core/config/loader.py
"""
Loader de configuração do ml-process.

A configuração efetiva de uma execução é resolvida a partir de:
    - um arquivo de defaults (obrigatório)
    - um arquivo local de overrides (opcional, ignorado se não existir)

Ambos podem ser YAML ou JSON. O resultado é um `dict` puro obtido via
`deep_merge`, do qual o executor e o construtor de plano extraem suas
configurações tipadas (`EngineSettings`, `PlanSettings`).

Chaves reconhecidas:

    engine:
      fail_fast: true
      max_workers: 4
      log_level: INFO
    plan:
      work_dir: .
      scan_work_dir: true
    steps:
      <seção>:
        enabled: true

Limites explícitos:
    - Não valida parâmetros de unidades (responsabilidade das unidades)
    - Não persiste configuração nem hash
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml  # PyYAML

from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidConfigValueError,
    UnsupportedConfigFormatError,
)
from .merge import deep_merge


DEFAULT_MAX_WORKERS = 4


@dataclass(frozen=True)
class EngineSettings:
    """Configuração tipada do executor."""

    fail_fast: bool = True
    max_workers: int = DEFAULT_MAX_WORKERS
    log_level: str = "INFO"


@dataclass(frozen=True)
class PlanSettings:
    """Configuração tipada da construção do plano."""

    work_dir: Optional[str] = None
    scan_work_dir: bool = False


def load_mapping_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Lê um arquivo YAML/JSON cujo conteúdo raiz deve ser um mapa.

    Arquivos vazios são interpretados como `{}`.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for `dict`.
    """
    path = Path(path)
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo não encontrado: {path}")

    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8") as f:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(f)
        elif suffix == ".json":
            data = json.load(f)
        else:
            raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )
    return data


def load_config(
    *,
    defaults_path: str,
    local_path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Resolve a configuração efetiva (defaults + overrides locais).

    O arquivo local, quando informado e existente, tem prioridade sobre os
    defaults. A seção `engine` resultante é validada estruturalmente.

    Args:
        defaults_path (str): Caminho do arquivo de defaults.
        local_path (Optional[str]): Caminho opcional de overrides locais.

    Returns:
        Dict[str, Any]: Configuração final resolvida.
    """
    effective = load_mapping_file(defaults_path)

    if local_path is not None and Path(local_path).exists():
        effective = deep_merge(effective, load_mapping_file(local_path))

    validate_engine_config(effective)
    return effective


def _section(config: Optional[Dict[str, Any]], name: str) -> Dict[str, Any]:
    section = (config or {}).get(name) or {}
    if not isinstance(section, dict):
        raise InvalidConfigValueError(f"Invalid config: '{name}' must be a mapping")
    return section


def validate_engine_config(config: Optional[Dict[str, Any]]) -> EngineSettings:
    """Valida a seção `engine` e retorna sua forma tipada."""
    engine = _section(config, "engine")

    fail_fast = engine.get("fail_fast", True)
    if not isinstance(fail_fast, bool):
        raise InvalidConfigValueError("Invalid config: engine.fail_fast must be a bool")

    max_workers = engine.get("max_workers", DEFAULT_MAX_WORKERS)
    if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
        raise InvalidConfigValueError("Invalid config: engine.max_workers must be a positive int")

    log_level = str(engine.get("log_level", "INFO")).upper()

    return EngineSettings(fail_fast=fail_fast, max_workers=max_workers, log_level=log_level)


def plan_settings(config: Optional[Dict[str, Any]]) -> PlanSettings:
    plan = _section(config, "plan")
    work_dir = plan.get("work_dir")
    return PlanSettings(
        work_dir=str(work_dir) if work_dir is not None else None,
        scan_work_dir=bool(plan.get("scan_work_dir", False)),
    )


def is_step_enabled(config: Optional[Dict[str, Any]], section_name: str) -> bool:
    steps = _section(config, "steps")
    step_cfg = steps.get(section_name) or {}
    if not isinstance(step_cfg, dict):
        return True
    return bool(step_cfg.get("enabled", True))
