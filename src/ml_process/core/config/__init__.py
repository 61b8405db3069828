# src/ml_process/core/config/__init__.py
"""
Camada de configuração do ml-process.

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução de configuração final via deep-merge determinístico
    - Validação estrutural das seções reconhecidas (`engine`, `plan`, `steps`)
    - Geração de hash canônico para o Manifest

Invariantes:
    - A configuração final é um dicionário puro (dict)
    - A mesma entrada sempre produz a mesma configuração final
    - Conflitos estruturais são tratados como erro
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    InvalidConfigValueError,
    UnsupportedConfigFormatError,
)
from .hashing import compute_config_hash
from .loader import (
    EngineSettings,
    PlanSettings,
    is_step_enabled,
    load_config,
    load_mapping_file,
    plan_settings,
    validate_engine_config,
)
from .merge import deep_merge

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "DefaultsNotFoundError",
    "InvalidConfigRootTypeError",
    "InvalidConfigValueError",
    "UnsupportedConfigFormatError",
    "EngineSettings",
    "PlanSettings",
    "compute_config_hash",
    "deep_merge",
    "is_step_enabled",
    "load_config",
    "load_mapping_file",
    "plan_settings",
    "validate_engine_config",
]
