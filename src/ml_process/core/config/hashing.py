# src/ml_process/core/config/hashing.py
"""
Hashing canônico de estruturas declarativas (configuração e cenário).

O hash é calculado sobre uma serialização JSON canônica (chaves ordenadas,
separadores compactos, UTF-8) com SHA-256, e é registrado no Manifest para
identificar a configuração e o cenário de cada execução.
"""

import hashlib
import json
from typing import Any, Dict


def compute_config_hash(config: Dict[str, Any]) -> str:
    """
    Gera o hash SHA-256 determinístico de um dicionário.

    Estruturas equivalentes (independente da ordem original das chaves)
    produzem o mesmo hash hexadecimal de 64 caracteres.

    Raises:
        TypeError: Se `config` não for um dicionário.
    """
    if not isinstance(config, dict):
        raise TypeError(
            f"Config para hashing deve ser dict, recebido: {type(config).__name__}"
        )

    canonical = json.dumps(
        config,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
