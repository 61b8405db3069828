"""
Unidades plugáveis do ml-process.

- base: contrato (`Unit`) e classe base com parâmetros tipados
- registry: `UnitRegistry` (nome → fábrica)
- io: leitura/escrita de artefatos CSV
- merge/, filter/, classify/, features/: unidades embutidas
"""

from .base import BaseUnit, Unit
from .registry import DuplicateUnitError, UnitRegistry

__all__ = ["BaseUnit", "DuplicateUnitError", "Unit", "UnitRegistry"]
