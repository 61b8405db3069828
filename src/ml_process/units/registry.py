"""
Registro explícito de unidades plugáveis.

Mapeia nomes de unidade (`StepNode.unit_name`) para fábricas com assinatura
`(node_id, parameters, inputs, outputs) -> Unit`. O registro é populado na
inicialização; não há carregamento dinâmico por nome de classe.

Invariantes:
    - Cada nome é registrado uma única vez
    - A ordem de registro é preservada em `names()`
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Sequence

from ml_process.core.exceptions import UnknownUnitError
from ml_process.core.pipeline.node import StepNode

from .base import Unit


UnitFactory = Callable[[str, Mapping[str, str], Sequence[str], Sequence[str]], Unit]


class DuplicateUnitError(ValueError):
    """Tentativa de registrar duas fábricas com o mesmo nome."""


@dataclass
class UnitRegistry:
    _factories: Dict[str, UnitFactory] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def register(self, name: str, factory: UnitFactory) -> None:
        if not isinstance(name, str) or not name.strip():
            raise ValueError("unit name must be a non-empty string")
        if name in self._factories:
            raise DuplicateUnitError(f"Duplicate unit name: {name}")
        self._factories[name] = factory
        self._order.append(name)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def names(self) -> List[str]:
        return list(self._order)

    def get(self, name: str) -> UnitFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise UnknownUnitError(
                f"Unknown unit: {name}",
                details={"unit": name, "available": self.names()},
            ) from None

    def create(self, node: StepNode) -> Unit:
        """Instancia a unidade de `node` (a validação roda no construtor)."""
        factory = self.get(node.unit_name)
        return factory(node.id, dict(node.parameters), list(node.inputs), list(node.outputs))

    @classmethod
    def default(cls) -> "UnitRegistry":
        """Registro com todas as unidades embutidas."""
        from ml_process.units.classify.classifier import Classifier
        from ml_process.units.features.rel_pos import RelPos
        from ml_process.units.filter.attribute_filter import AttributeFilter
        from ml_process.units.merge.data_merger import DataMerger
        from ml_process.units.merge.file_merger import FileMerger

        registry = cls()
        for unit_cls in (DataMerger, FileMerger, AttributeFilter, Classifier, RelPos):
            registry.register(unit_cls.unit_name, unit_cls)
        return registry
