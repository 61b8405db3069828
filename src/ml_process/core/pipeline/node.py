"""
Step Node: vértice do grafo de dependências.

Um Step Node representa uma unidade de trabalho do experimento: o nome da
unidade plugável a invocar, seus parâmetros opacos e as listas ordenadas de
artefatos de entrada e saída.

As arestas são guardadas como conjuntos de ids (`prerequisites`,
`dependents`) e não como referências diretas: o `DependencyGraph` é o único
dono do ciclo de vida dos nós e resolve ids para nós sob demanda. Isso evita
ciclos de referência entre objetos e torna a serialização trivial.

Invariantes (mantidas pelo DependencyGraph, não por este módulo):
    - `B in A.prerequisites` se e somente se `A in B.dependents`
    - `order`, uma vez atribuída, não muda
    - `status` só é alterado pelo grafo e pelo StatusPropagator

Limites explícitos:
    - Não executa unidades
    - Não valida parâmetros
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Set

from .types import NodeStatus


# Sentinela de ordem topológica ainda não atribuída.
UNSORTED = -1


@dataclass(eq=False)
class StepNode:
    """
    Vértice do grafo: identidade, unidade, artefatos e adjacência por id.

    A igualdade é por identidade de objeto; dois nós com o mesmo id só
    podem coexistir fora de um grafo (o grafo rejeita duplicatas).
    """

    id: str
    unit_name: str
    parameters: Dict[str, str] = field(default_factory=dict)
    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)
    status: NodeStatus = NodeStatus.PENDING
    order: int = UNSORTED
    prerequisites: Set[str] = field(default_factory=set)
    dependents: Set[str] = field(default_factory=set)

    @property
    def is_sorted(self) -> bool:
        return self.order >= 0

    def to_dict(self) -> Dict[str, Any]:
        """
        Representação serializável (checkpoint / handoff entre processos).

        Pré-requisitos e dependentes são listados por id, ordenados, para
        que a mesma estrutura sempre produza o mesmo JSON.
        """
        return {
            "id": self.id,
            "unit_name": self.unit_name,
            "parameters": dict(self.parameters),
            "inputs": list(self.inputs),
            "outputs": list(self.outputs),
            "status": self.status.value,
            "order": self.order,
            "prerequisites": sorted(self.prerequisites),
            "dependents": sorted(self.dependents),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StepNode":
        return cls(
            id=str(data["id"]),
            unit_name=str(data["unit_name"]),
            parameters={str(k): str(v) for k, v in (data.get("parameters") or {}).items()},
            inputs=[str(p) for p in (data.get("inputs") or [])],
            outputs=[str(p) for p in (data.get("outputs") or [])],
            status=NodeStatus(data.get("status", NodeStatus.PENDING.value)),
            order=int(data.get("order", UNSORTED)),
            prerequisites=set(data.get("prerequisites") or []),
            dependents=set(data.get("dependents") or []),
        )

    def __repr__(self) -> str:
        return (
            f"StepNode(id={self.id!r}, unit={self.unit_name!r}, status={self.status.value}, "
            f"order={self.order}, prerequisites={sorted(self.prerequisites)}, "
            f"dependents={sorted(self.dependents)})"
        )
