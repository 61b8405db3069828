"""
# Pipeline Core: ml-process

Este pacote define as **estruturas fundamentais** de um plano de experimento.

Um plano é modelado como um **DAG de Step Nodes**, onde:
- cada nó declara a unidade plugável, parâmetros e artefatos
- as arestas ligam quem produz um artefato a quem o consome
- o grafo é o único dono dos nós (arena indexada por id)

## Componentes

- **types**: `NodeStatus`, `ResultStatus`, `StepResult`
- **node**: `StepNode` e a sentinela `UNSORTED`
- **graph**: `DependencyGraph` e `IdGenerator`
- **context**: `RunContext` (configuração, work_dir, eventos e warnings)

## Invariantes

- Ids são únicos por grafo
- Arestas são simétricas
- Estado compartilhado é sempre explícito e rastreável
"""

from .context import RunContext
from .graph import DependencyGraph, IdGenerator
from .node import UNSORTED, StepNode
from .types import NodeStatus, ResultStatus, StepResult

__all__ = [
    "DependencyGraph",
    "IdGenerator",
    "NodeStatus",
    "ResultStatus",
    "RunContext",
    "StepNode",
    "StepResult",
    "UNSORTED",
]
