"""
Camada de engine do ml-process.

- propagator: máquina de estados de prontidão (`StatusPropagator`)
- planner: ordem topológica por passadas e estágios
- expander: expansão de templates com curingas `*` / `***`
- linker: descoberta de arestas por casamento de artefatos
- engine: executor concorrente (`Engine`, `RunResult`)
"""

from .engine import Engine, RunResult
from .expander import SINGLE_WILDCARD, SLOT_WILDCARD, expand, expand_slot, find_replacements
from .linker import artifact_matches, link_by_artifacts, producers_of, relink_node
from .planner import assign_topological_order, plan_stages, runnable_nodes
from .propagator import StatusPropagator

__all__ = [
    "Engine",
    "RunResult",
    "SINGLE_WILDCARD",
    "SLOT_WILDCARD",
    "StatusPropagator",
    "artifact_matches",
    "assign_topological_order",
    "expand",
    "expand_slot",
    "find_replacements",
    "link_by_artifacts",
    "plan_stages",
    "producers_of",
    "relink_node",
    "runnable_nodes",
]
