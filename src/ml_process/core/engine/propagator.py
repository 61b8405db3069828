"""
Propagação de status (máquina de estados por nó).

Estados e transições:

    WAITING ⇄ PENDING → DONE
                      → FAILED

    - PENDING: nenhum pré-requisito pendente; elegível para execução
    - WAITING: ao menos um pré-requisito ainda não está DONE
    - DONE / FAILED: terminais, nunca regridem

`mark_done` marca o nó como DONE e, para cada dependente em WAITING,
reavalia *todos* os seus pré-requisitos; se todos estiverem DONE, o
dependente passa a PENDING. Dependentes que já estão PENDING, DONE ou
FAILED não são tocados, o que torna chamadas repetidas idempotentes.

`mark_failed` não propaga nada: dependentes de um nó com falha permanecem
WAITING, e cabe ao executor decidir entre interromper a run ou seguir com
os ramos independentes.

Concorrência:
    Todas as operações seguram `graph.lock`. O executor pode chamar
    `mark_done` a partir de qualquer thread; as reavaliações de dependentes
    ficam serializadas.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from ml_process.core.pipeline.graph import DependencyGraph, NodeRef
from ml_process.core.pipeline.node import StepNode
from ml_process.core.pipeline.types import NodeStatus


class StatusPropagator:
    """Aplica as transições de status de um `DependencyGraph`."""

    def __init__(self, graph: DependencyGraph):
        self.graph = graph

    def _all_prerequisites_done(self, node: StepNode) -> bool:
        for pid in node.prerequisites:
            if self.graph.get(pid).status is not NodeStatus.DONE:
                return False
        return True

    def mark_done(self, node: NodeRef) -> List[StepNode]:
        """
        Marca o nó como DONE e promove dependentes desbloqueados.

        Returns:
            List[StepNode]: Dependentes que passaram de WAITING para PENDING
            nesta chamada (ordenados por id).

        Raises:
            ValueError: Se o nó já estiver FAILED.
        """
        with self.graph.lock:
            n = self.graph.resolve(node)
            if n.status is NodeStatus.FAILED:
                raise ValueError(f"Cannot mark failed step as done: {n.id}")
            n.status = NodeStatus.DONE

            promoted: List[StepNode] = []
            for dependent in self.graph.dependents_of(n):
                if dependent.status is not NodeStatus.WAITING:
                    continue
                if self._all_prerequisites_done(dependent):
                    dependent.status = NodeStatus.PENDING
                    promoted.append(dependent)
            return promoted

    def mark_failed(self, node: NodeRef) -> List[StepNode]:
        """
        Marca o nó como FAILED.

        Returns:
            List[StepNode]: Todos os nós que ficam bloqueados em definitivo
            (descendentes transitivos), ordenados por id.
        """
        with self.graph.lock:
            n = self.graph.resolve(node)
            if n.status is NodeStatus.DONE:
                raise ValueError(f"Cannot mark done step as failed: {n.id}")
            n.status = NodeStatus.FAILED
            return self.blocked_by(n)

    def blocked_by(self, node: NodeRef) -> List[StepNode]:
        """Descendentes transitivos de `node` que ainda não concluíram."""
        with self.graph.lock:
            start = self.graph.resolve(node)
            seen = set()
            stack = list(start.dependents)
            while stack:
                nid = stack.pop()
                if nid in seen:
                    continue
                seen.add(nid)
                stack.extend(self.graph.get(nid).dependents)
            return [
                self.graph.get(i)
                for i in sorted(seen)
                if not self.graph.get(i).status.is_terminal
            ]

    def reconcile(self, nodes: Optional[Iterable[NodeRef]] = None) -> List[StepNode]:
        """
        Promove a PENDING todo nó WAITING cujos pré-requisitos estão DONE.

        Usado após mudanças estruturais (remoção de templates, restauração
        de checkpoint), onde nenhum `mark_done` dispararia a promoção. Nós sem
        pré-requisitos são promovidos trivialmente.
        """
        with self.graph.lock:
            targets = (
                self.graph.nodes() if nodes is None else [self.graph.resolve(n) for n in nodes]
            )
            promoted: List[StepNode] = []
            for n in targets:
                if n.status is NodeStatus.WAITING and self._all_prerequisites_done(n):
                    n.status = NodeStatus.PENDING
                    promoted.append(n)
            return promoted
