"""
Scheduler topológico do grafo de Step Nodes.

Este módulo atribui `order` a cada nó de um `DependencyGraph` e agrupa os
nós em estágios que podem executar em paralelo.

Algoritmo (por passadas):
    - Cada passada varre todos os nós ainda sem ordem
    - Um nó é atribuível se todos os seus pré-requisitos já têm ordem
    - Todos os nós atribuíveis de uma mesma passada recebem o MESMO valor,
      de modo que `order` é também o índice do estágio
    - Uma passada que não atribui nada com nós pendentes indica ciclo

Decisões arquiteturais:
    - Nós já ordenados (ex.: checkpoint restaurado) não são reordenados; a
      numeração nova começa após a maior ordem existente
    - Como ordens não mudam, um nó já ordenado que ganhou pré-requisito sem
      ordem (ou com ordem >= a sua) é conflito (`OrderConflictError`),
      verificado antes de qualquer atribuição
    - Ciclo é erro fatal (`CycleDetectedError`) com a lista de nós presos;
      nenhum nó preso recebe ordem
    - Empates dentro de um estágio são resolvidos por `id` (determinismo)

Invariantes:
    - Para toda aresta P → D: `order(P) < order(D)`
    - A mesma estrutura de grafo produz sempre a mesma ordem

Limites explícitos:
    - `order` é consultivo; prontidão real é dada por `status`
    - Não executa unidades nem altera status
"""

from __future__ import annotations

from typing import Dict, List

from ml_process.core.exceptions import CycleDetectedError, OrderConflictError
from ml_process.core.pipeline.graph import DependencyGraph
from ml_process.core.pipeline.node import StepNode
from ml_process.core.pipeline.types import NodeStatus


def _check_existing_orders(graph: DependencyGraph) -> None:
    conflicts = sorted(
        [pid, n.id]
        for n in graph.nodes() if n.is_sorted
        for pid in n.prerequisites
        if not graph.get(pid).is_sorted or graph.get(pid).order >= n.order
    )
    if conflicts:
        raise OrderConflictError(
            f"{len(conflicts)} dependencies point into already ordered steps",
            details={"conflicts": conflicts},
            hint="Adicione pré-requisitos antes de ordenar o grafo ou monte um grafo novo",
        )


def assign_topological_order(graph: DependencyGraph) -> List[StepNode]:
    """
    Atribui `order` a todos os nós sem ordem.

    Returns:
        List[StepNode]: Nós que receberam ordem nesta chamada, na ordem de
        atribuição (por estágio, depois por id).

    Raises:
        CycleDetectedError: Se uma passada não progredir. `details["stuck"]`
        lista os ids que permaneceram sem ordem.
        OrderConflictError: Se um nó já ordenado tiver pré-requisito sem
            ordem ou com ordem maior ou igual à sua. Nada é atribuído.
    """
    with graph.lock:
        _check_existing_orders(graph)
        nodes = graph.nodes()
        existing = [n.order for n in nodes if n.is_sorted]
        next_order = (max(existing) + 1) if existing else 0

        unsorted = sorted((n for n in nodes if not n.is_sorted), key=lambda n: n.id)
        assigned: List[StepNode] = []

        while unsorted:
            ready = [
                n for n in unsorted
                if all(graph.get(pid).is_sorted for pid in n.prerequisites)
            ]
            if not ready:
                stuck = [n.id for n in unsorted]
                raise CycleDetectedError(
                    f"Cycle detected in step dependency graph ({len(stuck)} steps left unordered)",
                    details={"stuck": stuck},
                    hint="Verifique se algum artefato é consumido antes de ser produzido",
                )

            # Atribuição só depois da varredura: nós da mesma passada são independentes.
            for n in ready:
                n.order = next_order
            assigned.extend(ready)

            ready_ids = {n.id for n in ready}
            unsorted = [n for n in unsorted if n.id not in ready_ids]
            next_order += 1

        return assigned


def plan_stages(graph: DependencyGraph) -> List[List[StepNode]]:
    """
    Agrupa os nós por `order` (estágios paralelizáveis).

    Ordena (e valida) o grafo antes. Estágios vazios (ex.: lacunas
    deixadas por nós removidos após a ordenação) não aparecem.
    """
    with graph.lock:
        assign_topological_order(graph)

        by_order: Dict[int, List[StepNode]] = {}
        for n in graph.nodes():
            by_order.setdefault(n.order, []).append(n)

        return [
            sorted(by_order[o], key=lambda n: n.id)
            for o in sorted(by_order)
        ]


def runnable_nodes(graph: DependencyGraph) -> List[StepNode]:
    """Nós PENDING, priorizados por `(order, id)`."""
    with graph.lock:
        return sorted(
            (n for n in graph.nodes() if n.status is NodeStatus.PENDING),
            key=lambda n: (n.order, n.id),
        )
