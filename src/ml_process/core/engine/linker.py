"""
Resolução de arestas por casamento de artefatos.

Regra de casamento (única fonte de verdade para como arestas são
descobertas):
    - Uma entrada `i` de D casa com uma saída `o` de P (P != D) quando
      `normpath(i) == normpath(o)`
    - ou quando `o` contém exatamente um `*` e `i` é um caminho concreto
      casado por `o`, com `*` valendo um ou mais caracteres
    - Entradas que ainda contêm curingas nunca casam
    - Se mais de um nó produz o mesmo artefato concreto, o plano é ambíguo
      (`AmbiguousProducerError`)

O grafo só expõe `add_dependency`; este módulo decide quais pares ligar.
"""

from __future__ import annotations

import posixpath
from typing import List, Optional, Tuple

from ml_process.core.exceptions import AmbiguousProducerError
from ml_process.core.pipeline.graph import DependencyGraph, NodeRef
from ml_process.core.pipeline.node import StepNode


def artifact_matches(output: str, input_path: str) -> bool:
    """True se a saída `output` produz a entrada `input_path`."""
    i = posixpath.normpath(input_path)
    if "*" in i:
        return False

    o = posixpath.normpath(output)
    stars = o.count("*")
    if stars == 0:
        return o == i
    if stars != 1:
        return False

    head, tail = o.split("*", 1)
    return (
        len(i) > len(head) + len(tail)
        and i.startswith(head)
        and i.endswith(tail)
    )


def producers_of(
    graph: DependencyGraph, artifact: str, *, exclude: Optional[StepNode] = None
) -> List[StepNode]:
    """Nós (exceto `exclude`) com alguma saída que casa com `artifact`."""
    return [
        n for n in graph.nodes()
        if n is not exclude and any(artifact_matches(o, artifact) for o in n.outputs)
    ]


def _single_producer(
    graph: DependencyGraph, consumer: StepNode, artifact: str
) -> Optional[StepNode]:
    found = producers_of(graph, artifact, exclude=consumer)
    if len(found) > 1:
        ids = sorted(n.id for n in found)
        raise AmbiguousProducerError(
            f"Artifact '{artifact}' is produced by more than one step: {ids}",
            details={"artifact": artifact, "consumer": consumer.id, "producers": ids},
            hint="Renomeie as saídas para que cada artefato tenha um único produtor",
        )
    return found[0] if found else None


def _link_inputs(graph: DependencyGraph, node: StepNode) -> List[Tuple[str, str]]:
    added: List[Tuple[str, str]] = []
    for artifact in node.inputs:
        producer = _single_producer(graph, node, artifact)
        if producer is not None and graph.add_dependency(node, producer):
            added.append((producer.id, node.id))
    return added


def link_by_artifacts(graph: DependencyGraph) -> List[Tuple[str, str]]:
    """
    Liga todo consumidor ao produtor de cada uma de suas entradas.

    Returns:
        List[Tuple[str, str]]: Arestas `(pré-requisito, dependente)` novas.

    Raises:
        AmbiguousProducerError: Se alguma entrada tiver mais de um produtor.
    """
    with graph.lock:
        added: List[Tuple[str, str]] = []
        for node in graph.nodes():
            added.extend(_link_inputs(graph, node))
        return added


def relink_node(graph: DependencyGraph, node: NodeRef) -> List[Tuple[str, str]]:
    """
    Re-resolve as arestas de um único nó nas duas direções.

    Usado após expansão: o nó concreto liga-se aos produtores de suas
    entradas e aos consumidores de suas saídas.
    """
    with graph.lock:
        n = graph.resolve(node)
        added = _link_inputs(graph, n)

        for consumer in graph.nodes():
            if consumer is n:
                continue
            for artifact in consumer.inputs:
                if not any(artifact_matches(o, artifact) for o in n.outputs):
                    continue
                _single_producer(graph, consumer, artifact)
                if graph.add_dependency(consumer, n):
                    added.append((n.id, consumer.id))
        return added
