"""
Checkpoint do grafo de dependências.

Persiste a forma serializável de cada Step Node (id, unidade, parâmetros,
artefatos, status, ordem e listas de ids de pré-requisitos/dependentes),
permitindo retomar uma run ou entregar o plano a outro processo.

Formato (JSON, chaves ordenadas):

    {
      "format": "ml-process/graph",
      "version": 1,
      "last_id": 12,
      "nodes": [ {...}, ... ]
    }

`last_id` preserva o contador de ids, de modo que nós criados após a
restauração não colidem com os existentes.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

from ml_process.core.exceptions import ScenarioError
from ml_process.core.pipeline.graph import DependencyGraph


CHECKPOINT_FORMAT = "ml-process/graph"
CHECKPOINT_VERSION = 1


def graph_to_dict(graph: DependencyGraph) -> Dict[str, Any]:
    with graph.lock:
        data = graph.to_dict()
    return {"format": CHECKPOINT_FORMAT, "version": CHECKPOINT_VERSION, **data}


def graph_from_dict(data: Dict[str, Any]) -> DependencyGraph:
    """
    Reconstrói o grafo de um checkpoint.

    Raises:
        ScenarioError: Se o formato ou a versão não forem reconhecidos.
        UnknownStepError: Se alguma aresta for assimétrica ou apontar para
            nó inexistente.
    """
    if data.get("format") != CHECKPOINT_FORMAT:
        raise ScenarioError(
            "Not a graph checkpoint",
            details={"format": data.get("format")},
        )
    if data.get("version") != CHECKPOINT_VERSION:
        raise ScenarioError(
            f"Unsupported checkpoint version: {data.get('version')}",
            details={"version": data.get("version"), "supported": [CHECKPOINT_VERSION]},
        )
    return DependencyGraph.from_dict(data)


def save_checkpoint(graph: DependencyGraph, path: Union[str, Path]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(
        json.dumps(graph_to_dict(graph), ensure_ascii=False, indent=2, sort_keys=True),
        encoding="utf-8",
    )


def load_checkpoint(path: Union[str, Path]) -> DependencyGraph:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return graph_from_dict(data)
