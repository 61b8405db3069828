"""
Expansão de templates (Pattern Expander).

Um template é um Step Node cujas entradas contêm um curinga. Expandir o
template para uma substituição produz um nó concreto novo, com id
`"<id do template>#<substituição>"`.

Gramáticas de curinga:
    - `*`   : uma única ocorrência em um caminho; `expand` substitui em
              toda entrada que tenha exatamente um `*`
    - `***` : substituído apenas no slot de entrada escolhido por índice
              (`expand_slot`); os demais caminhos não são tocados

Caminhos com zero ou mais de uma ocorrência do curinga passam inalterados,
sem erro.

Decisões arquiteturais:
    - O template nunca é mutado
    - Parâmetros e listas de artefatos são copiados; pré-requisitos e
      dependentes são cópias rasas dos conjuntos de ids do template
    - O nó produzido não é registrado em grafo: o chamador decide quando
      adicioná-lo e como re-resolver suas arestas

Limites explícitos:
    - Saídas não são substituídas aqui (ver scenario.builder)
    - Não descobre substituições sozinho; `find_replacements` é um helper
      separado sobre uma lista de candidatos
"""

from __future__ import annotations

import copy
import posixpath
from typing import Iterable, List

from ml_process.core.exceptions import InvalidExpansionTargetError
from ml_process.core.pipeline.node import UNSORTED, StepNode
from ml_process.core.pipeline.types import NodeStatus


SINGLE_WILDCARD = "*"
SLOT_WILDCARD = "***"


def _clone(template: StepNode, replacement: str) -> StepNode:
    if not isinstance(replacement, str) or replacement == "":
        raise ValueError("replacement must be a non-empty string")

    status = template.status
    if status.is_terminal:
        status = NodeStatus.WAITING if template.prerequisites else NodeStatus.PENDING

    return StepNode(
        id=f"{template.id}#{replacement}",
        unit_name=template.unit_name,
        parameters=copy.deepcopy(template.parameters),
        inputs=copy.deepcopy(template.inputs),
        outputs=copy.deepcopy(template.outputs),
        status=status,
        order=UNSORTED,
        prerequisites=set(template.prerequisites),
        dependents=set(template.dependents),
    )


def _occurs_once(path: str, token: str) -> bool:
    # Ocorrências sobrepostas contam: "****" tem `***` duas vezes.
    first = path.find(token)
    return first != -1 and first == path.rfind(token)


def substitute_single(path: str, replacement: str) -> str:
    """Substitui o `*` de `path` se houver exatamente um; senão devolve `path`."""
    if not _occurs_once(path, SINGLE_WILDCARD):
        return path
    return path.replace(SINGLE_WILDCARD, replacement, 1)


def substitute_slot(path: str, replacement: str) -> str:
    """Substitui o `***` de `path` se houver exatamente um; senão devolve `path`."""
    if not _occurs_once(path, SLOT_WILDCARD):
        return path
    return path.replace(SLOT_WILDCARD, replacement, 1)


def expand(template: StepNode, replacement: str) -> StepNode:
    """
    Clona `template` substituindo `*` nas entradas.

    Example:
        entrada `"data/*.arff"` + `"fold1"` → `"data/fold1.arff"`,
        id `"<template.id>#fold1"`.
    """
    child = _clone(template, replacement)
    child.inputs = [substitute_single(p, replacement) for p in child.inputs]
    return child


def expand_slot(template: StepNode, replacement: str, input_index: int) -> StepNode:
    """
    Clona `template` substituindo `***` apenas em `inputs[input_index]`.

    Raises:
        InvalidExpansionTargetError: Se `input_index` estiver fora do intervalo.
    """
    if (
        isinstance(input_index, bool)
        or not isinstance(input_index, int)
        or not 0 <= input_index < len(template.inputs)
    ):
        raise InvalidExpansionTargetError(
            f"Input index {input_index!r} out of range for step '{template.id}'",
            details={
                "step_id": template.id,
                "input_index": input_index,
                "num_inputs": len(template.inputs),
            },
        )

    child = _clone(template, replacement)
    child.inputs[input_index] = substitute_slot(child.inputs[input_index], replacement)
    return child


def has_single_wildcard(path: str) -> bool:
    return _occurs_once(path, SINGLE_WILDCARD)


def has_slot_wildcard(path: str) -> bool:
    return _occurs_once(path, SLOT_WILDCARD) and path.count(SINGLE_WILDCARD) == 3


def find_replacements(pattern: str, candidates: Iterable[str], token: str = SINGLE_WILDCARD) -> List[str]:
    """
    Substituições que transformam `pattern` em algum dos `candidates`.

    `pattern` deve conter `token` exatamente uma vez; caso contrário não há
    substituição possível. A substituição nunca é vazia. Caminhos são
    comparados após `posixpath.normpath`.

    Returns:
        List[str]: Substituições distintas, ordenadas.
    """
    if not _occurs_once(pattern, token) or pattern.count("*") != len(token):
        return []

    head, tail = posixpath.normpath(pattern).split(token, 1)
    found = set()
    for cand in candidates:
        c = posixpath.normpath(cand)
        if "*" in c:
            continue
        if len(c) <= len(head) + len(tail):
            continue
        if c.startswith(head) and c.endswith(tail):
            found.add(c[len(head):len(c) - len(tail)])
    return sorted(found)
