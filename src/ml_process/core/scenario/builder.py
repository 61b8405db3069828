"""
Construção do plano de execução a partir de um cenário.

Etapas:
    1. Cada seção habilitada vira um template (`create_node(nome, ...)`)
    2. Templates são ligados por casamento de artefatos
    3. Todo nó com entrada curinga é expandido:
         - se alguma entrada tem `***`, expande-se o primeiro slot assim
           (`expand_slot`); filhos que ainda tenham `***` são expandidos
           nas iterações seguintes
         - senão, expande-se `*` em todas as entradas (`expand`)
       As substituições vêm das saídas concretas dos demais nós e,
       opcionalmente, de arquivos sob `work_dir`. Com várias entradas `*`,
       só valem substituições comuns a todas.
       Cada filho é registrado, tem as arestas copiadas desfeitas
       (`loose_dependencies`) e re-resolvidas (`relink_node`); o template é
       retirado do grafo
    4. Status são reconciliados e a ordem topológica é atribuída

Decisões arquiteturais:
    - Saídas de um filho recebem a mesma substituição que as entradas
      (mesmo curinga, exatamente uma ocorrência), para que filhos irmãos
      não produzam o mesmo artefato
    - Um template cuja saída curinga alimenta a entrada curinga de outro é
      expandido antes dele
    - Template sem nenhuma substituição é erro (`ScenarioError`)

Limites explícitos:
    - Não executa unidades
    - Não valida parâmetros de unidades
"""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from ml_process.core.config import is_step_enabled, plan_settings
from ml_process.core.engine.expander import (
    SLOT_WILDCARD,
    expand,
    expand_slot,
    find_replacements,
    has_single_wildcard,
    has_slot_wildcard,
    substitute_single,
    substitute_slot,
)
from ml_process.core.engine.linker import link_by_artifacts, relink_node
from ml_process.core.engine.planner import assign_topological_order
from ml_process.core.engine.propagator import StatusPropagator
from ml_process.core.exceptions import ScenarioError
from ml_process.core.pipeline.context import RunContext
from ml_process.core.pipeline.graph import DependencyGraph
from ml_process.core.pipeline.node import StepNode

from .loader import StepTemplate, parse_scenario


def is_template(node: StepNode) -> bool:
    return any(has_single_wildcard(p) or has_slot_wildcard(p) for p in node.inputs)


def _wildcard_inputs(node: StepNode) -> List[str]:
    return [posixpath.normpath(p) for p in node.inputs if "*" in p]


def _feeds(upstream: StepNode, downstream: StepNode) -> bool:
    patterns = set(_wildcard_inputs(downstream))
    return any(posixpath.normpath(o) in patterns for o in upstream.outputs if "*" in o)


def _next_template(pending: List[StepNode]) -> StepNode:
    for t in pending:
        if not any(_feeds(u, t) for u in pending if u is not t):
            return t
    return pending[0]


def _scan_work_dir(work_dir: Optional[str]) -> List[str]:
    if not work_dir:
        return []
    base = Path(work_dir)
    if not base.is_dir():
        return []
    return sorted(p.relative_to(base).as_posix() for p in base.rglob("*") if p.is_file())


def _candidates(graph: DependencyGraph, template: StepNode, on_disk: Sequence[str]) -> List[str]:
    found = [
        o for n in graph.nodes() if n is not template
        for o in n.outputs if "*" not in o
    ]
    return found + list(on_disk)


def _expand_template(
    graph: DependencyGraph, template: StepNode, on_disk: Sequence[str]
) -> List[StepNode]:
    candidates = _candidates(graph, template, on_disk)

    slots = [i for i, p in enumerate(template.inputs) if has_slot_wildcard(p)]
    if slots:
        index = slots[0]
        replacements = find_replacements(template.inputs[index], candidates, SLOT_WILDCARD)
        children = [expand_slot(template, r, index) for r in replacements]
        for child, r in zip(children, replacements):
            child.outputs = [substitute_slot(o, r) for o in child.outputs]
        return children

    common = None
    for p in template.inputs:
        if has_single_wildcard(p):
            found = set(find_replacements(p, candidates))
            common = found if common is None else common & found
    replacements = sorted(common or [])
    children = [expand(template, r) for r in replacements]
    for child, r in zip(children, replacements):
        child.outputs = [substitute_single(o, r) for o in child.outputs]
    return children


def _log(ctx: Optional[RunContext], message: str, **extra: Any) -> None:
    if ctx is not None:
        ctx.log(step_id="plan", level="INFO", message=message, **extra)


def build_plan(
    scenario: Union[Sequence[StepTemplate], Dict[str, Any]],
    graph: Optional[DependencyGraph] = None,
    *,
    config: Optional[Dict[str, Any]] = None,
    work_dir: Optional[str] = None,
    scan_work_dir: Optional[bool] = None,
    ctx: Optional[RunContext] = None,
) -> DependencyGraph:
    """
    Materializa o cenário em um `DependencyGraph` ordenado e pronto.

    `work_dir` / `scan_work_dir` não informados são lidos da seção `plan`
    da configuração.

    Raises:
        ScenarioError: Cenário inválido ou template sem substituições.
        AmbiguousProducerError: Artefato com mais de um produtor.
        CycleDetectedError: Dependências cíclicas entre seções.
        OrderConflictError: Seção nova produz artefato consumido por um
            passo já ordenado de `graph`.
    """
    templates = list(scenario) if not isinstance(scenario, dict) else parse_scenario(scenario)
    graph = graph if graph is not None else DependencyGraph()

    settings = plan_settings(config)
    if work_dir is None:
        work_dir = settings.work_dir
    if scan_work_dir is None:
        scan_work_dir = settings.scan_work_dir

    for t in templates:
        if not is_step_enabled(config, t.name):
            _log(ctx, "section disabled", section=t.name)
            continue
        node = graph.create_node(t.name, t.unit, t.params, t.inputs, t.outputs)
        _log(ctx, "template created", section=t.name, node=node.id)

    link_by_artifacts(graph)

    on_disk = _scan_work_dir(work_dir) if scan_work_dir else []
    while True:
        pending = [n for n in graph.nodes() if is_template(n)]
        if not pending:
            break

        template = _next_template(pending)
        children = _expand_template(graph, template, on_disk)
        if not children:
            raise ScenarioError(
                f"No replacements found for wildcard step '{template.id}'",
                details={"step_id": template.id, "inputs": list(template.inputs)},
                hint="Verifique se algum passo (ou arquivo em work_dir) produz artefatos que casam com o padrão",
            )

        graph.remove_node(template)
        for child in children:
            graph.add_node(child)
            graph.loose_dependencies(child)
            relink_node(graph, child)
        _log(ctx, "template expanded", node=template.id, children=[c.id for c in children])

    StatusPropagator(graph).reconcile()
    assign_topological_order(graph)
    _log(ctx, "plan built", steps=len(graph))
    return graph
