# tests/core/engine/test_executor_happy_path.py
"""
Testes do fluxo feliz do Engine.

Este módulo valida a execução de um plano sem falhas:
- todas as unidades executam exatamente uma vez
- pré-requisitos executam antes de seus dependentes
- o RunResult reporta SUCCESS para cada nó, com a ordem atribuída
- nós já concluídos não são reexecutados
- eventos estruturados de início e fim da run são emitidos

Decisões arquiteturais:
    - O Engine consome o grafo planejado; não constrói o plano
    - Unidades são obtidas do UnitRegistry por `unit_name`

Invariantes:
    - Nenhuma unidade é executada antes de seus pré-requisitos estarem DONE
    - Todo nó do grafo aparece no RunResult

Limites explícitos:
    - Não valida política de falhas (ver test_executor_fail_fast.py)
"""

import pytest

try:
    from ml_process.core.engine.engine import Engine
    from ml_process.core.pipeline.types import NodeStatus, ResultStatus
except Exception as e:
    Engine = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing Engine. Implement:
- src/ml_process/core/engine/engine.py (Engine, RunResult)
Import error: {_IMPORT_ERR}
""")


def _diamond(graph):
    a = graph.create_node("a", "noop", outputs=["a.out"])
    b = graph.create_node("b", "noop", outputs=["b.out"])
    c = graph.create_node("c", "noop")
    d = graph.create_node("d", "noop")
    graph.add_dependency(b, a)
    graph.add_dependency(c, a)
    graph.add_dependency(d, b)
    graph.add_dependency(d, c)
    return a, b, c, d


def test_engine_runs_every_step_in_dependency_order(graph, dummy_ctx, unit_registry, DummyUnit):
    _require_imports()
    a, b, c, d = _diamond(graph)

    result = Engine(graph=graph, registry=unit_registry, ctx=dummy_ctx).run()

    assert result.ok
    assert result.by_status(ResultStatus.SUCCESS) == sorted([a.id, b.id, c.id, d.id])
    assert sorted(DummyUnit.performed) == sorted([a.id, b.id, c.id, d.id])

    pos = {sid: i for i, sid in enumerate(DummyUnit.performed)}
    for pid, did in graph.edges():
        assert pos[pid] < pos[did]

    assert all(n.status is NodeStatus.DONE for n in graph.nodes())
    assert result.steps[d.id].order == 2
    assert result.steps[a.id].metrics == {"ok": 1}
    assert result.steps[a.id].artifacts == {"a.out": "a.out"}


def test_engine_emits_run_events(graph, dummy_ctx, unit_registry):
    _require_imports()
    graph.create_node("a", "noop")

    Engine(graph=graph, registry=unit_registry, ctx=dummy_ctx).run()

    messages = [e["message"] for e in dummy_ctx.events]
    assert messages[0] == "run started"
    assert messages[-1] == "run finished"
    assert "step dispatched" in messages
    assert "step done" in messages
    finished = dummy_ctx.events[-1]
    assert (finished["succeeded"], finished["failed"], finished["skipped"]) == (1, 0, 0)


def test_engine_skips_already_done_steps(graph, dummy_ctx, unit_registry, DummyUnit):
    """
    Um nó DONE (ex.: restaurado de checkpoint) não é reexecutado; seu
    dependente é promovido pelo `reconcile` inicial e executa normalmente.
    """
    _require_imports()
    a = graph.create_node("a", "noop")
    b = graph.create_node("b", "noop")
    graph.add_dependency(b, a)
    a.status = NodeStatus.DONE

    result = Engine(graph=graph, registry=unit_registry, ctx=dummy_ctx).run()

    assert DummyUnit.performed == [b.id]
    assert result.steps[a.id].status is ResultStatus.SKIPPED
    assert result.steps[a.id].summary == "already done"
    assert result.steps[b.id].status is ResultStatus.SUCCESS
    assert result.ok


def test_engine_on_empty_graph(graph, dummy_ctx, unit_registry):
    _require_imports()
    result = Engine(graph=graph, registry=unit_registry, ctx=dummy_ctx).run()
    assert result.steps == {}
    assert result.ok
