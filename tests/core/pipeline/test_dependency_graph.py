# tests/core/pipeline/test_dependency_graph.py
"""
Testes do DependencyGraph (arena de nós + arestas simétricas).

Os testes asseguram que:
- ids são gerados no formato `<prefixo>[<n>]` e nunca colidem
- `add_dependency` é idempotente e sempre coloca o dependente em WAITING
- as arestas são simétricas nos dois extremos
- `loose_dependencies` remove arestas por prefixo, nas duas direções
- nós fora do grafo e auto-dependências são rejeitados

Invariantes:
    - `B in A.prerequisites` se e somente se `A in B.dependents`
    - Um nó sem pré-requisitos nasce PENDING

Limites explícitos:
    - Não valida ordenação (ver tests/core/engine/test_planner.py)
    - Não valida propagação de status (ver test_propagator.py)
"""

import pytest

try:
    from ml_process.core.exceptions import CycleDetectedError, DuplicateIdError, UnknownStepError
    from ml_process.core.pipeline.graph import DependencyGraph
    from ml_process.core.pipeline.node import StepNode
    from ml_process.core.pipeline.types import NodeStatus
except Exception as e:
    DependencyGraph = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    """Falha de forma explícita se o grafo não puder ser importado."""
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing dependency graph. Implement:
- src/ml_process/core/pipeline/graph.py (DependencyGraph)
Import error: {_IMPORT_ERR}
""")


def _assert_symmetric(graph):
    for n in graph.nodes():
        for pid in n.prerequisites:
            assert n.id in graph.get(pid).dependents
        for did in n.dependents:
            assert n.id in graph.get(did).prerequisites


def test_create_node_generates_prefixed_ids(graph):
    """
    Verifica o formato dos ids e o contador por grafo.

    Dois grafos independentes começam a contagem do zero: o contador
    pertence ao grafo, não ao processo.
    """
    _require_imports()
    a = graph.create_node("train", "noop")
    b = graph.create_node("train", "noop")
    assert a.id == "train[1]"
    assert b.id == "train[2]"

    other = DependencyGraph()
    assert other.create_node("train", "noop").id == "train[1]"


def test_new_node_without_prerequisites_is_pending(graph):
    _require_imports()
    n = graph.create_node("extract", "noop", inputs=["raw.txt"], outputs=["feat.arff"])
    assert n.status is NodeStatus.PENDING
    assert n.order == -1
    assert not n.is_sorted


def test_create_node_copies_arguments(graph):
    """Listas e parâmetros do chamador não são compartilhados com o nó."""
    _require_imports()
    inputs = ["a.csv"]
    params = {"k": 3}
    n = graph.create_node("s", "noop", parameters=params, inputs=inputs)
    inputs.append("b.csv")
    params["k"] = 4
    assert n.inputs == ["a.csv"]
    assert n.parameters == {"k": "3"}


def test_add_dependency_is_idempotent(graph):
    """
    Verifica que repetir `add_dependency(A, B)` não duplica a aresta.

    Invariantes:
        - B aparece uma única vez em A.prerequisites
        - a segunda chamada reporta que nada mudou
    """
    _require_imports()
    a = graph.create_node("a", "noop")
    b = graph.create_node("b", "noop")

    assert graph.add_dependency(a, b) is True
    assert graph.add_dependency(a, b) is False

    assert a.prerequisites == {b.id}
    assert b.dependents == {a.id}
    assert graph.edges() == [(b.id, a.id)]
    _assert_symmetric(graph)


def test_add_dependency_forces_waiting(graph):
    """
    Toda nova dependência revoga a prontidão do dependente, mesmo quando
    o pré-requisito já está DONE.
    """
    _require_imports()
    a = graph.create_node("a", "noop")
    b = graph.create_node("b", "noop")
    b.status = NodeStatus.DONE

    graph.add_dependency(a, b)
    assert a.status is NodeStatus.WAITING


def test_add_dependency_never_regresses_terminal_nodes(graph):
    _require_imports()
    a = graph.create_node("a", "noop")
    b = graph.create_node("b", "noop")
    a.status = NodeStatus.DONE
    graph.add_dependency(a, b)
    assert a.status is NodeStatus.DONE


def test_add_dependency_accepts_ids(graph):
    _require_imports()
    a = graph.create_node("a", "noop")
    b = graph.create_node("b", "noop")
    graph.add_dependency(a.id, b.id)
    assert [n.id for n in graph.prerequisites_of(a)] == [b.id]
    assert [n.id for n in graph.dependents_of(b)] == [a.id]


def test_self_dependency_is_rejected(graph):
    _require_imports()
    a = graph.create_node("a", "noop")
    with pytest.raises(CycleDetectedError) as exc:
        graph.add_dependency(a, a)
    assert exc.value.stuck == [a.id]
    assert a.prerequisites == set()


def test_foreign_nodes_are_rejected(graph):
    """Um StepNode que não é o objeto registrado não pode ser ligado."""
    _require_imports()
    a = graph.create_node("a", "noop")
    stranger = StepNode(id="ghost[9]", unit_name="noop")
    with pytest.raises(UnknownStepError):
        graph.add_dependency(a, stranger)
    with pytest.raises(UnknownStepError):
        graph.add_dependency(a, "missing[1]")


def test_add_node_rejects_duplicate_id(graph):
    _require_imports()
    a = graph.create_node("a", "noop")
    with pytest.raises(DuplicateIdError):
        graph.add_node(StepNode(id=a.id, unit_name="noop"))


def test_add_node_symmetrises_carried_edges(graph):
    """
    Um nó construído fora do grafo (ex.: expansão) pode carregar ids de
    vizinhos; ao ser registrado, as arestas passam a existir nos dois
    extremos e o nó fica WAITING.
    """
    _require_imports()
    p = graph.create_node("p", "noop")
    d = graph.create_node("d", "noop")
    child = StepNode(id="c#x", unit_name="noop", prerequisites={p.id}, dependents={d.id})
    graph.add_node(child)

    assert child.id in p.dependents
    assert child.id in d.prerequisites
    assert child.status is NodeStatus.WAITING
    _assert_symmetric(graph)


def test_add_node_rejects_dangling_edges(graph):
    _require_imports()
    with pytest.raises(UnknownStepError):
        graph.add_node(StepNode(id="c#x", unit_name="noop", prerequisites={"nope[1]"}))


def test_loose_dependencies_by_prefix_is_symmetric(graph):
    """
    Verifica a remoção de arestas por prefixo de id.

    Após `loose_dependencies(node, prefix)`, nenhum nó com id iniciado por
    `prefix` aparece nas adjacências de `node`, e `node` não aparece nas
    deles. Arestas com outros nós permanecem.
    """
    _require_imports()
    node = graph.create_node("train", "noop")
    t1 = graph.create_node("tmpl", "noop")
    t2 = graph.create_node("tmpl", "noop")
    keep = graph.create_node("other", "noop")
    down = graph.create_node("tmpl", "noop")

    graph.add_dependency(node, t1)
    graph.add_dependency(node, t2)
    graph.add_dependency(node, keep)
    graph.add_dependency(down, node)

    removed = graph.loose_dependencies(node, "tmpl")

    assert removed == sorted([t1.id, t2.id, down.id])
    assert node.prerequisites == {keep.id}
    assert node.dependents == set()
    for t in (t1, t2, down):
        assert node.id not in t.prerequisites
        assert node.id not in t.dependents
    _assert_symmetric(graph)


def test_loose_dependencies_without_prefix_detaches_fully(graph):
    _require_imports()
    a = graph.create_node("a", "noop")
    b = graph.create_node("b", "noop")
    c = graph.create_node("c", "noop")
    graph.add_dependency(b, a)
    graph.add_dependency(c, b)

    graph.loose_dependencies(b)

    assert b.prerequisites == set() and b.dependents == set()
    assert a.dependents == set()
    assert c.prerequisites == set()
    # status não é alterado pela remoção
    assert b.status is NodeStatus.WAITING


def test_remove_node_detaches_and_drops(graph):
    _require_imports()
    a = graph.create_node("a", "noop")
    b = graph.create_node("b", "noop")
    graph.add_dependency(b, a)

    graph.remove_node(a)

    assert a.id not in graph
    assert b.prerequisites == set()
    with pytest.raises(UnknownStepError):
        graph.get(a.id)


def test_to_dict_round_trip_preserves_structure(graph):
    _require_imports()
    a = graph.create_node("a", "noop", parameters={"x": "1"}, inputs=["i"], outputs=["o"])
    b = graph.create_node("b", "noop", inputs=["o"])
    graph.add_dependency(b, a)
    a.order, b.order = 0, 1

    restored = DependencyGraph.from_dict(graph.to_dict())

    assert [n.to_dict() for n in restored.nodes()] == [n.to_dict() for n in graph.nodes()]
    # o contador continua de onde parou
    assert restored.create_node("c", "noop").id == "c[3]"


def test_from_dict_rejects_asymmetric_edges(graph):
    _require_imports()
    a = graph.create_node("a", "noop")
    b = graph.create_node("b", "noop")
    graph.add_dependency(b, a)
    data = graph.to_dict()
    data["nodes"][0]["dependents"] = []

    with pytest.raises(UnknownStepError):
        DependencyGraph.from_dict(data)
