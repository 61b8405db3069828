# tests/core/engine/test_expander.py
"""
Testes da expansão de templates (curingas `*` e `***`).

Os testes asseguram que:
- `expand` substitui o `*` em entradas com exatamente uma ocorrência
- caminhos com zero ou duas ocorrências passam inalterados
- o template nunca é mutado
- `expand_slot` substitui apenas no índice escolhido e valida o índice
- `find_replacements` deduz substituições a partir de caminhos concretos
"""

import pytest

try:
    from ml_process.core.engine.expander import (
        expand,
        expand_slot,
        find_replacements,
        has_single_wildcard,
        has_slot_wildcard,
    )
    from ml_process.core.exceptions import InvalidExpansionTargetError
    from ml_process.core.pipeline.node import StepNode
    from ml_process.core.pipeline.types import NodeStatus
except Exception as e:
    expand = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing expander. Implement:
- src/ml_process/core/engine/expander.py
Import error: {_IMPORT_ERR}
""")


def _template(inputs, outputs=None):
    return StepNode(
        id="eval[4]",
        unit_name="classifier",
        parameters={"estimator": "knn"},
        inputs=list(inputs),
        outputs=list(outputs or ["out/*.csv"]),
        status=NodeStatus.WAITING,
        order=2,
        prerequisites={"extract[1]"},
        dependents={"report[5]"},
    )


def test_expand_replaces_single_wildcard():
    _require_imports()
    tmpl = _template(["data/*.arff"])

    child = expand(tmpl, "fold1")

    assert child.id == "eval[4]#fold1"
    assert child.inputs == ["data/fold1.arff"]
    assert child.unit_name == "classifier"
    assert child.parameters == {"estimator": "knn"}
    assert child.prerequisites == {"extract[1]"}
    assert child.dependents == {"report[5]"}
    assert not child.is_sorted


def test_expand_leaves_zero_and_double_wildcards_untouched():
    _require_imports()
    tmpl = _template(["plain.csv", "a/*/b/*.csv", "x/*.csv"])

    child = expand(tmpl, "k")

    assert child.inputs == ["plain.csv", "a/*/b/*.csv", "x/k.csv"]


def test_expand_does_not_mutate_template():
    """O filho não compartilha listas, parâmetros nem conjuntos com o template."""
    _require_imports()
    tmpl = _template(["data/*.arff"])
    child = expand(tmpl, "fold1")

    child.parameters["estimator"] = "random_forest"
    child.prerequisites.add("other[9]")
    child.outputs.append("extra")

    assert tmpl.inputs == ["data/*.arff"]
    assert tmpl.parameters == {"estimator": "knn"}
    assert tmpl.prerequisites == {"extract[1]"}
    assert tmpl.outputs == ["out/*.csv"]
    assert tmpl.order == 2


def test_expand_rejects_empty_replacement():
    _require_imports()
    with pytest.raises(ValueError):
        expand(_template(["data/*.arff"]), "")


def test_expand_resets_terminal_status():
    _require_imports()
    tmpl = _template(["data/*.arff"])
    tmpl.status = NodeStatus.DONE
    assert expand(tmpl, "f").status is NodeStatus.WAITING


def test_expand_slot_only_touches_selected_input():
    _require_imports()
    tmpl = _template(["train/***.csv", "test/***.csv"])

    child = expand_slot(tmpl, "fold2", 1)

    assert child.inputs == ["train/***.csv", "test/fold2.csv"]
    assert child.id == "eval[4]#fold2"


@pytest.mark.parametrize("path", ["a/****.csv", "a/*****.csv", "a/***/***.csv"])
def test_expand_slot_leaves_overlapping_tokens_untouched(path):
    """Quatro ou mais asteriscos seguidos contêm `***` mais de uma vez."""
    _require_imports()
    tmpl = _template([path])

    child = expand_slot(tmpl, "X", 0)

    assert child.inputs == [path]
    assert not has_slot_wildcard(path)
    assert find_replacements(path, ["a/X.csv", "a/X*.csv"], token="***") == []


@pytest.mark.parametrize("index", [-1, 2, True, "0"])
def test_expand_slot_rejects_invalid_index(index):
    _require_imports()
    tmpl = _template(["train/***.csv", "test/***.csv"])
    with pytest.raises(InvalidExpansionTargetError) as exc:
        expand_slot(tmpl, "fold2", index)
    assert exc.value.details["num_inputs"] == 2


def test_wildcard_predicates():
    _require_imports()
    assert has_single_wildcard("data/*.arff")
    assert not has_single_wildcard("data/***.arff")
    assert has_slot_wildcard("data/***.arff")
    assert not has_slot_wildcard("data/***/***.arff")
    assert not has_slot_wildcard("data/*.arff")


def test_find_replacements_from_candidates():
    _require_imports()
    candidates = [
        "data/fold2.arff",
        "data/fold1.arff",
        "data/./fold1.arff",
        "data/.arff",
        "other/fold3.arff",
        "data/*.arff",
    ]
    assert find_replacements("data/*.arff", candidates) == ["fold1", "fold2"]


def test_find_replacements_for_slot_token():
    _require_imports()
    assert find_replacements("f/***.csv", ["f/a.csv", "f/b.csv"], token="***") == ["a", "b"]
    assert find_replacements("f/***.csv", ["f/a.csv"]) == []
    assert find_replacements("f/*/*.csv", ["f/a/b.csv"]) == []
