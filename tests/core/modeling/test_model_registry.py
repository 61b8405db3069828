from __future__ import annotations

import pytest

from ml_process.modeling.model_registry import EstimatorRegistry, EstimatorSpec, ParamSpec


def test_registry_v1_contains_expected_estimators():
    reg = EstimatorRegistry.v1()
    assert reg.list_ids() == ["decision_tree", "knn", "logistic_regression", "random_forest"]


def test_registry_get_returns_spec_with_defaults_and_params():
    reg = EstimatorRegistry.v1()
    spec = reg.get("logistic_regression")

    assert isinstance(spec, EstimatorSpec)
    assert spec.estimator_cls is not None
    assert spec.default_params["max_iter"] == 1000
    assert isinstance(spec.params["C"], ParamSpec)


def test_build_from_strings_coerces_declared_types():
    reg = EstimatorRegistry.v1()
    est = reg.build_from_strings("knn", {"n_neighbors": "3", "weights": "distance"})

    params = est.get_params()
    assert params["n_neighbors"] == 3
    assert params["weights"] == "distance"


def test_optional_int_accepts_none():
    spec = EstimatorRegistry.v1().get("random_forest")
    assert spec.coerce_params({"max_depth": "none"}) == {"max_depth": None}


@pytest.mark.parametrize(
    "raw",
    [
        {"n_neighbors": "abc"},
        {"n_neighbors": "0"},
        {"weights": "cosine"},
        {"leaf": "3"},
    ],
)
def test_invalid_parameters_raise_value_error(raw):
    spec = EstimatorRegistry.v1().get("knn")
    with pytest.raises(ValueError):
        spec.coerce_params(raw)


def test_bool_param_coercion():
    p = ParamSpec(dtype="bool", default=False)
    assert p.coerce("flag", "Yes") is True
    assert p.coerce("flag", "0") is False
    with pytest.raises(ValueError):
        p.coerce("flag", "maybe")


def test_invalid_estimator_id_raises_explicit_error():
    reg = EstimatorRegistry.v1()
    with pytest.raises(KeyError):
        reg.get("does_not_exist")


def test_registry_is_explicitly_extensible_via_register():
    reg = EstimatorRegistry.v1()

    custom = EstimatorSpec(
        estimator_id="dummy_custom",
        estimator_cls=dict,
        default_params={"x": 1},
        params={"x": ParamSpec(dtype="int", default=1, min=0, max=10)},
    )

    reg.register(custom)
    assert "dummy_custom" in reg.list_ids()
    assert reg.build_from_strings("dummy_custom", {"x": "7"}) == {"x": 7}

    with pytest.raises(ValueError):
        reg.register(custom)
