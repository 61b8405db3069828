"""
Catálogo de estimadores usados pela unidade `classifier`.

Parâmetros de Step Nodes chegam como strings. Cada estimador declara os
parâmetros que aceita (`ParamSpec`), e o catálogo converte as strings
para os tipos declarados antes de instanciar o estimador scikit-learn.

Este módulo fornece:
- ParamSpec: tipo, limites e escolhas de um parâmetro
- EstimatorSpec: estimador suportado, defaults e parâmetros aceitos
- EstimatorRegistry: ponto único de verdade (`EstimatorRegistry.v1()`)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Type

from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.neighbors import KNeighborsClassifier
from sklearn.tree import DecisionTreeClassifier


ParamDType = Literal["int", "float", "bool", "enum"]

_NONE = {"none", "null", ""}


@dataclass(frozen=True)
class ParamSpec:
    """Parâmetro aceito por um estimador."""

    dtype: ParamDType
    default: Any
    min: Optional[float] = None
    max: Optional[float] = None
    choices: Optional[List[Any]] = None
    allow_none: bool = False
    description: str = ""

    def coerce(self, name: str, raw: str) -> Any:
        """
        Converte `raw` para o tipo declarado.

        Raises:
            ValueError: Valor não conversível, fora dos limites ou fora das
            escolhas permitidas.
        """
        text = raw.strip()
        if self.allow_none and text.lower() in _NONE:
            return None

        if self.dtype == "int":
            value: Any = int(text)
        elif self.dtype == "float":
            value = float(text)
        elif self.dtype == "bool":
            low = text.lower()
            if low in {"1", "true", "yes", "on"}:
                value = True
            elif low in {"0", "false", "no", "off"}:
                value = False
            else:
                raise ValueError(f"{name}: expected a boolean, got {raw!r}")
        else:
            value = text

        if self.choices is not None and value not in self.choices:
            raise ValueError(f"{name}: {value!r} not in {self.choices}")
        if self.min is not None and value < self.min:
            raise ValueError(f"{name}: {value!r} < {self.min}")
        if self.max is not None and value > self.max:
            raise ValueError(f"{name}: {value!r} > {self.max}")
        return value


@dataclass(frozen=True)
class EstimatorSpec:
    """Especificação de um estimador suportado."""

    estimator_id: str
    estimator_cls: Type[Any]
    default_params: Dict[str, Any] = field(default_factory=dict)
    params: Dict[str, ParamSpec] = field(default_factory=dict)

    def coerce_params(self, raw: Mapping[str, str]) -> Dict[str, Any]:
        """
        Converte parâmetros textuais usando os `ParamSpec` declarados.

        Raises:
            ValueError: Parâmetro desconhecido ou inválido.
        """
        unknown = sorted(k for k in raw if k not in self.params)
        if unknown:
            raise ValueError(
                f"unknown parameter(s) for {self.estimator_id}: {unknown}; "
                f"accepted: {sorted(self.params)}"
            )
        return {k: self.params[k].coerce(k, v) for k, v in raw.items()}

    def build(self, overrides: Optional[Dict[str, Any]] = None) -> Any:
        """Instancia o estimador com default_params + overrides (sem treinar)."""
        params = dict(self.default_params)
        if overrides:
            params.update(overrides)
        return self.estimator_cls(**params)


class EstimatorRegistry:
    """
    Registro determinístico de EstimatorSpec.

    Novos estimadores entram por `register()`; não há descoberta automática.
    """

    def __init__(self, specs: Optional[Iterable[EstimatorSpec]] = None):
        self._specs: Dict[str, EstimatorSpec] = {}
        if specs:
            for s in specs:
                self.register(s)

    @classmethod
    def v1(cls) -> "EstimatorRegistry":
        return cls(specs=_default_specs_v1())

    def register(self, spec: EstimatorSpec) -> None:
        if not isinstance(spec, EstimatorSpec):
            raise TypeError("spec must be an EstimatorSpec")
        if not isinstance(spec.estimator_id, str) or not spec.estimator_id.strip():
            raise ValueError("estimator_id must be a non-empty string")
        if spec.estimator_id in self._specs:
            raise ValueError(f"estimator_id already registered: {spec.estimator_id}")
        self._specs[spec.estimator_id] = spec

    def list_ids(self) -> List[str]:
        return sorted(self._specs)

    def get(self, estimator_id: str) -> EstimatorSpec:
        if estimator_id not in self._specs:
            raise KeyError(f"unknown estimator: {estimator_id}")
        return self._specs[estimator_id]

    def build_from_strings(self, estimator_id: str, raw: Mapping[str, str]) -> Any:
        spec = self.get(estimator_id)
        return spec.build(spec.coerce_params(raw))


def _default_specs_v1() -> List[EstimatorSpec]:
    lr = EstimatorSpec(
        estimator_id="logistic_regression",
        estimator_cls=LogisticRegression,
        default_params={"C": 1.0, "max_iter": 1000, "solver": "lbfgs"},
        params={
            "C": ParamSpec(dtype="float", default=1.0, min=1e-4, max=100.0, description="Inverse regularization strength"),
            "max_iter": ParamSpec(dtype="int", default=1000, min=50, max=10000, description="Max iterations"),
            "solver": ParamSpec(dtype="enum", default="lbfgs", choices=["lbfgs", "liblinear"], description="Solver"),
        },
    )
    rf = EstimatorSpec(
        estimator_id="random_forest",
        estimator_cls=RandomForestClassifier,
        default_params={"n_estimators": 200, "random_state": 42, "n_jobs": 1},
        params={
            "n_estimators": ParamSpec(dtype="int", default=200, min=10, max=1000, description="Number of trees"),
            "max_depth": ParamSpec(dtype="int", default=None, min=1, max=100, allow_none=True, description="Max depth"),
            "min_samples_leaf": ParamSpec(dtype="int", default=1, min=1, max=50, description="Min samples per leaf"),
            "random_state": ParamSpec(dtype="int", default=42, min=0, description="Seed"),
        },
    )
    knn = EstimatorSpec(
        estimator_id="knn",
        estimator_cls=KNeighborsClassifier,
        default_params={"n_neighbors": 5},
        params={
            "n_neighbors": ParamSpec(dtype="int", default=5, min=1, max=100, description="Number of neighbors"),
            "weights": ParamSpec(dtype="enum", default="uniform", choices=["uniform", "distance"], description="Weight function"),
            "p": ParamSpec(dtype="int", default=2, min=1, max=2, description="Minkowski distance power"),
        },
    )
    tree = EstimatorSpec(
        estimator_id="decision_tree",
        estimator_cls=DecisionTreeClassifier,
        default_params={"random_state": 42},
        params={
            "max_depth": ParamSpec(dtype="int", default=None, min=1, max=100, allow_none=True, description="Max depth"),
            "criterion": ParamSpec(dtype="enum", default="gini", choices=["gini", "entropy", "log_loss"], description="Split criterion"),
            "min_samples_leaf": ParamSpec(dtype="int", default=1, min=1, max=50, description="Min samples per leaf"),
            "random_state": ParamSpec(dtype="int", default=42, min=0, description="Seed"),
        },
    )
    return [lr, rf, knn, tree]
