"""Unidade `classifier`: treina um estimador e classifica um conjunto de avaliação.

Entradas (exatamente duas):
    0. dados de treino (CSV com a coluna de classe)
    1. dados de avaliação (mesmas colunas; a classe pode estar vazia)

Saídas:
    0. dados de avaliação com a coluna de classe preenchida pela predição
    1. (opcional) estimador treinado, persistido com joblib

Parâmetros reservados:
    estimator     id no EstimatorRegistry (obrigatório)
    class_arg     coluna de classe (default: última coluna do treino)
    ignore_attr   colunas ignoradas, separadas por espaço
    select_args   colunas usadas como atributos, separadas por espaço
    num_selected  seleciona os N melhores atributos (ANOVA F) no treino
    prob_dist     acrescenta colunas `P(<classe>)` com as probabilidades

Os demais parâmetros são do estimador e são convertidos para os tipos
declarados no registro. `select_args` e `num_selected` são mutuamente
exclusivos.

Atributos categóricos são codificados one-hot sobre treino e avaliação
juntos, para que as duas matrizes tenham as mesmas colunas; valores
ausentes viram 0.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import joblib
import pandas as pd
from sklearn.feature_selection import SelectKBest, f_classif
from sklearn.metrics import accuracy_score

from ml_process.core.exceptions import UnitExecutionError
from ml_process.core.pipeline.context import RunContext
from ml_process.modeling.model_registry import EstimatorRegistry
from ml_process.units.base import BaseUnit
from ml_process.units.io import read_table, write_table


RESERVED = {"estimator", "class_arg", "ignore_attr", "select_args", "num_selected", "prob_dist"}


class Classifier(BaseUnit):
    unit_name = "classifier"

    estimators = EstimatorRegistry.v1()

    def validate(self) -> None:
        if len(self.inputs) != 2:
            raise self._config_error("classifier needs exactly 2 inputs (train, eval)", inputs=len(self.inputs))
        if len(self.outputs) not in (1, 2):
            raise self._config_error("classifier needs 1 or 2 outputs", outputs=len(self.outputs))
        self.require_params("estimator")

        self.estimator_id = self.parameters["estimator"]
        self.class_arg = self.get_str("class_arg")
        self.ignore_attr = self.get_list("ignore_attr")
        self.select_args = self.get_list("select_args")
        self.num_selected = self.get_int("num_selected")
        self.prob_dist = self.get_bool("prob_dist", False)

        if self.select_args and self.num_selected is not None:
            raise self._config_error("classifier: select_args and num_selected cannot be set at the same time")
        if self.num_selected is not None and self.num_selected < 1:
            raise self._config_error("classifier: num_selected must be >= 1", value=self.num_selected)

        try:
            spec = self.estimators.get(self.estimator_id)
        except KeyError:
            raise self._config_error(
                f"classifier: unknown estimator '{self.estimator_id}'",
                available=self.estimators.list_ids(),
            ) from None

        raw = {k: v for k, v in self.parameters.items() if k not in RESERVED}
        try:
            self.estimator_params = spec.coerce_params(raw)
        except ValueError as e:
            raise self._config_error(f"classifier: {e}", estimator=self.estimator_id) from None

    # -----------------------------
    # Dados
    # -----------------------------
    def _feature_columns(self, train: pd.DataFrame, class_col: str) -> List[str]:
        if self.select_args:
            missing = [c for c in self.select_args if c not in train.columns]
            if missing:
                raise UnitExecutionError(
                    f"classifier: selected attribute(s) not found: {missing}",
                    details={"step_id": self.id, "missing": missing},
                )
            return [c for c in self.select_args if c != class_col]
        return [c for c in train.columns if c != class_col and c not in self.ignore_attr]

    def _matrices(
        self, train: pd.DataFrame, evaluation: pd.DataFrame, features: List[str]
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        missing = [c for c in features if c not in evaluation.columns]
        if missing:
            raise UnitExecutionError(
                f"classifier: evaluation data lacks attribute(s) {missing}",
                details={"step_id": self.id, "missing": missing},
            )
        both = pd.concat([train[features], evaluation[features]], ignore_index=True)
        encoded = pd.get_dummies(both, dtype=float).fillna(0)
        return encoded.iloc[: len(train)], encoded.iloc[len(train):]

    def perform(self, ctx: RunContext) -> Optional[Dict[str, Any]]:
        train = read_table(ctx, self.inputs[0], step_id=self.id)
        evaluation = read_table(ctx, self.inputs[1], step_id=self.id)

        class_col = self.class_arg or str(train.columns[-1])
        if class_col not in train.columns:
            raise UnitExecutionError(
                f"classifier: class column '{class_col}' not in training data",
                details={"step_id": self.id, "columns": list(train.columns)},
            )
        train = train.dropna(subset=[class_col])
        if train.empty:
            raise UnitExecutionError(
                "classifier: training data has no labelled rows",
                details={"step_id": self.id, "input": self.inputs[0]},
            )

        features = self._feature_columns(train, class_col)
        X_train, X_eval = self._matrices(train, evaluation, features)
        y_train = train[class_col]

        selector = None
        if self.num_selected is not None:
            selector = SelectKBest(f_classif, k=min(self.num_selected, X_train.shape[1]))
            selector.fit(X_train, y_train)
            kept = list(X_train.columns[selector.get_support()])
            X_train, X_eval = X_train[kept], X_eval[kept]
            ctx.log(step_id=self.id, level="DEBUG", message="attributes selected", selected=kept)

        estimator = self.estimators.get(self.estimator_id).build(self.estimator_params)
        estimator.fit(X_train, y_train)
        predicted = estimator.predict(X_eval)

        metrics: Dict[str, Any] = {
            "train_rows": int(len(train)),
            "eval_rows": int(len(evaluation)),
            "n_features": int(X_train.shape[1]),
        }
        if class_col in evaluation.columns and evaluation[class_col].notna().all() and len(evaluation):
            metrics["accuracy"] = float(accuracy_score(evaluation[class_col].astype(str), pd.Series(predicted).astype(str)))

        out = evaluation.copy()
        out[class_col] = predicted
        if self.prob_dist:
            if not hasattr(estimator, "predict_proba"):
                ctx.add_warning(step_id=self.id, message=f"{self.estimator_id} has no probability estimates")
            else:
                proba = estimator.predict_proba(X_eval)
                for i, label in enumerate(estimator.classes_):
                    out[f"P({label})"] = proba[:, i]
        write_table(ctx, out, self.outputs[0])

        if len(self.outputs) == 2:
            path = ctx.resolve_path(self.outputs[1])
            path.parent.mkdir(parents=True, exist_ok=True)
            joblib.dump(
                {"estimator": estimator, "features": list(X_train.columns), "class_arg": class_col},
                path,
            )

        return metrics
