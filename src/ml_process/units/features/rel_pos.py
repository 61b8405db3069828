"""Unidade `rel_pos`: posição relativa da palavra em relação ao predicado.

Adiciona a coluna `RelPos` com `Before`, `On` ou `After`, comparando as
colunas de posição da palavra e do predicado.

Parâmetros:
    word_col  coluna com a posição da palavra (default: word_no)
    pred_col  coluna com a posição do predicado (default: pred_no)
    out_col   nome da coluna gerada (default: RelPos)
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from ml_process.core.exceptions import UnitExecutionError
from ml_process.core.pipeline.context import RunContext
from ml_process.units.base import BaseUnit
from ml_process.units.io import read_table, write_table


BEFORE, ON, AFTER = "Before", "On", "After"


def relative_position(word: pd.Series, pred: pd.Series) -> pd.Series:
    values = np.where(word < pred, BEFORE, np.where(word == pred, ON, AFTER))
    return pd.Series(values, index=word.index, dtype=object)


class RelPos(BaseUnit):
    unit_name = "rel_pos"

    def validate(self) -> None:
        self.require_io(min_inputs=1, min_outputs=1)
        if len(self.inputs) != len(self.outputs):
            raise self._config_error(
                "rel_pos: number of inputs and outputs must match",
                inputs=len(self.inputs),
                outputs=len(self.outputs),
            )
        self.word_col = self.get_str("word_col", "word_no")
        self.pred_col = self.get_str("pred_col", "pred_no")
        self.out_col = self.get_str("out_col", "RelPos")

    def perform(self, ctx: RunContext) -> Optional[Dict[str, Any]]:
        rows = 0
        for artifact, out in zip(self.inputs, self.outputs):
            df = read_table(ctx, artifact, step_id=self.id)
            missing = [c for c in (self.word_col, self.pred_col) if c not in df.columns]
            if missing:
                raise UnitExecutionError(
                    f"{artifact}: missing column(s) {missing}",
                    details={"step_id": self.id, "missing": missing, "columns": list(df.columns)},
                )
            try:
                word = pd.to_numeric(df[self.word_col])
                pred = pd.to_numeric(df[self.pred_col])
            except (ValueError, TypeError) as e:
                raise UnitExecutionError(
                    f"{artifact}: position columns must be numeric",
                    details={"step_id": self.id, "exc_message": str(e)},
                ) from e

            df[self.out_col] = relative_position(word, pred)
            write_table(ctx, df, out)
            rows += len(df)
        return {"rows": rows}
