"""Unidade `data_merger`: concatena tabelas CSV em grupos.

Entradas são divididas em `len(outputs)` grupos consecutivos; cada grupo é
concatenado (linhas) em uma saída. Todas as tabelas de um grupo devem ter
exatamente as mesmas colunas, na mesma ordem.

Parâmetros: nenhum (parâmetros informados são ignorados com warning).
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import pandas as pd

from ml_process.core.exceptions import UnitExecutionError
from ml_process.core.pipeline.context import RunContext
from ml_process.units.base import BaseUnit
from ml_process.units.io import read_table, write_table
from ml_process.units.merge.grouping import input_groups


class DataMerger(BaseUnit):
    unit_name = "data_merger"

    def validate(self) -> None:
        self.require_io(min_inputs=1, min_outputs=1)
        if len(self.inputs) % len(self.outputs) != 0:
            raise self._config_error(
                "data_merger: number of inputs must be a multiple of the number of outputs",
                inputs=len(self.inputs),
                outputs=len(self.outputs),
            )

    def perform(self, ctx: RunContext) -> Optional[Dict[str, Any]]:
        if self.parameters:
            ctx.add_warning(step_id=self.id, message="data_merger parameters are ignored")

        rows = 0
        for group, out in input_groups(self.inputs, self.outputs):
            frames = []
            for artifact in group:
                df = read_table(ctx, artifact, step_id=self.id)
                if frames and list(df.columns) != list(frames[0].columns):
                    raise UnitExecutionError(
                        f"Cannot merge {artifact}: columns differ from {group[0]}",
                        details={
                            "step_id": self.id,
                            "expected": list(frames[0].columns),
                            "received": list(df.columns),
                        },
                    )
                ctx.log(step_id=self.id, level="DEBUG", message="adding input", input=artifact, output=out)
                frames.append(df)

            merged = pd.concat(frames, ignore_index=True)
            write_table(ctx, merged, out)
            rows += len(merged)

        return {"outputs": len(self.outputs), "rows": rows}
