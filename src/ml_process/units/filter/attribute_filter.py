"""Unidade `attribute_filter`: reduz valores raros de colunas categóricas.

Para cada coluna categórica cujo nome começa com um dos prefixos em
`attributes`, cria a coluna `<nome>_filt` logo após a original. Valores que
passam pelos critérios são mantidos; os demais viram `[OTHER]`.

Parâmetros:
    attributes       prefixos de colunas, separados por espaço (obrigatório)
    most_common      mantém só os N valores mais frequentes
    min_occurrences  número mínimo de ocorrências
    min_percentage   ocorrências mínimas em % do total de linhas
    del_orig         remove a coluna original (default: false)

Ao menos um critério é obrigatório. As estatísticas são calculadas sobre
todas as entradas juntas, para que todas as saídas usem o mesmo conjunto de
valores. Entradas e saídas são pareadas por posição.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Any, Dict, List, Optional, Set

import pandas as pd
from pandas.api.types import is_numeric_dtype

from ml_process.core.exceptions import UnitExecutionError
from ml_process.core.pipeline.context import RunContext
from ml_process.units.base import BaseUnit
from ml_process.units.io import read_table, write_table


FILTERED_SUFFIX = "_filt"
OTHER_VALUE = "[OTHER]"


def unique_prefixes(prefixes: List[str]) -> List[str]:
    """Remove prefixos cobertos por outro mais curto (ordem preservada)."""
    kept: List[str] = []
    for p in prefixes:
        if any(p.startswith(k) for k in kept):
            continue
        kept = [k for k in kept if not k.startswith(p)]
        kept.append(p)
    return kept


class AttributeFilter(BaseUnit):
    unit_name = "attribute_filter"

    def validate(self) -> None:
        self.require_io(min_inputs=1, min_outputs=1)
        if len(self.inputs) != len(self.outputs):
            raise self._config_error(
                "attribute_filter: number of inputs and outputs must match",
                inputs=len(self.inputs),
                outputs=len(self.outputs),
            )
        self.require_params("attributes")

        self.most_common = self.get_int("most_common")
        self.min_occurrences = self.get_int("min_occurrences")
        self.min_percentage = self.get_float("min_percentage")
        self.del_orig = self.get_bool("del_orig", False)

        if self.most_common is None and self.min_occurrences is None and self.min_percentage is None:
            raise self._config_error(
                "attribute_filter: set at least one of most_common, min_occurrences, min_percentage",
            )
        if self.most_common is not None and self.most_common < 1:
            raise self._config_error("attribute_filter: most_common must be >= 1", value=self.most_common)

        requested = self.get_list("attributes")
        if not requested:
            raise self._config_error("attribute_filter: 'attributes' is empty")
        self.prefixes = unique_prefixes(requested)
        self.overlapping = len(self.prefixes) != len(requested)

    def _threshold(self, total_rows: int) -> int:
        threshold = self.min_occurrences or 0
        if self.min_percentage is not None:
            threshold = max(threshold, int(math.ceil(self.min_percentage / 100.0 * total_rows)))
        return threshold

    def allowed_values(self, counts: Counter, total_rows: int) -> Set[Any]:
        threshold = self._threshold(total_rows)
        passing = [(v, c) for v, c in counts.items() if c >= threshold]
        if self.most_common is not None:
            passing.sort(key=lambda vc: (-vc[1], str(vc[0])))
            passing = passing[: self.most_common]
        return {v for v, _ in passing}

    @staticmethod
    def _new_name(column: str, columns: List[str]) -> str:
        name = column + FILTERED_SUFFIX
        n = 1
        while name in columns:
            name = f"{column}{FILTERED_SUFFIX}{n}"
            n += 1
        return name

    def _filter_column(self, frames: List[pd.DataFrame], column: str, allowed: Set[Any]) -> None:
        new_name = self._new_name(column, list(frames[0].columns))
        for i, df in enumerate(frames):
            filtered = df[column].where(df[column].isin(allowed) | df[column].isna(), OTHER_VALUE)
            df.insert(df.columns.get_loc(column) + 1, new_name, filtered)
            if self.del_orig:
                frames[i] = df.drop(columns=[column])

    def perform(self, ctx: RunContext) -> Optional[Dict[str, Any]]:
        if self.overlapping:
            ctx.add_warning(
                step_id=self.id,
                message="some prefixes in 'attributes' overlap; using " + " ".join(self.prefixes),
            )

        frames = [read_table(ctx, a, step_id=self.id) for a in self.inputs]
        header = list(frames[0].columns)
        for artifact, df in zip(self.inputs[1:], frames[1:]):
            if list(df.columns) != header:
                raise UnitExecutionError(
                    f"Input {artifact} has different columns than {self.inputs[0]}",
                    details={"step_id": self.id, "expected": header, "received": list(df.columns)},
                )

        total_rows = sum(len(df) for df in frames)
        filtered: Dict[str, List[str]] = {}
        for prefix in self.prefixes:
            matches = [
                c for c in header
                if c.startswith(prefix) and not is_numeric_dtype(frames[0][c])
            ]
            if not matches:
                ctx.add_warning(step_id=self.id, message=f"no categorical column matching '{prefix}'")
                continue
            for column in matches:
                counts: Counter = Counter()
                for df in frames:
                    counts.update(df[column].dropna().tolist())
                allowed = self.allowed_values(counts, total_rows)
                self._filter_column(frames, column, allowed)
                filtered[column] = sorted(str(v) for v in allowed)
                ctx.log(
                    step_id=self.id,
                    level="DEBUG",
                    message="column filtered",
                    column=column,
                    kept=len(allowed),
                    distinct=len(counts),
                )

        for df, out in zip(frames, self.outputs):
            write_table(ctx, df, out)

        return {"filtered_columns": len(filtered), "rows": total_rows}
