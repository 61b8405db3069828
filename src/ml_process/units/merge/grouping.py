"""Agrupamento de entradas por saída, comum às unidades de merge."""

from __future__ import annotations

from typing import List, Sequence, Tuple


def input_groups(inputs: Sequence[str], outputs: Sequence[str]) -> List[Tuple[List[str], str]]:
    """
    Divide `inputs` em `len(outputs)` grupos consecutivos de mesmo tamanho.

    Ex.: 4 entradas e 2 saídas → `([i0, i1], o0), ([i2, i3], o1)`.
    Assume contagens já validadas.
    """
    ratio = len(inputs) // len(outputs)
    return [
        (list(inputs[ratio * j: ratio * (j + 1)]), outputs[j])
        for j in range(len(outputs))
    ]
