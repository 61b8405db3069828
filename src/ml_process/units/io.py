"""
Leitura e escrita de artefatos tabulares (CSV via pandas).

Caminhos relativos são resolvidos contra `ctx.work_dir`. Falhas de I/O e
de parsing viram `UnitExecutionError` com o caminho em `details`.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Tuple

import pandas as pd

from ml_process.core.exceptions import UnitExecutionError
from ml_process.core.pipeline.context import RunContext


def resolve(ctx: RunContext, artifact: str) -> Path:
    return ctx.resolve_path(artifact)


def read_table(ctx: RunContext, artifact: str, *, step_id: str) -> pd.DataFrame:
    path = resolve(ctx, artifact)
    if not path.is_file():
        raise UnitExecutionError(
            f"Input artifact not found: {artifact}",
            details={"step_id": step_id, "path": str(path)},
        )
    try:
        return pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise UnitExecutionError(
            f"Cannot parse {artifact}: {e}",
            details={"step_id": step_id, "path": str(path), "exc_type": e.__class__.__name__},
        ) from e


def write_table(ctx: RunContext, df: pd.DataFrame, artifact: str) -> Path:
    path = resolve(ctx, artifact)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=False)
    return path


def sha256_and_bytes(path: Path) -> Tuple[str, int]:
    h = hashlib.sha256()
    size = 0
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
            size += len(chunk)
    return h.hexdigest(), size
