"""Unidade `file_merger`: concatena arquivos byte a byte, em grupos.

Mesma regra de agrupamento do `data_merger`, sem interpretar o conteúdo.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ml_process.core.exceptions import UnitExecutionError
from ml_process.core.pipeline.context import RunContext
from ml_process.units.base import BaseUnit
from ml_process.units.io import sha256_and_bytes
from ml_process.units.merge.grouping import input_groups


class FileMerger(BaseUnit):
    unit_name = "file_merger"

    def validate(self) -> None:
        self.require_io(min_inputs=1, min_outputs=1)
        if len(self.inputs) % len(self.outputs) != 0:
            raise self._config_error(
                "file_merger: number of inputs must be a multiple of the number of outputs",
                inputs=len(self.inputs),
                outputs=len(self.outputs),
            )

    def perform(self, ctx: RunContext) -> Optional[Dict[str, Any]]:
        written = 0
        digests: Dict[str, str] = {}
        for group, out in input_groups(self.inputs, self.outputs):
            target = ctx.resolve_path(out)
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as dst:
                for artifact in group:
                    src = ctx.resolve_path(artifact)
                    if not src.is_file():
                        raise UnitExecutionError(
                            f"Input artifact not found: {artifact}",
                            details={"step_id": self.id, "path": str(src)},
                        )
                    data = src.read_bytes()
                    dst.write(data)
                    written += len(data)
            digest, _ = sha256_and_bytes(target)
            digests[out] = digest
        return {"bytes": written, "sha256": digests}
