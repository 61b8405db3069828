"""
Pacote de rastreabilidade do ml-process.

API pública:
    - RunManifest, create_manifest, add_event, step_started, step_finished,
      step_failed, step_skipped, save_manifest, load_manifest
    - graph_to_dict, graph_from_dict, save_checkpoint, load_checkpoint

Nenhum evento é emitido implicitamente; o executor chama esta API de forma
explícita a cada transição de Step.
"""

from .checkpoint import graph_from_dict, graph_to_dict, load_checkpoint, save_checkpoint
from .manifest import (
    RunManifest,
    add_event,
    create_manifest,
    load_manifest,
    save_manifest,
    step_failed,
    step_finished,
    step_skipped,
    step_started,
)

__all__ = [
    "RunManifest",
    "add_event",
    "create_manifest",
    "graph_from_dict",
    "graph_to_dict",
    "load_checkpoint",
    "load_manifest",
    "save_checkpoint",
    "save_manifest",
    "step_failed",
    "step_finished",
    "step_skipped",
    "step_started",
]
