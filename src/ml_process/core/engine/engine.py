"""
Executor de planos do ml-process.

O Engine consome um `DependencyGraph` já planejado e executa as unidades
plugáveis dos nós PENDING em um pool de threads, reportando cada desfecho
ao `StatusPropagator`.

Fluxo:
    1. `reconcile()` promove nós prontos; o grafo é ordenado e validado
    2. Nós PENDING ainda não despachados são enviados ao pool, por
       prioridade `(order, id)`
    3. A thread coordenadora espera a próxima conclusão e chama
       `mark_done` / `mark_failed`; nunca há duas chamadas concorrentes
    4. Quando não há nada em execução nem a despachar, a run termina

Política de falhas:
    - A exceção da unidade vira `ErrorPayload` em `payload["error"]`
      (sem stack trace)
    - O nó fica FAILED e seus descendentes nunca são promovidos
    - Com `engine.fail_fast`, nada mais é despachado; unidades já em
      execução terminam e são registradas normalmente
    - Todo nó não executado é reportado como SKIPPED, com o motivo; nós
      restaurados já FAILED contam como falha de uma run anterior
    - Não há retry

Limites explícitos:
    - Não constrói o plano (ver scenario.builder)
    - Não interpreta erros das unidades
"""

from __future__ import annotations

from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from ml_process.core.config import EngineSettings, validate_engine_config
from ml_process.core.errors import to_error_payload
from ml_process.core.pipeline.context import RunContext
from ml_process.core.pipeline.graph import DependencyGraph
from ml_process.core.pipeline.node import StepNode
from ml_process.core.pipeline.types import NodeStatus, ResultStatus, StepResult
from ml_process.core.traceability.manifest import (
    RunManifest,
    step_failed,
    step_finished,
    step_skipped,
    step_started,
)

from .planner import assign_topological_order, runnable_nodes
from .propagator import StatusPropagator


PLAN_STEP_ID = "plan"


@dataclass(frozen=True)
class RunResult:
    """Resultado agregado de uma execução, indexado por step id."""

    steps: Dict[str, StepResult] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all(r.status is not ResultStatus.FAILED for r in self.steps.values())

    def by_status(self, status: ResultStatus) -> List[str]:
        return sorted(sid for sid, r in self.steps.items() if r.status is status)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _result_to_dict(result: StepResult) -> Dict[str, Any]:
    d = asdict(result)
    d["status"] = result.status.value
    return d


class Engine:
    """Executor concorrente orientado a status."""

    def __init__(
        self,
        *,
        graph: DependencyGraph,
        registry: Any,
        ctx: RunContext,
        manifest: Optional[RunManifest] = None,
    ):
        self.graph = graph
        self.registry = registry
        self.ctx = ctx
        self.manifest = manifest
        self.settings: EngineSettings = validate_engine_config(ctx.config)
        self.propagator = StatusPropagator(graph)

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------
    def _execute(self, node: StepNode) -> Optional[Dict[str, Any]]:
        unit = self.registry.create(node)
        metrics = unit.perform(self.ctx)
        return dict(metrics or {})

    # ------------------------------------------------------------------
    # Resultados
    # ------------------------------------------------------------------
    def _mk_result(
        self,
        node: StepNode,
        *,
        status: ResultStatus,
        summary: str,
        metrics: Optional[Dict[str, Any]] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> StepResult:
        artifacts = {}
        if status is ResultStatus.SUCCESS:
            artifacts = {o: str(self.ctx.resolve_path(o)) for o in node.outputs}
        return StepResult(
            step_id=node.id,
            unit_name=node.unit_name,
            status=status,
            summary=summary,
            order=node.order,
            metrics=dict(metrics or {}),
            warnings=self.ctx.warnings_for(node.id),
            artifacts=artifacts,
            payload=dict(payload or {}),
        )

    def _dispatch(self, pool: ThreadPoolExecutor, node: StepNode) -> Future:
        self.ctx.log(
            step_id=node.id,
            level="INFO",
            message="step dispatched",
            unit=node.unit_name,
            order=node.order,
        )
        if self.manifest is not None:
            step_started(self.manifest, step_id=node.id, unit_name=node.unit_name, ts=_now(), order=node.order)
        return pool.submit(self._execute, node)

    def _on_success(self, node: StepNode, metrics: Dict[str, Any]) -> StepResult:
        promoted = self.propagator.mark_done(node)
        result = self._mk_result(node, status=ResultStatus.SUCCESS, summary="done", metrics=metrics)
        self.ctx.log(
            step_id=node.id,
            level="INFO",
            message="step done",
            promoted=[n.id for n in promoted],
        )
        if self.manifest is not None:
            step_finished(self.manifest, step_id=node.id, ts=_now(), result=_result_to_dict(result))
        return result

    def _on_failure(self, node: StepNode, exc: Exception) -> StepResult:
        error = to_error_payload(exc, step=node.id)
        blocked = self.propagator.mark_failed(node)
        result = self._mk_result(
            node,
            status=ResultStatus.FAILED,
            summary=error.message,
            payload={"error": error.to_dict()},
        )
        self.ctx.log(
            step_id=node.id,
            level="ERROR",
            message="step failed",
            error_type=error.type,
            blocked=[n.id for n in blocked],
        )
        if self.manifest is not None:
            step_failed(self.manifest, step_id=node.id, ts=_now(), error=error.to_dict())
        return result

    def _skip_reason(self, node: StepNode, failed: Set[str]) -> str:
        if node.status is NodeStatus.DONE:
            return "already done"
        if node.status is NodeStatus.FAILED:
            return "failed in a previous run"
        for f in sorted(failed):
            if node in self.propagator.blocked_by(f):
                return f"blocked by failed prerequisite {f}"
        return "not dispatched (fail-fast)"

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------
    def run(self) -> RunResult:
        with self.graph.lock:
            self.propagator.reconcile()
            assign_topological_order(self.graph)
            failed_before = {n.id for n in self.graph.nodes() if n.status is NodeStatus.FAILED}

        self.ctx.log(
            step_id=PLAN_STEP_ID,
            level="INFO",
            message="run started",
            steps=len(self.graph),
            max_workers=self.settings.max_workers,
            fail_fast=self.settings.fail_fast,
        )

        results: Dict[str, StepResult] = {}
        dispatched: Set[str] = set()
        failed: Set[str] = set()
        in_flight: Dict[Future, StepNode] = {}
        stop = False

        with ThreadPoolExecutor(max_workers=self.settings.max_workers) as pool:
            while True:
                if not stop:
                    for node in runnable_nodes(self.graph):
                        if node.id not in dispatched:
                            dispatched.add(node.id)
                            in_flight[self._dispatch(pool, node)] = node

                if not in_flight:
                    break

                done, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
                for fut in sorted(done, key=lambda f: in_flight[f].id):
                    node = in_flight.pop(fut)
                    try:
                        metrics = fut.result()
                    except Exception as e:
                        results[node.id] = self._on_failure(node, e)
                        failed.add(node.id)
                        if self.settings.fail_fast:
                            stop = True
                    else:
                        results[node.id] = self._on_success(node, metrics or {})

        for node in self.graph.nodes():
            if node.id in results:
                continue
            reason = self._skip_reason(node, failed | failed_before)
            results[node.id] = self._mk_result(node, status=ResultStatus.SKIPPED, summary=reason)
            self.ctx.log(step_id=node.id, level="WARNING", message="step blocked", reason=reason)
            if self.manifest is not None:
                step_skipped(self.manifest, step_id=node.id, ts=_now(), reason=reason)

        run_result = RunResult(steps=results)
        self.ctx.log(
            step_id=PLAN_STEP_ID,
            level="INFO" if run_result.ok else "ERROR",
            message="run finished",
            succeeded=len(run_result.by_status(ResultStatus.SUCCESS)),
            failed=len(run_result.by_status(ResultStatus.FAILED)),
            skipped=len(run_result.by_status(ResultStatus.SKIPPED)),
        )
        return run_result
