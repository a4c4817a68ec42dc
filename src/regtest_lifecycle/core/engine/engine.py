# src/regtest_lifecycle/core/engine/engine.py
"""
Engine de execução do pipeline.

O Engine planeja (via planner) e executa as operações registradas no
grafo, no máximo uma vez por run, respeitando as dependências declaradas.

Políticas (controladas por configuração):
- `engine.fail_fast` (default true): a primeira falha encerra a run;
  operações ainda não iniciadas nunca executam.
- `engine.max_workers` (default 1): operações independentes podem ser
  executadas em paralelo num pool de threads. Uma operação só é
  submetida depois que todas as suas dependências terminaram.
- `steps.<nome>.enabled` (default true): operação desabilitada é SKIPPED.
- Dependência FAILED → dependente SKIPPED ("skipped due to failed dependency").
- Dependência SKIPPED → dependente SKIPPED ("skipped due to skipped dependency").

Erros:
- Exceções viram StepResult FAILED com payload["error"] serializável.
  A mensagem é `str(exc)` sem re-embrulho.
- A exceção original é preservada em `RunResult.errors` e pode ser
  relançada intacta com `RunResult.raise_for_failure()`.
"""

from __future__ import annotations

import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from regtest_lifecycle.core.pipeline.context import RunContext
from regtest_lifecycle.core.pipeline.step import Step
from regtest_lifecycle.core.pipeline.types import StepKind, StepResult, StepStatus

from regtest_lifecycle.core.errors import (
    EXCEPTION_TYPE_CODES,
    LifecycleErrorPayload,
    engine_configuration_error,
    engine_execution_error,
)
from regtest_lifecycle.core.exceptions import EngineConfigurationError, LifecycleException

from .planner import plan_execution


@dataclass(frozen=True)
class RunResult:
    """Resultado agregado de uma execução de pipeline."""

    steps: Dict[str, StepResult] = field(default_factory=dict)
    errors: Dict[str, Exception] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(r.status != StepStatus.FAILED for r in self.steps.values())

    def failed(self) -> List[str]:
        return [sid for sid in self.order if self.steps[sid].status == StepStatus.FAILED]

    def raise_for_failure(self) -> None:
        """Relança, sem alteração, a exceção da primeira operação que falhou."""
        for sid in self.failed():
            if sid in self.errors:
                raise self.errors[sid]


class Engine:
    """Engine canônico (planner + executor)."""

    def __init__(
        self,
        *,
        steps: Sequence[Step],
        ctx: RunContext,
        targets: Optional[Iterable[str]] = None,
    ):
        self.steps: List[Step] = list(steps)
        self.ctx: RunContext = ctx
        self.targets: Optional[List[str]] = list(targets) if targets is not None else None

    # ------------------------------------------------------------------
    # Configuração
    # ------------------------------------------------------------------

    def _engine_cfg(self) -> dict:
        return (self.ctx.config or {}).get("engine", {}) or {}

    def _is_enabled(self, step_id: str) -> bool:
        steps_cfg = (self.ctx.config or {}).get("steps", {}) or {}
        step_cfg = steps_cfg.get(step_id, {}) or {}
        return bool(step_cfg.get("enabled", True))

    def _fail_fast(self) -> bool:
        return bool(self._engine_cfg().get("fail_fast", True))

    def _max_workers(self) -> int:
        value = self._engine_cfg().get("max_workers", 1)
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            payload = engine_configuration_error(
                message=f"engine.max_workers must be a positive integer, got {value!r}",
                details={"key": "engine.max_workers", "value": repr(value)},
            )
            raise EngineConfigurationError(
                message=payload.message, details=payload.details, hint=payload.hint
            )
        return value

    # ------------------------------------------------------------------
    # Erros: exceção -> LifecycleErrorPayload
    # ------------------------------------------------------------------

    def _exception_to_error(self, step_id: str, exc: Exception) -> LifecycleErrorPayload:
        if isinstance(exc, LifecycleException):
            name = exc.__class__.__name__
            return LifecycleErrorPayload(
                type=EXCEPTION_TYPE_CODES.get(name, name),
                message=str(exc),
                details=dict(exc.details or {}),
                hint=exc.hint,
                decision_required=bool(exc.decision_required),
            )

        return engine_execution_error(
            step=step_id,
            exc_type=exc.__class__.__name__,
            exc_message=str(exc),
        )

    # ------------------------------------------------------------------
    # Construção de resultados
    # ------------------------------------------------------------------

    def _kind_of(self, step: Step) -> StepKind:
        return getattr(step, "kind", None) or StepKind.TASK

    def _merge_warnings(self, step_id: str, existing: List[str]) -> List[str]:
        merged: List[str] = []
        for msg in list(existing) + list(self.ctx.warnings.get(step_id, [])):
            if msg not in merged:
                merged.append(msg)
        return merged

    def _mk_result(
        self,
        *,
        step: Step,
        status: StepStatus,
        summary: str,
        payload: Optional[dict] = None,
    ) -> StepResult:
        return StepResult(
            step_id=step.id,
            kind=self._kind_of(step),
            status=status,
            summary=summary,
            warnings=self._merge_warnings(step.id, []),
            payload=dict(payload or {}),
        )

    def _precheck(self, step: Step, results: Dict[str, StepResult]) -> Optional[StepResult]:
        """Decide SKIPPED antes da execução (config, dependência falhou ou não executou).

        Uma dependência SKIPPED nunca completou: o dependente também é
        SKIPPED (ex.: stop desabilitado nunca libera o clean da instância).
        """
        if not self._is_enabled(step.id):
            self.ctx.log(step_id=step.id, level="info", message="step skipped", reason="config")
            return self._mk_result(step=step, status=StepStatus.SKIPPED, summary="skipped by config")

        deps = list(getattr(step, "depends_on", []) or [])
        failed_deps = [d for d in deps if d in results and results[d].status == StepStatus.FAILED]
        skipped_deps = [d for d in deps if d in results and results[d].status == StepStatus.SKIPPED]
        if skipped_deps and not failed_deps:
            self.ctx.log(
                step_id=step.id,
                level="warning",
                message="step skipped",
                reason="skipped dependency",
                skipped_dependencies=skipped_deps,
            )
            return self._mk_result(
                step=step,
                status=StepStatus.SKIPPED,
                summary="skipped due to skipped dependency",
                payload={"skipped_dependencies": skipped_deps},
            )
        if failed_deps:
            self.ctx.log(
                step_id=step.id,
                level="warning",
                message="step skipped",
                reason="failed dependency",
                failed_dependencies=failed_deps,
            )
            return self._mk_result(
                step=step,
                status=StepStatus.SKIPPED,
                summary="skipped due to failed dependency",
                payload={"failed_dependencies": failed_deps},
            )
        return None

    def _execute(self, step: Step) -> Tuple[StepResult, Optional[Exception]]:
        sid = step.id
        self.ctx.log(step_id=sid, level="info", message="step started", kind=self._kind_of(step).value)
        started = time.monotonic()

        try:
            step_result = step.run(self.ctx)
        except Exception as e:
            duration_ms = int((time.monotonic() - started) * 1000)
            error = self._exception_to_error(sid, e)
            self.ctx.log(
                step_id=sid,
                level="error",
                message="step failed",
                error_type=error.type,
                error_message=error.message,
                duration_ms=duration_ms,
            )
            failed = self._mk_result(
                step=step,
                status=StepStatus.FAILED,
                summary=error.message,
                payload={"error": error.to_dict()},
            )
            return replace(failed, metrics={"duration_ms": duration_ms}), e

        duration_ms = int((time.monotonic() - started) * 1000)

        if not isinstance(step_result, StepResult):
            error = engine_configuration_error(
                message="Step retornou tipo inválido",
                details={
                    "step_id": sid,
                    "expected": "StepResult",
                    "received": type(step_result).__name__,
                },
                hint="Ajuste a operação para retornar StepResult",
            )
            self.ctx.log(step_id=sid, level="error", message="step failed", error_type=error.type)
            failed = self._mk_result(
                step=step,
                status=StepStatus.FAILED,
                summary=error.message,
                payload={"error": error.to_dict()},
            )
            return failed, None

        metrics = dict(step_result.metrics or {})
        metrics.setdefault("duration_ms", duration_ms)
        enriched = replace(
            step_result,
            step_id=sid,
            kind=step_result.kind or self._kind_of(step),
            warnings=self._merge_warnings(sid, step_result.warnings or []),
            metrics=metrics,
        )
        level = "error" if enriched.status == StepStatus.FAILED else "info"
        self.ctx.log(
            step_id=sid,
            level=level,
            message="step finished",
            status=enriched.status.value,
            duration_ms=duration_ms,
        )
        return enriched, None

    # ------------------------------------------------------------------
    # Execução
    # ------------------------------------------------------------------

    def run(self) -> RunResult:
        ordered = plan_execution(self.steps, targets=self.targets)
        max_workers = self._max_workers()

        if max_workers == 1:
            return self._run_sequential(ordered)
        return self._run_parallel(ordered, max_workers)

    def _run_sequential(self, ordered: List[Step]) -> RunResult:
        results: Dict[str, StepResult] = {}
        errors: Dict[str, Exception] = {}
        order: List[str] = []

        for step in ordered:
            sid = step.id
            result = self._precheck(step, results)
            if result is None:
                result, exc = self._execute(step)
                if exc is not None:
                    errors[sid] = exc

            results[sid] = result
            order.append(sid)

            if result.status == StepStatus.FAILED and self._fail_fast():
                break

        return RunResult(steps=results, errors=errors, order=order)

    def _run_parallel(self, ordered: List[Step], max_workers: int) -> RunResult:
        results: Dict[str, StepResult] = {}
        errors: Dict[str, Exception] = {}
        order: List[str] = []

        pending: List[Step] = list(ordered)
        running: Dict[Future, Step] = {}
        aborted = False

        def _record(step: Step, result: StepResult) -> None:
            nonlocal aborted
            results[step.id] = result
            order.append(step.id)
            if result.status == StepStatus.FAILED and self._fail_fast():
                aborted = True

        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="lifecycle") as pool:
            while pending or running:
                progressed = True
                while progressed and not aborted:
                    progressed = False
                    for step in list(pending):
                        deps = getattr(step, "depends_on", []) or []
                        if not all(d in results for d in deps):
                            continue
                        pending.remove(step)
                        progressed = True
                        skipped = self._precheck(step, results)
                        if skipped is not None:
                            _record(step, skipped)
                            continue
                        running[pool.submit(self._execute, step)] = step

                if not running:
                    break

                done, _ = wait(list(running), return_when=FIRST_COMPLETED)
                for future in done:
                    step = running.pop(future)
                    result, exc = future.result()
                    if exc is not None:
                        errors[step.id] = exc
                    _record(step, result)

        return RunResult(steps=results, errors=errors, order=order)
