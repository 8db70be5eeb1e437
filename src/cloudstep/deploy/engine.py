# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/deploy/engine.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ..config.models import RunConfiguration
from ..ledger.interface import Ledger
from ..observers.dispatcher import EventBus
from ..observers.events import (
    new_ctx,
    stamp,
    RunStarted,
    RunSummary,
    StepFailed,
    StepSkipped,
    StepStarted,
    StepSucceeded,
)
from ..utils.execution import ExecutionContext
from .errors import StepExecutionError, StepFailure
from .registry import ordered
from .steps import Step, StepResult

log = logging.getLogger("cloudstep")


@dataclass
class StepOutcome:
    step_id: str
    position: int
    status: str                 # "OK" | "SKIPPED" | "FAILED"
    duration_ms: int = 0
    changed: bool = False
    message: Optional[str] = None


@dataclass
class RunReport:
    outcomes: List[StepOutcome] = field(default_factory=list)

    def add(self, outcome: StepOutcome) -> None:
        self.outcomes.append(outcome)

    @property
    def executed(self) -> List[str]:
        return [o.step_id for o in self.outcomes if o.status == "OK"]

    @property
    def skipped(self) -> List[str]:
        return [o.step_id for o in self.outcomes if o.status == "SKIPPED"]

    @property
    def failed(self) -> Optional[StepOutcome]:
        return next((o for o in self.outcomes if o.status == "FAILED"), None)

    def summary(self) -> str:
        failed = 1 if self.failed else 0
        return f"OK={len(self.executed)} SKIPPED={len(self.skipped)} FAILED={failed}"


class WorkflowEngine:
    """
    Drives an ordered sequence of steps against a ledger.

    - A step whose id is in the ledger is skipped; its body is not called.
    - Any other step's body is called; on success the id is recorded, on
      failure the run stops right there and nothing is recorded for it.
    - There are no retries. Re-invoking run() resumes at the first step the
      ledger does not know about.

    The engine keeps no state between runs besides what the ledger holds.
    Precondition: only one engine may work a given ledger at a time; nothing
    here locks the backing store.
    """

    def __init__(
        self,
        ledger: Ledger,
        *,
        bus: Optional[EventBus] = None,
        ctx: Optional[ExecutionContext] = None,
        run_id: Optional[str] = None,
    ):
        self.ledger = ledger
        self.bus = bus or EventBus([])
        self.ctx = ctx or ExecutionContext()
        self.run_id = run_id or self.ctx.run_id

    def pending(self, steps: Iterable[Step]) -> List[Step]:
        return [s for s in ordered(steps) if not self.ledger.is_complete(s.id)]

    def run(self, steps: Iterable[Step], cfg: RunConfiguration) -> RunReport:
        sequence = ordered(steps)
        report = RunReport()
        run_ctx = new_ctx(run_id=self.run_id, host=cfg.controller_host)

        self.bus.emit(
            RunStarted(
                steps=[s.id for s in sequence],
                pending=[s.id for s in sequence if not self.ledger.is_complete(s.id)],
                dry_run=self.ctx.dry_run,
                **run_ctx,
            )
        )

        for s in sequence:
            # The ledger is trusted as-is; the body's own checks are not consulted.
            if self.ledger.is_complete(s.id):
                log.info("[%02d] %s already complete, skipping", s.position, s.id)
                report.add(StepOutcome(step_id=s.id, position=s.position, status="SKIPPED"))
                self.bus.emit(StepSkipped(step_id=s.id, position=s.position, **stamp(run_ctx)))
                continue

            log.info("[%02d] %s: %s", s.position, s.id, s.label)
            self.bus.emit(
                StepStarted(step_id=s.id, position=s.position, description=s.label, **stamp(run_ctx))
            )

            t0 = time.monotonic()
            try:
                result = self._invoke(s, cfg)
            except Exception as exc:
                duration_ms = int((time.monotonic() - t0) * 1000)
                self._abort(report, run_ctx, s, duration_ms, exc)
                raise StepExecutionError(s.id, s.position, exc, report=report) from exc

            duration_ms = int((time.monotonic() - t0) * 1000)

            recorded = not self.ctx.dry_run
            if recorded:
                try:
                    self.ledger.mark_complete(s.id)
                except Exception as exc:
                    # The body finished but its completion is not durable; it reruns next time.
                    self._abort(report, run_ctx, s, duration_ms, exc)
                    raise StepExecutionError(s.id, s.position, exc, report=report) from exc
            else:
                log.info("[%02d] %s: dry-run, not recording completion", s.position, s.id)

            report.add(
                StepOutcome(
                    step_id=s.id,
                    position=s.position,
                    status="OK",
                    duration_ms=duration_ms,
                    changed=result.changed,
                    message=result.message,
                )
            )
            self.bus.emit(
                StepSucceeded(
                    step_id=s.id,
                    position=s.position,
                    duration_ms=duration_ms,
                    message=result.message,
                    recorded=recorded,
                    **stamp(run_ctx),
                )
            )

        self.bus.emit(
            RunSummary(
                status="OK",
                executed=len(report.executed),
                skipped=len(report.skipped),
                **stamp(run_ctx),
            )
        )
        log.info("run complete: %s", report.summary())
        return report

    # ------------------------------------------------------------------

    def _invoke(self, s: Step, cfg: RunConfiguration) -> StepResult:
        result = s.body(cfg)
        if result is None:
            return StepResult.done()
        if not isinstance(result, StepResult):
            raise TypeError(
                f"step '{s.id}' body returned {type(result).__name__}, expected StepResult or None"
            )
        if not result.ok:
            raise StepFailure(result.message or "step reported failure")
        return result

    def _abort(
        self,
        report: RunReport,
        run_ctx: dict,
        s: Step,
        duration_ms: int,
        exc: BaseException,
    ) -> None:
        error = str(exc) or type(exc).__name__
        log.error("[%02d] %s failed: %s", s.position, s.id, error)
        log.debug("step %s traceback", s.id, exc_info=exc)

        report.add(
            StepOutcome(
                step_id=s.id,
                position=s.position,
                status="FAILED",
                duration_ms=duration_ms,
                message=error,
            )
        )
        self.bus.emit(
            StepFailed(
                step_id=s.id,
                position=s.position,
                duration_ms=duration_ms,
                error=error,
                **stamp(run_ctx),
            )
        )
        self.bus.emit(
            RunSummary(
                status="FAILED",
                executed=len(report.executed),
                skipped=len(report.skipped),
                failed_step=s.id,
                error=error,
                **stamp(run_ctx),
            )
        )
