from __future__ import annotations

"""Orchestrator for tap setup runs.

CONTRACT
- Inputs: RunState (created or loaded), RunStateStore, Toolbox, AppConfig
- Outputs (required):
  - RunOutcome (completed | halted | fatal) with the final state
  - <state_dir>/runs/<run_id>/state.json persisted after every step transition
  - <state_dir>/runs/<run_id>/events.jsonl
- Invariants:
  - Steps run strictly in pipeline order, one at a time
  - A succeeded or skipped step is never re-run; pending/failed steps are (re-)attempted
  - A failure is recorded and persisted before the halt is reported; no later step runs
  - No automatic retries within one invocation
- Failure:
  - StateNotFound / StateCorrupt / InputMismatchOnResume raised before any step runs
  - MissingDependency -> RunOutcome(status="fatal")
"""

import traceback
from dataclasses import dataclass
from typing import Any, Literal

from loguru import logger

from .config import AppConfig
from .errors import (
    ApplyFailed,
    InputMismatchOnResume,
    MissingDependency,
    StateCorrupt,
    StepError,
    ValidateFailed,
)
from .inputs import RunInputs
from .pipeline import build_pipeline
from .state.schemas import RunState, RunStatus, StepRecord, StepStatus, now_iso
from .state.store import RunStateStore
from .steps.base import Step, StepContext
from .tools.base import Toolbox
from .util.events import EventLog
from .util.redaction import Redactor

Outcome = Literal["completed", "halted", "fatal"]

_redactor = Redactor()


@dataclass(frozen=True)
class RunOutcome:
    status: Outcome
    state: RunState
    failed_step: str | None = None
    error: str | None = None
    error_kind: str | None = None
    resumable: bool = False

    @property
    def ok(self) -> bool:
        return self.status == "completed"


def start_run(store: RunStateStore, inputs: RunInputs, run_id: str | None = None) -> RunState:
    state = store.create(inputs, run_id=run_id)
    logger.info(f"Started run {state.run_id} for {inputs.repo_slug}")
    return state


def resume_run(
    store: RunStateStore, run_id: str, overrides: dict[str, Any] | None = None
) -> RunState:
    """Load a run for resumption; given inputs must match the stored ones."""
    state = store.load(run_id)
    diff = state.inputs.diff(overrides or {})
    if diff:
        raise InputMismatchOnResume(run_id, diff)
    logger.info(f"Resuming run {run_id} (status: {state.status.value})")
    return state


@dataclass
class Runner:
    store: RunStateStore
    tools: Toolbox
    config: AppConfig
    steps: list[Step] | None = None

    def __post_init__(self) -> None:
        if self.steps is None:
            self.steps = build_pipeline()

    def _check_shape(self, state: RunState) -> None:
        expected = [s.name for s in self.steps]
        found = list(state.steps)
        if found != expected:
            raise StateCorrupt(state.run_id, f"step records {found} do not match pipeline {expected}")

    def _persist(self, state: RunState) -> None:
        self.store.save(state)

    def _fail(
        self,
        state: RunState,
        rec: StepRecord,
        err: StepError,
        events: EventLog,
        run_status: RunStatus = RunStatus.HALTED,
    ) -> RunOutcome:
        detail = _redactor.redact(err.cause)
        rec.status = StepStatus.FAILED
        rec.error = detail
        rec.error_kind = err.kind
        rec.finished_at = now_iso()
        state.status = run_status
        self._persist(state)
        events.step(rec.name, "failed", kind=err.kind, error=detail)
        logger.error(f"{rec.name} failed ({err.kind}): {detail}")
        return RunOutcome(
            status="fatal" if run_status is RunStatus.FATAL else "halted",
            state=state,
            failed_step=rec.name,
            error=detail,
            error_kind=err.kind,
            resumable=err.resumable,
        )

    def _run_step(
        self, step: Step, rec: StepRecord, ctx: StepContext, events: EventLog, dry_run: bool
    ) -> RunOutcome | None:
        """One step transition; returns an outcome only when the run must stop."""
        state = ctx.state
        logger.info(f"==> {step.description} ({step.name})")
        rec.started_at = now_iso()
        rec.finished_at = None
        rec.error = None
        rec.error_kind = None

        try:
            probe = step.check(ctx)
        except StepError as e:
            return self._fail(state, rec, e, events)
        except Exception as e:
            logger.debug(traceback.format_exc())
            return self._fail(state, rec, ApplyFailed(step.name, f"check crashed: {e}"), events)

        if probe.done:
            rec.status = StepStatus.SKIPPED
            rec.artifacts = dict(probe.artifacts)
            rec.dry_run = False
            rec.finished_at = now_iso()
            self._persist(state)
            events.step(step.name, "skipped", detail=probe.detail)
            logger.info(f"    already done: {probe.detail}" if probe.detail else "    already done")
            return None

        try:
            artifacts = step.apply(ctx, dry_run)
        except StepError as e:
            return self._fail(state, rec, e, events)
        except Exception as e:
            logger.debug(traceback.format_exc())
            return self._fail(state, rec, ApplyFailed(step.name, str(e)), events)

        if not dry_run:
            try:
                step.validate(ctx, artifacts)
            except StepError as e:
                return self._fail(state, rec, e, events)
            except Exception as e:
                logger.debug(traceback.format_exc())
                return self._fail(state, rec, ValidateFailed(step.name, str(e)), events)

        rec.status = StepStatus.SUCCEEDED
        rec.artifacts = dict(artifacts)
        rec.dry_run = dry_run
        rec.finished_at = now_iso()
        self._persist(state)
        events.step(step.name, "succeeded", dry_run=dry_run, artifacts=artifacts)
        if dry_run:
            logger.info("    dry-run: planned, nothing changed")
        return None

    def run(self, state: RunState) -> RunOutcome:
        self._check_shape(state)
        dry_run = state.inputs.dry_run
        events = EventLog(self.store.run_dir(state.run_id) / "events.jsonl", run_id=state.run_id)
        ctx = StepContext(state=state, tools=self.tools, config=self.config, events=events)

        state.status = RunStatus.RUNNING
        self._persist(state)
        events.emit(action="run_start", dry_run=dry_run)

        # Last persisted form of the record being worked on.
        in_flight: StepRecord | None = None
        try:
            for step in self.steps:
                rec = state.steps[step.name]
                ctx.artifacts = state.collected_artifacts()

                if rec.status.done:
                    logger.debug(f"{step.name}: already {rec.status.value}")
                    continue

                missing = [key for key in step.requires if key not in ctx.artifacts]
                if missing:
                    return self._fail(
                        state, rec, MissingDependency(step.name, missing), events, RunStatus.FATAL
                    )

                in_flight = rec.model_copy(deep=True)
                outcome = self._run_step(step, rec, ctx, events, dry_run)
                in_flight = None
                if outcome is not None:
                    return outcome
        except KeyboardInterrupt:
            if in_flight is not None:
                state.steps[in_flight.name] = in_flight
            state.status = RunStatus.HALTED
            self._persist(state)
            events.emit(action="interrupted", step=in_flight.name if in_flight else None)
            logger.warning(f"Interrupted; resume with run id {state.run_id}")
            raise

        state.status = RunStatus.COMPLETED
        self._persist(state)
        events.emit(action="run_complete")
        logger.info(f"Run {state.run_id} completed")
        return RunOutcome(status="completed", state=state)


def run_pipeline(
    state: RunState, store: RunStateStore, tools: Toolbox, config: AppConfig | None = None
) -> RunOutcome:
    return Runner(store=store, tools=tools, config=config or AppConfig()).run(state)
