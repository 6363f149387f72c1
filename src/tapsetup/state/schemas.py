from __future__ import annotations

"""Run state schemas.

CONTRACT
- Inputs: Pydantic models
- Outputs:
  - Validated JSON-serializable StepRecord / RunState
- Invariants:
  - RunState.steps keys are the pipeline step names, in pipeline order
  - Unknown fields are ignored on load (older readers accept newer files)
  - All schemas have schema_version int field
- Failure:
  - Raises ValidationError on schema mismatch
"""

import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from ..inputs import RunInputs

SCHEMA_VERSION = 1


def now_iso() -> str:
    return datetime.datetime.now(datetime.UTC).isoformat(timespec="seconds")


class StepStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"

    @property
    def done(self) -> bool:
        """Counts as succeeded for downstream dependency purposes."""
        return self in (StepStatus.SUCCEEDED, StepStatus.SKIPPED)


class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    HALTED = "halted"
    FATAL = "fatal"


class StepRecord(BaseModel):
    name: str
    status: StepStatus = StepStatus.PENDING
    error: str | None = None
    error_kind: str | None = None
    artifacts: dict[str, Any] = Field(default_factory=dict)
    started_at: str | None = None
    finished_at: str | None = None
    dry_run: bool = False


class RunState(BaseModel):
    schema_version: int = SCHEMA_VERSION
    run_id: str
    inputs: RunInputs
    steps: dict[str, StepRecord]
    status: RunStatus = RunStatus.PENDING
    created_at: str = Field(default_factory=now_iso)
    updated_at: str = Field(default_factory=now_iso)

    @classmethod
    def fresh(cls, run_id: str, inputs: RunInputs, step_names: tuple[str, ...]) -> "RunState":
        return cls(
            run_id=run_id,
            inputs=inputs,
            steps={name: StepRecord(name=name) for name in step_names},
        )

    def collected_artifacts(self) -> dict[str, Any]:
        """Artifacts of succeeded/skipped steps, later steps winning."""
        merged: dict[str, Any] = {}
        for rec in self.steps.values():
            if rec.status.done:
                merged.update(rec.artifacts)
        return merged

    def failed_step(self) -> StepRecord | None:
        for rec in self.steps.values():
            if rec.status is StepStatus.FAILED:
                return rec
        return None
