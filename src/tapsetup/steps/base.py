from __future__ import annotations

"""Step protocol definition.

CONTRACT
- Inputs: StepContext (run state, inputs, tools, config, upstream artifacts)
- Outputs:
  - check(): CheckResult (ALREADY_DONE with artifacts, or NEEDS_APPLY); read-only
  - apply(): artifacts dict; with dry_run=True computes them without mutating anything
  - validate(): None; post-condition check after a real apply
- Invariants:
  - check() is idempotent and side-effect free (safe on every resume)
  - requires lists artifact keys that earlier steps must have produced
- Failure:
  - Raise StepError subclasses; anything else is wrapped by the Runner
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from ..config import AppConfig
from ..errors import ApplyFailed, StepError
from ..inputs import RunInputs
from ..state.schemas import RunState
from ..tools.base import Toolbox
from ..util.events import EventLog
from ..util.shell import CmdResult


class Probe(str, Enum):
    ALREADY_DONE = "already_done"
    NEEDS_APPLY = "needs_apply"


@dataclass(frozen=True)
class CheckResult:
    probe: Probe
    artifacts: dict[str, Any] = field(default_factory=dict)
    detail: str = ""

    @classmethod
    def already_done(cls, detail: str = "", **artifacts: Any) -> "CheckResult":
        return cls(Probe.ALREADY_DONE, dict(artifacts), detail)

    @classmethod
    def needs_apply(cls, detail: str = "") -> "CheckResult":
        return cls(Probe.NEEDS_APPLY, {}, detail)

    @property
    def done(self) -> bool:
        return self.probe is Probe.ALREADY_DONE


@dataclass
class StepContext:
    state: RunState
    tools: Toolbox
    config: AppConfig
    artifacts: dict[str, Any] = field(default_factory=dict)
    events: EventLog | None = None

    @property
    def inputs(self) -> RunInputs:
        return self.state.inputs

    @property
    def tap_path(self) -> Path:
        return Path(self.artifacts["tap_path"])


class Step:
    name: str = ""
    description: str = ""
    requires: tuple[str, ...] = ()

    def check(self, ctx: StepContext) -> CheckResult:
        return CheckResult.needs_apply()

    def apply(self, ctx: StepContext, dry_run: bool) -> dict[str, Any]:
        raise NotImplementedError

    def validate(self, ctx: StepContext, artifacts: dict[str, Any]) -> None:
        return None

    def require_ok(
        self, res: CmdResult, what: str, error: type[StepError] = ApplyFailed
    ) -> CmdResult:
        if not res.ok:
            detail = res.output() or "no output"
            raise error(self.name, f"{what} returned non-zero status {res.returncode}: {detail}")
        return res
