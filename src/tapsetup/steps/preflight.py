"""Preflight step.

CONTRACT
- check(): always NEEDS_APPLY (the environment can change between runs)
- apply(): git/gh/brew on PATH and gh authenticated; read-only, same in dry-run
- Artifacts: none
- Failure:
  - PreflightMissingTool listing every missing tool
  - AuthRequired when `gh auth status` fails
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..doctor import AUTH_ITEM, doctor_report
from ..errors import AuthRequired, PreflightMissingTool
from .base import Step, StepContext


@dataclass
class Preflight(Step):
    name: str = "preflight"
    description: str = "Preflight checks"

    def apply(self, ctx: StepContext, dry_run: bool) -> dict[str, Any]:
        report = doctor_report(ctx.tools)
        binaries = ctx.tools.binaries()
        missing = [i.name for i in report.failed() if i.name in binaries]
        if missing:
            raise PreflightMissingTool(self.name, missing)
        if any(i.name == AUTH_ITEM for i in report.failed()):
            raise AuthRequired(self.name, "GitHub CLI is not authenticated (run `gh auth login`)")
        return {}
