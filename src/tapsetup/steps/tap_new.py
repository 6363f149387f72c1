"""tap-new step.

CONTRACT
- Tap path: $(brew --repository)/Library/Taps/<owner>/<repo_name>
- check(): ALREADY_DONE when the tap path exists and is a git repo
- apply(): `brew tap-new <owner>/<repo_name>`; dry-run only resolves the path
- Artifacts: tap_path
- Failure:
  - ApplyFailed when the path exists but is not a git repo, or brew fails
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..errors import ApplyFailed, StepError, ValidateFailed
from .base import CheckResult, Step, StepContext


@dataclass
class TapNew(Step):
    name: str = "tap-new"
    description: str = "Create local tap (brew tap-new)"

    def tap_path(self, ctx: StepContext, error: type[StepError] = ApplyFailed) -> Path:
        res = self.require_ok(ctx.tools.brew.repository(), "brew --repository", error)
        base = res.stdout.strip()
        if not base:
            raise error(self.name, "brew --repository returned empty output")
        return Path(base) / "Library" / "Taps" / ctx.inputs.owner / ctx.inputs.repo_name

    def check(self, ctx: StepContext) -> CheckResult:
        path = self.tap_path(ctx)
        if not path.exists():
            return CheckResult.needs_apply(f"{path} does not exist")
        if not (path / ".git").is_dir():
            raise ApplyFailed(self.name, f"tap path exists but is not a git repo: {path}")
        return CheckResult.already_done(f"{path} exists", tap_path=str(path))

    def apply(self, ctx: StepContext, dry_run: bool) -> dict[str, Any]:
        path = self.tap_path(ctx)
        if not dry_run:
            self.require_ok(ctx.tools.brew.tap_new(ctx.inputs.repo_slug), "brew tap-new")
        return {"tap_path": str(path)}

    def validate(self, ctx: StepContext, artifacts: dict[str, Any]) -> None:
        path = Path(artifacts["tap_path"])
        if not path.is_dir():
            raise ValidateFailed(self.name, f"tap path was not created: {path}")
        if not (path / ".git").is_dir():
            raise ValidateFailed(self.name, f"tap path is not a git repo: {path}")
