"""validate step.

CONTRACT
- check(): always NEEDS_APPLY (it is itself the check)
- apply(): `brew tap <identifier>` unless already tapped, then the optional
  audit/test/install commands enabled in config
- validate(): remote branch reachable, formula file present, tap registered
- Artifacts: tap_identifier
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..errors import ApplyFailed, StepError, ValidateFailed
from .base import Step, StepContext


@dataclass
class ValidateTap(Step):
    name: str = "validate"
    description: str = "Validate tap is registered"
    requires: tuple[str, ...] = ("tap_path", "formula_path")

    def is_tapped(self, ctx: StepContext, error: type[StepError] = ApplyFailed) -> bool:
        res = self.require_ok(ctx.tools.brew.taps(), "brew tap", error)
        candidates = {ctx.inputs.tap_identifier, ctx.inputs.repo_slug}
        return any(line.strip() in candidates for line in res.stdout.splitlines())

    def apply(self, ctx: StepContext, dry_run: bool) -> dict[str, Any]:
        identifier = ctx.inputs.tap_identifier
        if dry_run:
            return {"tap_identifier": identifier}

        brew = ctx.tools.brew
        if not self.is_tapped(ctx):
            self.require_ok(brew.tap(identifier), f"brew tap {identifier}")

        formula = f"{identifier}/{ctx.artifacts.get('formula_name') or ctx.inputs.resolved_formula_name}"
        checks = ctx.config.validate
        if checks.audit:
            self.require_ok(brew.audit(formula), f"brew audit {formula}")
        if checks.test:
            self.require_ok(brew.test(formula), f"brew test {formula}")
        if checks.install:
            self.require_ok(brew.install(formula), f"brew install {formula}")
        return {"tap_identifier": identifier}

    def validate(self, ctx: StepContext, artifacts: dict[str, Any]) -> None:
        remote, branch = ctx.config.remote, ctx.inputs.branch
        res = self.require_ok(
            ctx.tools.git.ls_remote(ctx.tap_path, remote, branch), "git ls-remote", ValidateFailed
        )
        if not res.stdout.strip():
            raise ValidateFailed(self.name, f"branch {branch} not found on {remote}")
        formula_path = Path(ctx.artifacts["formula_path"])
        if not formula_path.is_file():
            raise ValidateFailed(self.name, f"formula file missing: {formula_path}")
        if not self.is_tapped(ctx, ValidateFailed):
            raise ValidateFailed(self.name, f"{artifacts['tap_identifier']} is not listed by brew tap")
