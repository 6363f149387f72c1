"""repo-create step.

CONTRACT
- check(): `gh repo view`; missing -> NEEDS_APPLY; present with matching origin -> ALREADY_DONE
- apply(): `git branch -M <branch>` if needed, then `gh repo create --source --push`
- Artifacts: repo_url
- Failure:
  - RemoteAlreadyExists when the repo exists but the tap's origin does not point at it
  - ApplyFailed / ValidateFailed on gh or git errors
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..errors import ApplyFailed, RemoteAlreadyExists, StepError, ValidateFailed
from ..tools.gh import is_repo_missing
from .base import CheckResult, Step, StepContext

_VIEW_FIELDS = "name,url,sshUrl"


def origin_matches(origin: str, info: dict[str, Any]) -> bool:
    url = str(info.get("url", ""))
    candidates = {str(info.get("sshUrl", "")), url, f"{url}.git"}
    return origin in candidates


@dataclass
class RepoCreate(Step):
    name: str = "repo-create"
    description: str = "Create GitHub repo and push"
    requires: tuple[str, ...] = ("tap_path",)

    def view(self, ctx: StepContext, error: type[StepError] = ApplyFailed) -> dict[str, Any] | None:
        res = ctx.tools.gh.repo_view(ctx.inputs.repo_slug, _VIEW_FIELDS)
        if not res.ok:
            if is_repo_missing(res.stderr):
                return None
            raise error(self.name, f"gh repo view failed: {res.output()}")
        try:
            data = json.loads(res.stdout)
        except json.JSONDecodeError as e:
            raise error(self.name, f"failed to parse gh repo view output: {e}") from e
        if not isinstance(data, dict):
            raise error(self.name, "unexpected gh repo view output")
        return data

    def origin(self, ctx: StepContext, tap_path: Path, error: type[StepError] = ApplyFailed) -> str | None:
        if not (tap_path / ".git").exists():
            return None
        res = ctx.tools.git.remote_url(tap_path, ctx.config.remote)
        if res.ok:
            return res.stdout.strip()
        text = res.stderr.lower()
        if "no such remote" in text or "not a git repository" in text:
            return None
        raise error(self.name, f"git remote get-url failed: {res.output()}")

    def _confirm(
        self,
        ctx: StepContext,
        info: dict[str, Any],
        mismatch: type[StepError],
        failure: type[StepError],
    ) -> str:
        origin = self.origin(ctx, ctx.tap_path, failure)
        if origin is not None and origin_matches(origin, info):
            return str(info.get("url", ""))
        remote = ctx.config.remote
        where = f"is not set in {ctx.tap_path}" if origin is None else f"points to {origin}"
        raise mismatch(
            self.name,
            f"GitHub repo {ctx.inputs.repo_slug} already exists but the '{remote}' remote {where}",
        )

    def check(self, ctx: StepContext) -> CheckResult:
        info = self.view(ctx)
        if info is None:
            return CheckResult.needs_apply(f"{ctx.inputs.repo_slug} does not exist")
        url = self._confirm(ctx, info, RemoteAlreadyExists, ApplyFailed)
        return CheckResult.already_done(f"{ctx.inputs.repo_slug} exists", repo_url=url)

    def ensure_branch(self, ctx: StepContext) -> None:
        branch = ctx.inputs.branch
        res = self.require_ok(ctx.tools.git.current_branch(ctx.tap_path), "git rev-parse")
        if res.stdout.strip() == branch:
            return
        self.require_ok(ctx.tools.git.rename_branch(ctx.tap_path, branch), "git branch -M")

    def apply(self, ctx: StepContext, dry_run: bool) -> dict[str, Any]:
        slug = ctx.inputs.repo_slug
        if dry_run:
            return {"repo_url": f"https://github.com/{slug}"}

        self.ensure_branch(ctx)
        self.require_ok(
            ctx.tools.gh.repo_create(
                slug,
                source=ctx.tap_path,
                remote=ctx.config.remote,
                visibility=ctx.inputs.visibility.value,
            ),
            "gh repo create",
        )
        info = self.view(ctx)
        if info is None:
            raise ApplyFailed(self.name, f"{slug} is not visible after gh repo create")
        return {"repo_url": str(info.get("url") or f"https://github.com/{slug}")}

    def validate(self, ctx: StepContext, artifacts: dict[str, Any]) -> None:
        info = self.view(ctx, ValidateFailed)
        if info is None:
            raise ValidateFailed(self.name, f"{ctx.inputs.repo_slug} does not exist on GitHub")
        self._confirm(ctx, info, ValidateFailed, ValidateFailed)
