"""commit-push step.

CONTRACT
- check(): NEEDS_APPLY while the remote is not configured; ALREADY_DONE when
  the work tree is clean and local HEAD equals the
  remote branch head (`git ls-remote <remote> refs/heads/<branch>`)
- apply(): `git add -A` + `git commit` when dirty, then `git push -u <remote> <branch>`
- Artifacts: branch, head
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..errors import ApplyFailed, StepError, ValidateFailed
from .base import CheckResult, Step, StepContext


def remote_missing(output: str) -> bool:
    text = output.lower()
    return "no such remote" in text or "does not appear to be a git repository" in text


@dataclass(frozen=True)
class SyncInfo:
    dirty: bool
    local_head: str | None
    remote_head: str | None

    @property
    def in_sync(self) -> bool:
        return not self.dirty and self.local_head is not None and self.local_head == self.remote_head


@dataclass
class CommitPush(Step):
    name: str = "commit-push"
    description: str = "Commit and push changes"
    requires: tuple[str, ...] = ("tap_path",)

    def sync_info(self, ctx: StepContext, tap: Path, error: type[StepError] = ApplyFailed) -> SyncInfo:
        git = ctx.tools.git
        status = self.require_ok(git.status_porcelain(tap), "git status --porcelain", error)
        head = git.head(tap)
        local = head.stdout.strip() if head.ok and head.stdout.strip() else None
        remote = self.require_ok(
            git.ls_remote(tap, ctx.config.remote, ctx.inputs.branch), "git ls-remote", error
        )
        fields = remote.stdout.split()
        return SyncInfo(
            dirty=bool(status.stdout.strip()),
            local_head=local,
            remote_head=fields[0] if fields else None,
        )

    def check(self, ctx: StepContext) -> CheckResult:
        tap = ctx.tap_path
        if not (tap / ".git").exists():
            return CheckResult.needs_apply(f"{tap} is not a git repo yet")
        remote = ctx.config.remote
        res = ctx.tools.git.remote_url(tap, remote)
        if not res.ok and remote_missing(res.output()):
            return CheckResult.needs_apply(f"remote '{remote}' is not configured yet")
        try:
            info = self.sync_info(ctx, tap)
        except ApplyFailed as e:
            if remote_missing(e.cause):
                return CheckResult.needs_apply(f"remote '{remote}' is not reachable yet")
            raise
        if info.in_sync:
            return CheckResult.already_done(
                "local and remote heads match", branch=ctx.inputs.branch, head=info.local_head
            )
        return CheckResult.needs_apply("work tree dirty or branch not pushed")

    def apply(self, ctx: StepContext, dry_run: bool) -> dict[str, Any]:
        branch = ctx.inputs.branch
        if dry_run:
            return {"branch": branch, "head": None}

        tap = ctx.tap_path
        git = ctx.tools.git
        info = self.sync_info(ctx, tap)
        if info.dirty:
            self.require_ok(git.add_all(tap), "git add")
            res = git.commit(tap, ctx.config.commit_message)
            if not res.ok and "nothing to commit" not in res.output().lower():
                self.require_ok(res, "git commit")
        self.require_ok(git.push(tap, ctx.config.remote, branch), "git push")
        head = self.require_ok(git.head(tap), "git rev-parse HEAD")
        return {"branch": branch, "head": head.stdout.strip()}

    def validate(self, ctx: StepContext, artifacts: dict[str, Any]) -> None:
        info = self.sync_info(ctx, ctx.tap_path, ValidateFailed)
        if info.dirty:
            raise ValidateFailed(self.name, "work tree still has uncommitted changes")
        if info.local_head != info.remote_head:
            raise ValidateFailed(
                self.name,
                f"local HEAD {info.local_head} does not match "
                f"{ctx.config.remote}/{ctx.inputs.branch} {info.remote_head}",
            )
