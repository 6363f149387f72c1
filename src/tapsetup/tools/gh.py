"""GitHub CLI collaborator.

CONTRACT
- Uses `gh` for auth status, repo existence queries and repo creation.
- repo_create pushes the local source as part of creation (`--push`).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..util.shell import CmdResult, run_cmd


@dataclass
class GhCli:
    binary: str = "gh"
    log_path: Path | None = None

    def auth_status(self) -> CmdResult:
        return run_cmd([self.binary, "auth", "status"], log_path=self.log_path)

    def repo_view(self, slug: str, fields: str) -> CmdResult:
        return run_cmd([self.binary, "repo", "view", slug, "--json", fields], log_path=self.log_path)

    def repo_create(self, slug: str, *, source: Path, remote: str, visibility: str) -> CmdResult:
        return run_cmd(
            [
                self.binary,
                "repo",
                "create",
                slug,
                "--source",
                str(source),
                "--push",
                "--remote",
                remote,
                f"--{visibility}",
            ],
            log_path=self.log_path,
        )


def is_repo_missing(stderr: str) -> bool:
    text = stderr.lower()
    return (
        "not found" in text
        or "could not resolve to a repository" in text
        or "404" in text
    )
