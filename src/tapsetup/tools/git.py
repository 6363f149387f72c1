"""git collaborator.

All calls use `git -C <repo>` so the process cwd never matters.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..util.shell import CmdResult, run_cmd


@dataclass
class GitCli:
    binary: str = "git"
    log_path: Path | None = None

    def _git(self, repo: Path, *args: str) -> CmdResult:
        return run_cmd([self.binary, "-C", str(repo), *args], log_path=self.log_path)

    def current_branch(self, repo: Path) -> CmdResult:
        return self._git(repo, "rev-parse", "--abbrev-ref", "HEAD")

    def rename_branch(self, repo: Path, branch: str) -> CmdResult:
        return self._git(repo, "branch", "-M", branch)

    def remote_url(self, repo: Path, remote: str) -> CmdResult:
        return self._git(repo, "remote", "get-url", remote)

    def status_porcelain(self, repo: Path) -> CmdResult:
        return self._git(repo, "status", "--porcelain")

    def add_all(self, repo: Path) -> CmdResult:
        return self._git(repo, "add", "-A")

    def commit(self, repo: Path, message: str) -> CmdResult:
        return self._git(repo, "commit", "-m", message)

    def push(self, repo: Path, remote: str, branch: str) -> CmdResult:
        return self._git(repo, "push", "-u", remote, branch)

    def head(self, repo: Path) -> CmdResult:
        return self._git(repo, "rev-parse", "HEAD")

    def ls_remote(self, repo: Path, remote: str, branch: str) -> CmdResult:
        return self._git(repo, "ls-remote", remote, f"refs/heads/{branch}")
