from __future__ import annotations

"""External tool collaborator protocols.

CONTRACT
- Inputs: paths, repo slugs, branch/remote names
- Outputs (required):
  - CmdResult for every call (returncode, stdout, stderr); never raw process handles
- Invariants:
  - Calls are synchronous and blocking
  - Query methods (view/status/list/rev-parse) never mutate anything
- Failure:
  - Non-zero exits are returned, not raised; steps decide what they mean
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..util.shell import CmdResult


class Git(Protocol):
    binary: str

    def current_branch(self, repo: Path) -> CmdResult: ...
    def rename_branch(self, repo: Path, branch: str) -> CmdResult: ...
    def remote_url(self, repo: Path, remote: str) -> CmdResult: ...
    def status_porcelain(self, repo: Path) -> CmdResult: ...
    def add_all(self, repo: Path) -> CmdResult: ...
    def commit(self, repo: Path, message: str) -> CmdResult: ...
    def push(self, repo: Path, remote: str, branch: str) -> CmdResult: ...
    def head(self, repo: Path) -> CmdResult: ...
    def ls_remote(self, repo: Path, remote: str, branch: str) -> CmdResult: ...


class GitHub(Protocol):
    binary: str

    def auth_status(self) -> CmdResult: ...
    def repo_view(self, slug: str, fields: str) -> CmdResult: ...
    def repo_create(
        self, slug: str, *, source: Path, remote: str, visibility: str
    ) -> CmdResult: ...


class Brew(Protocol):
    binary: str

    def repository(self) -> CmdResult: ...
    def tap_new(self, slug: str) -> CmdResult: ...
    def create(
        self, *, tap: str, name: str, url: str, env: dict[str, str] | None = None
    ) -> CmdResult: ...
    def taps(self) -> CmdResult: ...
    def tap(self, identifier: str) -> CmdResult: ...
    def audit(self, formula: str) -> CmdResult: ...
    def test(self, formula: str) -> CmdResult: ...
    def install(self, formula: str) -> CmdResult: ...


class Which(Protocol):
    def __call__(self, cmd: str) -> str | None: ...


@dataclass
class Toolbox:
    git: Git
    gh: GitHub
    brew: Brew
    which: Which

    def binaries(self) -> dict[str, str]:
        return {"git": self.git.binary, "GitHub CLI": self.gh.binary, "homebrew": self.brew.binary}
