"""Homebrew collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ..util.shell import CmdResult, run_cmd


@dataclass
class BrewCli:
    binary: str = "brew"
    log_path: Path | None = None

    def _brew(self, *args: str, env: dict[str, str] | None = None) -> CmdResult:
        return run_cmd([self.binary, *args], env=env, log_path=self.log_path)

    def repository(self) -> CmdResult:
        return self._brew("--repository")

    def tap_new(self, slug: str) -> CmdResult:
        return self._brew("tap-new", slug)

    def create(self, *, tap: str, name: str, url: str, env: dict[str, str] | None = None) -> CmdResult:
        return self._brew("create", "--tap", tap, "--set-name", name, url, env=env)

    def taps(self) -> CmdResult:
        return self._brew("tap")

    def tap(self, identifier: str) -> CmdResult:
        return self._brew("tap", identifier)

    def audit(self, formula: str) -> CmdResult:
        return self._brew("audit", "--strict", formula)

    def test(self, formula: str) -> CmdResult:
        return self._brew("test", formula)

    def install(self, formula: str) -> CmdResult:
        return self._brew("install", formula)
