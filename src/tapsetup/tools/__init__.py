from __future__ import annotations

from pathlib import Path

from ..config import AppConfig
from ..util.shell import which
from .base import Brew, Git, GitHub, Toolbox
from .brew import BrewCli
from .gh import GhCli
from .git import GitCli


def build_toolbox(config: AppConfig, log_path: Path | None = None) -> Toolbox:
    return Toolbox(
        git=GitCli(binary=config.tools.git, log_path=log_path),
        gh=GhCli(binary=config.tools.gh, log_path=log_path),
        brew=BrewCli(binary=config.tools.brew, log_path=log_path),
        which=which,
    )


__all__ = ["Brew", "BrewCli", "Git", "GitCli", "GitHub", "GhCli", "Toolbox", "build_toolbox"]
