from __future__ import annotations

"""Configuration models.

CONTRACT
- Inputs: YAML file path (tapsetup.yaml) or nothing (defaults)
- Outputs (required):
  - Validated AppConfig (editor policy, remote, commit message, tools, validate options)
  - default_state_dir() resolving where run state lives
- Invariants:
  - editor_policy is one of `suppress` | `interactive`
  - Default values never mutate anything beyond what the pipeline requires
- Failure:
  - Raises ValueError on invalid schema
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import yaml

EditorPolicy = Literal["suppress", "interactive"]

APP_NAME = "homebrew-tap-setup"
STATE_DIR_ENV = "TAP_SETUP_STATE_DIR"
DEFAULT_CONFIG_NAME = "tapsetup.yaml"


@dataclass(frozen=True)
class ToolsConfig:
    git: str = "git"
    gh: str = "gh"
    brew: str = "brew"


@dataclass(frozen=True)
class ValidateConfig:
    audit: bool = False
    test: bool = False
    install: bool = False


@dataclass(frozen=True)
class AppConfig:
    editor_policy: EditorPolicy = "suppress"
    remote: str = "origin"
    commit_message: str = "Add tap scaffolding and formula"
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    validate: ValidateConfig = field(default_factory=ValidateConfig)


CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "editor_policy": {"type": "string", "enum": ["suppress", "interactive"]},
        "remote": {"type": "string", "minLength": 1},
        "commit_message": {"type": "string", "minLength": 1},
        "tools": {
            "type": "object",
            "properties": {
                "git": {"type": "string", "minLength": 1},
                "gh": {"type": "string", "minLength": 1},
                "brew": {"type": "string", "minLength": 1},
            },
            "additionalProperties": False,
        },
        "validate": {
            "type": "object",
            "properties": {
                "audit": {"type": "boolean"},
                "test": {"type": "boolean"},
                "install": {"type": "boolean"},
            },
            "additionalProperties": False,
        },
    },
}


def default_state_dir() -> Path:
    env = os.environ.get(STATE_DIR_ENV)
    if env:
        return Path(env).expanduser()
    return Path.home() / ".config" / APP_NAME


def load_config_file(path: Path) -> AppConfig:
    import jsonschema  # lazy import

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid {DEFAULT_CONFIG_NAME}: {e}") from e

    try:
        jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ValueError(f"Invalid {DEFAULT_CONFIG_NAME} schema: {e.message}") from e

    tools_raw = data.get("tools", {}) or {}
    validate_raw = data.get("validate", {}) or {}
    return AppConfig(
        editor_policy=data.get("editor_policy", "suppress"),
        remote=str(data.get("remote", "origin")),
        commit_message=str(data.get("commit_message", AppConfig.commit_message)),
        tools=ToolsConfig(
            git=str(tools_raw.get("git", "git")),
            gh=str(tools_raw.get("gh", "gh")),
            brew=str(tools_raw.get("brew", "brew")),
        ),
        validate=ValidateConfig(
            audit=bool(validate_raw.get("audit", False)),
            test=bool(validate_raw.get("test", False)),
            install=bool(validate_raw.get("install", False)),
        ),
    )


def resolve_config(path: Path | None, cwd: Path | None = None) -> AppConfig:
    """Explicit path, else ./tapsetup.yaml when present, else defaults."""
    if path is not None:
        if not path.exists():
            raise ValueError(f"Config file not found: {path}")
        return load_config_file(path)
    local = (cwd or Path.cwd()) / DEFAULT_CONFIG_NAME
    if local.exists():
        return load_config_file(local)
    return AppConfig()


if __name__ == "__main__":
    import argparse
    import sys

    parser = argparse.ArgumentParser(description="Config Loader CLI")
    parser.add_argument("--config", required=True, help="Path to tapsetup.yaml")
    args = parser.parse_args()

    try:
        cfg = load_config_file(Path(args.config))
        print(f"Editor policy: {cfg.editor_policy}")
        print(f"Tools: {cfg.tools}")
        print(f"Validate: {cfg.validate}")
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
