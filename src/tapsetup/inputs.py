from __future__ import annotations

"""Run inputs.

CONTRACT
- Inputs: raw CLI/API values (owner, tap, repo name, visibility, branch,
  formula mode/url/name, dry-run)
- Outputs (required):
  - RunInputs: frozen pydantic model, captured once per run
- Invariants:
  - owner/tap/repo_name/formula_name are non-empty, no '/', no whitespace
  - repo_name defaults to homebrew-<tap>
  - formula_url is present iff formula_mode is brew-create
- Failure:
  - Raises ValueError (or pydantic ValidationError) on invalid values
"""

from enum import Enum
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, model_validator

from .util.ids import normalize_token

_ARCHIVE_SUFFIXES = (".tar.gz", ".tgz", ".tar.bz2", ".tar.xz", ".zip")


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class FormulaMode(str, Enum):
    STUB = "stub"
    BREW_CREATE = "brew-create"


class RunInputs(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    tap: str
    repo_name: str
    visibility: Visibility = Visibility.PUBLIC
    branch: str = "main"
    formula_mode: FormulaMode = FormulaMode.STUB
    formula_url: str | None = None
    formula_name: str | None = None
    dry_run: bool = False

    @model_validator(mode="after")
    def _url_matches_mode(self) -> "RunInputs":
        if self.formula_mode is FormulaMode.BREW_CREATE and not self.formula_url:
            raise ValueError("formula-url is required when formula-mode is brew-create")
        return self

    @property
    def repo_slug(self) -> str:
        return f"{self.owner}/{self.repo_name}"

    @property
    def conventional_repo_name(self) -> bool:
        return self.repo_name == f"homebrew-{self.tap}"

    @property
    def tap_identifier(self) -> str:
        """Name `brew tap` knows this tap by."""
        if self.conventional_repo_name:
            return f"{self.owner}/{self.tap}"
        return self.repo_slug

    @property
    def resolved_formula_name(self) -> str | None:
        if self.formula_name:
            return self.formula_name
        if self.formula_mode is FormulaMode.BREW_CREATE:
            return derive_name_from_url(self.formula_url or "")
        return self.tap

    def diff(self, overrides: dict[str, Any]) -> dict[str, tuple[Any, Any]]:
        """Fields in `overrides` whose value differs from the stored one.

        Overrides are normalized the way `build_inputs` normalizes them
        before comparing. Unknown keys and invalid values raise ValueError.
        """
        out: dict[str, tuple[Any, Any]] = {}
        for key, given in overrides.items():
            if key not in type(self).model_fields:
                raise ValueError(f"Unknown input field: {key}")
            given = _normalize_override(key, given)
            if given is None:
                continue
            stored = getattr(self, key)
            if isinstance(stored, Enum):
                stored_cmp, given_cmp = stored.value, getattr(given, "value", given)
            else:
                stored_cmp, given_cmp = stored, given
            if stored_cmp != given_cmp:
                out[key] = (stored_cmp, given_cmp)
        return out


_TOKEN_LABELS = {
    "owner": "owner",
    "tap": "tap",
    "repo_name": "repo name",
    "formula_name": "formula name",
}


def _normalize_override(key: str, value: Any) -> Any:
    if not isinstance(value, str):
        return value
    if key in _TOKEN_LABELS:
        return normalize_token(_TOKEN_LABELS[key], value)
    if key == "branch":
        branch = value.strip()
        if not branch:
            raise ValueError("branch is required")
        return branch
    if key == "formula_url":
        return value.strip() or None
    return value


def derive_name_from_url(url: str) -> str | None:
    url = url.split("?", 1)[0].split("#", 1)[0]
    base = url.rstrip("/").rsplit("/", 1)[-1]
    for ext in _ARCHIVE_SUFFIXES:
        if base.endswith(ext):
            base = base[: -len(ext)]
            break
    if "-" in base:
        prefix, suffix = base.rsplit("-", 1)
        if suffix and (suffix[0].isdigit() or suffix[0] == "v"):
            base = prefix
    return base or None


def build_inputs(
    *,
    owner: str,
    tap: str,
    repo_name: str | None = None,
    visibility: Visibility | str = Visibility.PUBLIC,
    branch: str = "main",
    formula_mode: FormulaMode | str = FormulaMode.STUB,
    formula_url: str | None = None,
    formula_name: str | None = None,
    dry_run: bool = False,
) -> RunInputs:
    owner = normalize_token("owner", owner)
    tap = normalize_token("tap", tap)
    branch = branch.strip()
    if not branch:
        raise ValueError("branch is required")
    formula_url = (formula_url or "").strip() or None
    if formula_name is not None:
        formula_name = normalize_token("formula name", formula_name)
    mode = FormulaMode(formula_mode)

    if mode is FormulaMode.BREW_CREATE and formula_url is None:
        raise ValueError("formula-url is required when formula-mode is brew-create")
    if mode is FormulaMode.BREW_CREATE and formula_name is None and not derive_name_from_url(formula_url or ""):
        raise ValueError("formula-name is required when it cannot be derived from formula-url")

    if tap.startswith("homebrew-"):
        logger.warning(
            f"Tap short name includes 'homebrew-'; default repo would become 'homebrew-{tap}'."
        )

    repo = normalize_token("repo name", repo_name) if repo_name is not None else f"homebrew-{tap}"
    if repo != f"homebrew-{tap}":
        logger.warning(
            f"Repo name does not match homebrew-<tap>; 'brew tap {owner}/{tap}' shorthand may not work."
        )

    return RunInputs(
        owner=owner,
        tap=tap,
        repo_name=repo,
        visibility=Visibility(visibility),
        branch=branch,
        formula_mode=mode,
        formula_url=formula_url,
        formula_name=formula_name,
        dry_run=dry_run,
    )
