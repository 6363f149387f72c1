from __future__ import annotations

"""Pipeline definition.

Fixed order: preflight -> tap-new -> repo-create -> add-formula -> commit-push -> validate.
The summary is rendered over the final state and is not a step.
"""

from .steps.add_formula import AddFormula
from .steps.base import Step
from .steps.commit_push import CommitPush
from .steps.preflight import Preflight
from .steps.repo_create import RepoCreate
from .steps.tap_new import TapNew
from .steps.validate_tap import ValidateTap

PIPELINE_STEP_NAMES: tuple[str, ...] = (
    "preflight",
    "tap-new",
    "repo-create",
    "add-formula",
    "commit-push",
    "validate",
)


def build_pipeline() -> list[Step]:
    return [Preflight(), TapNew(), RepoCreate(), AddFormula(), CommitPush(), ValidateTap()]
