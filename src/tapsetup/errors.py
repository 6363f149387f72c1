from __future__ import annotations

"""Error kinds.

CONTRACT
- Step errors carry the step name and the underlying cause; the Runner
  records them into the StepRecord before halting.
- Run errors (state/inputs) are raised before any step runs and are never
  recorded into a StepRecord.
- Every error exposes `kind` (class name) and `resumable`.
"""


class TapSetupError(Exception):
    resumable: bool = True

    @property
    def kind(self) -> str:
        return type(self).__name__


class StepError(TapSetupError):
    def __init__(self, step: str, cause: str) -> None:
        super().__init__(f"{step}: {cause}")
        self.step = step
        self.cause = cause


class PreflightMissingTool(StepError):
    def __init__(self, step: str, tools: list[str]) -> None:
        super().__init__(step, f"Missing required tools: {', '.join(tools)}")
        self.tools = tools


class AuthRequired(StepError):
    pass


class RemoteAlreadyExists(StepError):
    pass


class ApplyFailed(StepError):
    pass


class ValidateFailed(StepError):
    pass


class MissingDependency(StepError):
    resumable = False

    def __init__(self, step: str, missing: list[str]) -> None:
        super().__init__(
            step,
            f"required upstream artifact(s) missing from state: {', '.join(missing)}",
        )
        self.missing = missing


class RunError(TapSetupError):
    resumable = False


class StateNotFound(RunError):
    def __init__(self, run_id: str, path: object) -> None:
        super().__init__(f"No state found for run {run_id} ({path})")
        self.run_id = run_id


class StateCorrupt(RunError):
    def __init__(self, run_id: str, detail: str) -> None:
        super().__init__(f"State for run {run_id} is corrupt: {detail}")
        self.run_id = run_id


class InputMismatchOnResume(RunError):
    def __init__(self, run_id: str, diff: dict[str, tuple[object, object]]) -> None:
        parts = [f"{k}: stored={a!r} given={b!r}" for k, (a, b) in diff.items()]
        super().__init__(
            f"Inputs differ from those stored for run {run_id}: " + "; ".join(parts)
        )
        self.run_id = run_id
        self.diff = diff
