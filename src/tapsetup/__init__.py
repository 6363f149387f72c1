"""tapsetup package.

Simple API for scripts and automation:

    import tapsetup

    # Provision a new tap (GitHub repo + tap scaffolding + formula + push)
    result = tapsetup.provision("alice", "tools")

    # Resume a halted run after fixing the cause
    result = tapsetup.resume(result["run_id"])
"""

from pathlib import Path
from typing import Optional

from .config import AppConfig, default_state_dir, resolve_config
from .inputs import FormulaMode, RunInputs, Visibility, build_inputs
from .orchestrator import RunOutcome, Runner, resume_run, start_run
from .state.store import RunStateStore
from .tools import build_toolbox

__version__ = "0.1.0"


def _result(store: RunStateStore, outcome: RunOutcome) -> dict:
    state = outcome.state
    return {
        "status": outcome.status,
        "run_id": state.run_id,
        "state_path": str(store.state_path(state.run_id)),
        "failed_step": outcome.failed_step,
        "error": outcome.error,
        "error_kind": outcome.error_kind,
        "resumable": outcome.resumable,
        "artifacts": state.collected_artifacts(),
    }


def _execute(store: RunStateStore, state, config_file: Optional[str | Path]) -> dict:
    cfg = resolve_config(Path(config_file) if config_file else None)
    tools = build_toolbox(cfg, log_path=store.run_dir(state.run_id) / "tools.log")
    outcome = Runner(store=store, tools=tools, config=cfg).run(state)
    return _result(store, outcome)


def provision(
    owner: str,
    tap: str,
    *,
    repo_name: Optional[str] = None,
    visibility: Visibility | str = Visibility.PUBLIC,
    branch: str = "main",
    formula_mode: FormulaMode | str = FormulaMode.STUB,
    formula_url: Optional[str] = None,
    formula_name: Optional[str] = None,
    dry_run: bool = False,
    run_id: Optional[str] = None,
    state_dir: Optional[str | Path] = None,
    config_file: Optional[str | Path] = None,
) -> dict:
    """Provision a tap end to end. Returns structured result.

    Args:
        owner: GitHub user or org that will own the tap repo
        tap: Tap short name (repo defaults to homebrew-<tap>)
        run_id: Optional custom run ID (auto-generated if not provided)
        state_dir: Where run state lives (default: ~/.config/homebrew-tap-setup)
        config_file: Optional path to tapsetup.yaml

    Returns:
        dict with keys: status, run_id, state_path, failed_step, error,
        error_kind, resumable, artifacts

    Raises:
        ValueError on invalid inputs; RunError subclasses on state problems.
    """
    inputs = build_inputs(
        owner=owner,
        tap=tap,
        repo_name=repo_name,
        visibility=visibility,
        branch=branch,
        formula_mode=formula_mode,
        formula_url=formula_url,
        formula_name=formula_name,
        dry_run=dry_run,
    )
    store = RunStateStore(Path(state_dir) if state_dir else default_state_dir())
    state = start_run(store, inputs, run_id=run_id)
    return _execute(store, state, config_file)


def resume(
    run_id: str,
    *,
    state_dir: Optional[str | Path] = None,
    config_file: Optional[str | Path] = None,
    **overrides,
) -> dict:
    """Resume a previous run. Any given input overrides must match the stored inputs.

    Returns the same dict shape as provision(). Raises ValueError for an
    override that is not a RunInputs field or is not a valid value.
    """
    store = RunStateStore(Path(state_dir) if state_dir else default_state_dir())
    state = resume_run(store, run_id, overrides)
    return _execute(store, state, config_file)


__all__ = [
    "provision",
    "resume",
    "AppConfig",
    "FormulaMode",
    "RunInputs",
    "RunOutcome",
    "Runner",
    "Visibility",
]
