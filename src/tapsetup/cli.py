"""CLI entrypoint.

Primary command:
- tap-setup run ...            (fresh run, or --resume <run id>)

Utilities:
- tap-setup status --run <id>
- tap-setup list
- tap-setup doctor
- tap-setup init

CONTRACT
- Inputs: Command line arguments (parsed by Typer)
- Outputs (required):
  - Exit 0 when the run completes, with a summary of produced artifacts
  - Exit 1 when the run halts on a step failure (resumable), naming the step and cause
  - Exit 2 on fatal errors (state not found/corrupt, input mismatch, missing dependency)
- Invariants:
  - Inputs are validated before any state is written
  - Orchestration is delegated to tapsetup.orchestrator
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import DEFAULT_CONFIG_NAME, STATE_DIR_ENV, AppConfig, default_state_dir, resolve_config
from .doctor import doctor_report
from .errors import RunError
from .inputs import FormulaMode, Visibility, build_inputs
from .orchestrator import Runner, resume_run, start_run
from .state.store import RunStateStore
from .summary import render_summary, steps_table
from .tools import Toolbox, build_toolbox
from .util.ids import validate_run_id
from .util.paths import copy_template

app = typer.Typer(
    add_completion=False,
    help="Provision a Homebrew tap: GitHub repo, tap scaffolding, formula, push (resumable).",
)

console = Console()


def _version_callback(value: bool):
    if value:
        from . import __version__

        console.print(f"tap-setup version: {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version."
    )
):
    pass


_STATE_DIR_OPTION = typer.Option(
    None,
    "--state-dir",
    envvar=STATE_DIR_ENV,
    help="Run state root (default: ~/.config/homebrew-tap-setup).",
)
_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help=f"Config file (default: ./{DEFAULT_CONFIG_NAME} when present).",
)
_RUN_ID_REQUIRED_OPTION = typer.Option(
    ...,
    "--run",
    help="Run id.",
)
_VERBOSE_OPTION = typer.Option(
    False,
    "--verbose",
    help="Show more details.",
)


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format="{message}")


def _store(state_dir: Path | None) -> RunStateStore:
    return RunStateStore(state_dir or default_state_dir())


def _toolbox(config: AppConfig, log_path: Path) -> Toolbox:
    return build_toolbox(config, log_path=log_path)


def _fatal(err: RunError) -> typer.Exit:
    console.print(f"[red]{err.kind}[/red]: {escape(str(err))}", highlight=False)
    return typer.Exit(code=2)


@app.command()
def run(
    owner: str | None = typer.Option(None, "--owner", help="GitHub owner or org for the tap repo."),
    tap: str | None = typer.Option(None, "--tap", help="Tap short name (without the homebrew- prefix)."),
    repo_name: str | None = typer.Option(
        None, "--repo-name", help="Override repo name (defaults to homebrew-<tap>)."
    ),
    visibility: Visibility | None = typer.Option(None, "--visibility", help="Repo visibility (default: public)."),
    branch: str | None = typer.Option(None, "--branch", help="Branch to push (default: main)."),
    formula_mode: FormulaMode | None = typer.Option(
        None, "--formula-mode", help="stub or brew-create (default: stub)."
    ),
    formula_url: str | None = typer.Option(
        None, "--formula-url", help="Source tarball URL (required for brew-create)."
    ),
    formula_name: str | None = typer.Option(
        None, "--formula-name", help="Formula name (default: derived from URL or tap)."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Plan without changing anything."),
    resume: str | None = typer.Option(None, "--resume", help="Resume a previous run by id."),
    state_dir: Path | None = _STATE_DIR_OPTION,
    config: Path | None = _CONFIG_OPTION,
    verbose: bool = _VERBOSE_OPTION,
) -> None:
    """Run (or resume) the tap setup pipeline."""
    _configure_logging(verbose)
    try:
        cfg = resolve_config(config)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    store = _store(state_dir)
    try:
        if resume:
            try:
                validate_run_id(resume)
            except ValueError as e:
                raise typer.BadParameter(str(e)) from e
            overrides = {
                "owner": owner,
                "tap": tap,
                "repo_name": repo_name,
                "visibility": visibility,
                "branch": branch,
                "formula_mode": formula_mode,
                "formula_url": formula_url,
                "formula_name": formula_name,
                "dry_run": True if dry_run else None,
            }
            try:
                state = resume_run(store, resume, overrides)
            except ValueError as e:
                raise typer.BadParameter(str(e)) from e
        else:
            if not owner or not tap:
                raise typer.BadParameter("--owner and --tap are required (or pass --resume).")
            try:
                inputs = build_inputs(
                    owner=owner,
                    tap=tap,
                    repo_name=repo_name,
                    visibility=visibility or Visibility.PUBLIC,
                    branch=branch or "main",
                    formula_mode=formula_mode or FormulaMode.STUB,
                    formula_url=formula_url,
                    formula_name=formula_name,
                    dry_run=dry_run,
                )
            except ValueError as e:
                raise typer.BadParameter(str(e)) from e
            state = start_run(store, inputs)
    except RunError as e:
        raise _fatal(e) from e

    tools = _toolbox(cfg, store.run_dir(state.run_id) / "tools.log")
    try:
        outcome = Runner(store=store, tools=tools, config=cfg).run(state)
    except RunError as e:
        raise _fatal(e) from e
    except KeyboardInterrupt:
        console.print(f"\n[yellow]Interrupted.[/yellow] Resume with: tap-setup run --resume {state.run_id}")
        raise typer.Exit(code=130)

    render_summary(console, outcome, store.state_path(state.run_id))
    if outcome.ok:
        return
    raise typer.Exit(code=1 if outcome.status == "halted" else 2)


@app.command()
def status(
    run_id: str = _RUN_ID_REQUIRED_OPTION,
    state_dir: Path | None = _STATE_DIR_OPTION,
) -> None:
    """Show per-step status of a run."""
    try:
        validate_run_id(run_id)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    try:
        state = _store(state_dir).load(run_id)
    except RunError as e:
        raise _fatal(e) from e
    console.print(steps_table(state, title=f"run {run_id} ({state.status.value})"))


@app.command("list")
def list_runs(state_dir: Path | None = _STATE_DIR_OPTION) -> None:
    """List known runs."""
    runs = _store(state_dir).list_runs()
    if not runs:
        console.print("No runs found.")
        return
    table = Table(title="tap-setup runs")
    table.add_column("Run ID")
    table.add_column("Status")
    table.add_column("Repo")
    table.add_column("Updated")
    for r in runs:
        table.add_row(r.run_id, r.status, r.repo_slug or "", r.updated_at or "")
    console.print(table)


@app.command()
def doctor(
    state_dir: Path | None = _STATE_DIR_OPTION,
    config: Path | None = _CONFIG_OPTION,
) -> None:
    """Environment and preflight checks."""
    try:
        cfg = resolve_config(config)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    report = doctor_report(build_toolbox(cfg), state_dir=state_dir or default_state_dir())
    table = Table(title="tap-setup doctor")
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Details")
    for item in report.items:
        table.add_row(item.name, item.status, item.details)
    console.print(table)
    if report.ok:
        console.print("[green]OK[/green]")
    else:
        raise typer.Exit(code=2)


@app.command()
def init(
    path: Path = typer.Option(Path("."), "--path", help="Directory to write the config into."),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config."),
) -> None:
    """Write a tapsetup.yaml template."""
    dest = path / DEFAULT_CONFIG_NAME
    if copy_template(DEFAULT_CONFIG_NAME, dest, overwrite=force):
        console.print(f"[green]Wrote[/green] {dest}")
    else:
        console.print(f"[yellow]Exists[/yellow] {dest} (use --force to overwrite)")


if __name__ == "__main__":
    app()
