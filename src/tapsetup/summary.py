from __future__ import annotations

"""Run summary rendering.

CONTRACT
- Inputs: RunOutcome (final state), state file path
- Outputs (required):
  - summary_lines(): plain lines (repo, tap path, formula, branch, next steps)
  - render_summary(): rich output of the same, plus a step table
- Invariants:
  - Reporting only; never touches external systems or the state file
  - Dry-run runs are rendered as a plan
"""

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .inputs import FormulaMode
from .orchestrator import RunOutcome
from .state.schemas import RunState, StepStatus

_STATUS_STYLE = {
    StepStatus.SUCCEEDED: "green",
    StepStatus.SKIPPED: "cyan",
    StepStatus.FAILED: "red",
    StepStatus.PENDING: "dim",
}


def steps_table(state: RunState, title: str | None = None) -> Table:
    table = Table(title=title or f"run {state.run_id}")
    table.add_column("Step")
    table.add_column("Status")
    table.add_column("Details")
    for rec in state.steps.values():
        style = _STATUS_STYLE.get(rec.status, "")
        status = rec.status.value + (" (dry-run)" if rec.dry_run else "")
        if rec.error:
            details = f"{rec.error_kind}: {rec.error}"
        else:
            details = ", ".join(f"{k}={v}" for k, v in rec.artifacts.items() if v is not None)
        table.add_row(rec.name, f"[{style}]{status}[/{style}]" if style else status, escape(details))
    return table


def summary_lines(outcome: RunOutcome, state_path: Path | None = None) -> list[str]:
    state = outcome.state
    inputs = state.inputs
    art = state.collected_artifacts()
    heading = "Plan" if inputs.dry_run else "Summary"

    lines = [heading, f"  Run ID: {state.run_id}", f"  Status: {outcome.status}"]
    lines.append(f"  Repo: {inputs.repo_slug}")
    if art.get("repo_url"):
        lines.append(f"  Repo URL: {art['repo_url']}")
    lines.append(f"  Tap path: {art.get('tap_path', '<unknown>')}")
    if art.get("formula_path"):
        lines.append(f"  Formula: {art['formula_path']}")
    elif inputs.formula_mode is FormulaMode.BREW_CREATE and art.get("tap_path"):
        lines.append(f"  Formula directory: {art['tap_path']}/Formula")
    lines.append(f"  Branch: {art.get('branch', inputs.branch)}")
    lines.append(f"  Tap: {art.get('tap_identifier', inputs.tap_identifier)}")
    if state_path is not None:
        lines.append(f"  State: {state_path}")

    if outcome.status != "completed":
        lines.append("")
        lines.append(f"Failed step: {outcome.failed_step} ({outcome.error_kind})")
        lines.append(f"  {outcome.error}")
        if outcome.resumable:
            lines.append(f"  Resumable: tap-setup run --resume {state.run_id}")
        return lines

    lines.append("")
    lines.append("Next steps")
    if inputs.dry_run:
        lines.append("  - Re-run without --dry-run to apply this plan.")
        return lines
    formula = art.get("formula_name") or inputs.resolved_formula_name
    lines.append("  - Edit the formula and replace the TODO fields.")
    lines.append(
        f"  - brew install {art.get('tap_identifier', inputs.tap_identifier)}/{formula} "
        "(once the formula URL and sha256 are valid)"
    )
    return lines


def render_summary(console: Console, outcome: RunOutcome, state_path: Path | None = None) -> None:
    console.print(steps_table(outcome.state))
    for i, line in enumerate(summary_lines(outcome, state_path)):
        if i == 0 or line in ("Next steps",) or line.startswith("Failed step"):
            color = "red" if line.startswith("Failed") else "bold"
            console.print(f"[{color}]{line}[/{color}]", highlight=False)
        else:
            console.print(line, highlight=False, markup=False)
