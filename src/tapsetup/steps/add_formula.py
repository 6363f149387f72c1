"""add-formula step.

CONTRACT
- Target: <tap_path>/Formula/<formula_name>.rb
- check(): ALREADY_DONE when the target file exists
- apply():
  - stub: renders the bundled formula_stub.rb template
  - brew-create: `brew create --tap <slug> --set-name <name> <url>` with the
    configured editor policy
  - dry-run: only resolves the name and path
- Artifacts: formula_name, formula_path
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..errors import ApplyFailed, ValidateFailed
from ..inputs import FormulaMode
from ..util.paths import read_template
from .base import CheckResult, Step, StepContext

STUB_TEMPLATE = "formula_stub.rb"
_EDITOR_VARS = ("HOMEBREW_EDITOR", "EDITOR", "VISUAL")


def formula_class_name(name: str) -> str:
    parts = name.replace("_", "-").split("-")
    return "".join(p[:1].upper() + p[1:] for p in parts if p)


def render_stub(formula_name: str, repo_slug: str) -> str:
    return read_template(STUB_TEMPLATE).format(
        class_name=formula_class_name(formula_name),
        repo_slug=repo_slug,
    )


def editor_env(policy: str) -> dict[str, str] | None:
    if policy == "suppress":
        return {var: "true" for var in _EDITOR_VARS}
    return None


@dataclass
class AddFormula(Step):
    name: str = "add-formula"
    description: str = "Add formula"
    requires: tuple[str, ...] = ("tap_path",)

    def target(self, ctx: StepContext) -> tuple[str, Path]:
        formula = ctx.inputs.resolved_formula_name
        if not formula:
            raise ApplyFailed(
                self.name, "formula name cannot be derived from formula-url; pass --formula-name"
            )
        return formula, ctx.tap_path / "Formula" / f"{formula}.rb"

    def check(self, ctx: StepContext) -> CheckResult:
        formula, path = self.target(ctx)
        if path.exists():
            return CheckResult.already_done(
                f"{path} exists", formula_name=formula, formula_path=str(path)
            )
        return CheckResult.needs_apply(f"{path} does not exist")

    def apply(self, ctx: StepContext, dry_run: bool) -> dict[str, Any]:
        formula, path = self.target(ctx)
        if dry_run:
            return {"formula_name": formula, "formula_path": str(path)}

        if ctx.inputs.formula_mode is FormulaMode.STUB:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(render_stub(formula, ctx.inputs.repo_slug), encoding="utf-8")
        else:
            self.require_ok(
                ctx.tools.brew.create(
                    tap=ctx.inputs.repo_slug,
                    name=formula,
                    url=ctx.inputs.formula_url or "",
                    env=editor_env(ctx.config.editor_policy),
                ),
                "brew create",
            )
            if not path.exists():
                # brew may normalize the name; accept a single generated formula.
                generated = sorted(path.parent.glob("*.rb"))
                if len(generated) == 1:
                    path = generated[0]
                    formula = path.stem
        return {"formula_name": formula, "formula_path": str(path)}

    def validate(self, ctx: StepContext, artifacts: dict[str, Any]) -> None:
        path = Path(artifacts["formula_path"])
        if not path.is_file():
            raise ValidateFailed(self.name, f"formula file not found: {path}")
