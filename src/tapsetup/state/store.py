from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from ..errors import StateCorrupt, StateNotFound
from ..inputs import RunInputs
from ..pipeline import PIPELINE_STEP_NAMES
from ..util.ids import new_run_id, validate_run_id
from .schemas import RunState, now_iso

STATE_FILE = "state.json"


@dataclass(frozen=True)
class RunSummary:
    run_id: str
    status: str
    repo_slug: str | None
    updated_at: str | None


@dataclass(frozen=True)
class RunStateStore:
    """Run state persistence.

    CONTRACT
    - Inputs: root directory (explicit configuration, no global default here)
    - Outputs:
      - <root>/runs/<run_id>/state.json
    - Invariants:
      - save() is atomic (temp file in the same directory, then os.replace)
      - Enforces path safety (run ids cannot escape the root)
      - No locking; one process per run id
    - Failure:
      - load() raises StateNotFound / StateCorrupt
      - Raises ValueError on invalid run ids
    """
    root: Path
    step_names: tuple[str, ...] = PIPELINE_STEP_NAMES

    def run_dir(self, run_id: str) -> Path:
        validate_run_id(run_id)
        runs = self.root / "runs"
        p = runs / run_id
        try:
            p.resolve(strict=False).relative_to(runs.resolve(strict=False))
        except ValueError as exc:
            raise ValueError(f"Refusing to access path outside state root: {p}") from exc
        return p

    def state_path(self, run_id: str) -> Path:
        return self.run_dir(run_id) / STATE_FILE

    def exists(self, run_id: str) -> bool:
        return self.state_path(run_id).exists()

    def create(self, inputs: RunInputs, run_id: str | None = None) -> RunState:
        rid = validate_run_id(run_id or new_run_id())
        if self.exists(rid):
            raise ValueError(f"Run {rid} already exists; use resume instead")
        state = RunState.fresh(rid, inputs, self.step_names)
        self.save(state)
        logger.debug(f"Created run {rid} at {self.state_path(rid)}")
        return state

    def load(self, run_id: str) -> RunState:
        path = self.state_path(run_id)
        if not path.exists():
            raise StateNotFound(run_id, path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StateCorrupt(run_id, str(e)) from e
        try:
            state = RunState.model_validate(data)
        except ValidationError as e:
            raise StateCorrupt(run_id, str(e)) from e
        if state.run_id != run_id:
            raise StateCorrupt(run_id, f"file belongs to run {state.run_id}")
        return state

    def save(self, state: RunState) -> Path:
        path = self.state_path(state.run_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        state.updated_at = now_iso()
        payload = json.dumps(state.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"
        fd, tmp = tempfile.mkstemp(prefix=".state.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        return path

    def list_runs(self) -> list[RunSummary]:
        runs = self.root / "runs"
        if not runs.exists():
            return []
        out: list[RunSummary] = []
        for d in sorted(runs.iterdir()):
            if not (d / STATE_FILE).exists():
                continue
            try:
                state = self.load(d.name)
            except (StateCorrupt, ValueError):
                out.append(RunSummary(run_id=d.name, status="corrupt", repo_slug=None, updated_at=None))
                continue
            out.append(
                RunSummary(
                    run_id=state.run_id,
                    status=state.status.value,
                    repo_slug=state.inputs.repo_slug,
                    updated_at=state.updated_at,
                )
            )
        return out
