from __future__ import annotations

"""Run event logging.

CONTRACT
- Inputs: step name, action, arbitrary kwargs
- Outputs:
  - Appends one JSON line per event to <run_dir>/events.jsonl
- Invariants:
  - Adds `ts_ms` timestamp and `run_id` automatically
  - Append-only; never rewrites earlier events
- Failure:
  - Raises OSError if log path is not writable
"""

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class EventLog:
    path: Path
    run_id: str | None = None

    def emit(self, **event: Any) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        event.setdefault("ts_ms", int(time.time() * 1000))
        if self.run_id and "run_id" not in event:
            event["run_id"] = self.run_id
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")

    def step(self, step: str, action: str, **extra: Any) -> None:
        self.emit(step=step, action=action, **extra)

    def read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        lines = self.path.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines if line.strip()]
