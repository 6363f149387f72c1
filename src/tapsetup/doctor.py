from __future__ import annotations

"""Environment health checks.

CONTRACT
- Inputs: Toolbox (git/gh/brew collaborators + which), optional state dir
- Outputs (required):
  - DoctorReport (ok=bool, items=[(name, status, details)])
- Invariants:
  - Checks: git, GitHub CLI, homebrew binaries; gh authentication; state dir
  - Does not modify system state (read-only checks)
- Failure:
  - Returns DoctorReport with ok=False if a binary is missing or gh is not logged in
"""

import os
from dataclasses import dataclass
from pathlib import Path

from .tools.base import Toolbox

AUTH_ITEM = "gh auth"


@dataclass(frozen=True)
class DoctorItem:
    name: str
    status: str
    details: str


@dataclass(frozen=True)
class DoctorReport:
    ok: bool
    items: list[DoctorItem]

    def failed(self) -> list[DoctorItem]:
        return [i for i in self.items if i.status == "FAIL"]


def _state_dir_item(state_dir: Path) -> DoctorItem:
    probe = state_dir
    while not probe.exists() and probe.parent != probe:
        probe = probe.parent
    if os.access(probe, os.W_OK):
        return DoctorItem("state dir", "OK", str(state_dir))
    return DoctorItem("state dir", "WARN", f"Not writable: {state_dir}")


def doctor_report(tools: Toolbox, state_dir: Path | None = None) -> DoctorReport:
    items: list[DoctorItem] = []
    ok = True

    for label, binary in tools.binaries().items():
        found = tools.which(binary)
        if found:
            items.append(DoctorItem(label, "OK", found))
        else:
            ok = False
            items.append(DoctorItem(label, "FAIL", f"{binary} not found in PATH"))

    if tools.which(tools.gh.binary):
        res = tools.gh.auth_status()
        if res.ok:
            items.append(DoctorItem(AUTH_ITEM, "OK", "Auth valid"))
        else:
            ok = False
            items.append(DoctorItem(AUTH_ITEM, "FAIL", "Not logged in (run `gh auth login`)"))
    else:
        items.append(DoctorItem(AUTH_ITEM, "SKIP", "gh not installed"))

    if state_dir is not None:
        items.append(_state_dir_item(state_dir))

    return DoctorReport(ok=ok, items=items)
