from __future__ import annotations

"""Path and template utilities.

CONTRACT
- Inputs: template names, destination paths
- Outputs:
  - read_template() returns bundled template text
  - copy_template() writes bundled resource to dest
  - ensure_dir() creates directory tree
- Invariants:
  - copy_template never overwrites existing files (unless `overwrite=True`)
- Failure:
  - read_template/copy_template raise FileNotFoundError if resource missing
"""

import importlib.resources
from pathlib import Path

from .. import templates


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_template(template_name: str) -> str:
    return importlib.resources.files(templates).joinpath(template_name).read_text(encoding="utf-8")


def copy_template(template_name: str, dest: Path, overwrite: bool = False) -> bool:
    # Only write if missing (avoid clobber) unless forced.
    if dest.exists() and not overwrite:
        return False
    ensure_dir(dest.parent)
    dest.write_text(read_template(template_name), encoding="utf-8")
    return True
