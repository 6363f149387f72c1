from __future__ import annotations

"""ID generation and name validation.

CONTRACT
- Inputs: Run IDs, owner/tap/repo/formula name tokens
- Outputs (required):
  - new_run_id() returns time-sortable string
  - validate_run_id() returns validated ID or raises
  - normalize_token() returns the trimmed token or raises
- Invariants:
  - Run IDs match `[A-Za-z0-9][A-Za-z0-9_.-]{0,63}`
  - Tokens are non-empty, contain no '/' and no whitespace
- Failure:
  - Raises ValueError on invalid IDs or tokens
"""

import datetime
import random
import re
import string

_RUN_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,63}$")


def new_run_id() -> str:
    # YYYYMMDD_HHMMSS_<rand4>
    ts = datetime.datetime.now(datetime.UTC).strftime("%Y%m%d_%H%M%S")
    suffix = "".join(random.choice(string.ascii_lowercase + string.digits) for _ in range(4))
    return f"{ts}_{suffix}"


def validate_run_id(run_id: str) -> str:
    if not _RUN_ID_RE.fullmatch(run_id):
        raise ValueError(
            "Invalid run id. Use 1-64 chars: letters/digits, plus '._-'. Must start with a letter "
            "or digit."
        )
    return run_id


def normalize_token(label: str, value: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise ValueError(f"{label} is required")
    if "/" in trimmed:
        raise ValueError(f"{label} must not include '/'")
    if any(ch.isspace() for ch in trimmed):
        raise ValueError(f"{label} must not contain whitespace")
    return trimmed


if __name__ == "__main__":
    import argparse
    import sys

    parser = argparse.ArgumentParser(description="Utilities for run IDs")
    parser.add_argument("--new-run-id", action="store_true", help="Generate a new run ID")
    parser.add_argument("--validate-run-id", help="Validate a run ID (returns it or fails)")
    args = parser.parse_args()

    try:
        if args.new_run_id:
            print(new_run_id())
        elif args.validate_run_id:
            print(validate_run_id(args.validate_run_id))
        else:
            parser.print_help()
            sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
