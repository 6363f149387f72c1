from __future__ import annotations

"""Shell command execution.

CONTRACT
- Inputs: Command (argv list or string), cwd, env overrides, optional timeout
- Outputs (required):
  - CmdResult(cmd, returncode, stdout, stderr, elapsed_s)
- Invariants:
  - stdout/stderr are captured as text; optionally mirrored to log files
  - No timeout unless timeout_s is given (a hung tool hangs the run)
- Failure:
  - Returns CmdResult with exit code (does NOT raise on non-zero exit)
  - Missing executable -> returncode 127 with the OS error on stderr
"""

import os
import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path


def which(cmd: str) -> str | None:
    for p in os.environ.get("PATH", "").split(os.pathsep):
        if not p:
            continue
        candidate = Path(p) / cmd
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return str(candidate)
    return None


@dataclass(frozen=True)
class CmdResult:
    cmd: str
    returncode: int
    stdout: str
    stderr: str
    elapsed_s: float

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def output(self) -> str:
        """stdout and stderr joined, for error messages."""
        return "\n".join(part.strip() for part in (self.stdout, self.stderr) if part.strip())


def run_cmd(
    cmd: str | list[str],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    timeout_s: float | None = None,
    log_path: Path | None = None,
) -> CmdResult:
    """Run a command and capture its output.

    CONTRACT:
    - Accepts cmd as str (run with shell=True) or list[str] (run with shell=False).
    - Never raises for non-zero exit; caller inspects return code.
    - When log_path is set, appends the command and its output there.
    """
    use_shell = isinstance(cmd, str)
    display = cmd if use_shell else shlex.join(cmd)

    start_t = time.time()
    try:
        p = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            shell=use_shell,
            env=(os.environ | env) if env else None,
            capture_output=True,
            timeout=timeout_s,
            text=True,
        )
        rc, out, err = p.returncode, p.stdout or "", p.stderr or ""
    except subprocess.TimeoutExpired as e:
        rc = 124  # Standard timeout exit code
        out = e.stdout.decode() if isinstance(e.stdout, bytes) else (e.stdout or "")
        err = "Timeout expired."
    except FileNotFoundError as e:
        rc = 127
        out, err = "", f"Command not found: {e}"
    except OSError as e:
        rc = 126
        out, err = "", f"Failed to execute: {e}"
    elapsed = time.time() - start_t

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("a", encoding="utf-8") as f:
            f.write(f"$ {display}\n[rc={rc}]\n{out}{err}\n")

    return CmdResult(cmd=display, returncode=rc, stdout=out, stderr=err, elapsed_s=elapsed)


if __name__ == "__main__":
    import argparse
    import sys

    parser = argparse.ArgumentParser(description="Run a command and show captured output")
    parser.add_argument("--cmd", required=True, help="Command to run")
    parser.add_argument("--cwd", default=".", help="Working directory")
    parser.add_argument("--timeout", type=float, default=None, help="Timeout in seconds")
    args = parser.parse_args()

    res = run_cmd(cmd=args.cmd, cwd=Path(args.cwd), timeout_s=args.timeout)
    print(f"Exit code: {res.returncode}")
    print(f"Stdout: {res.stdout}")
    print(f"Stderr: {res.stderr}")
    sys.exit(res.returncode)
