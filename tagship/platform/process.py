"""Subprocess execution with Result-based error handling.

All collaborators (git, cargo, gh) go through ``run`` so that failures come
back as ``ProcessError`` values carrying the exit code and captured output.

Usage:
    result = run(["git", "describe", "--tags"], cwd=repo_root)
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from tagship.core.result import Err, Ok, Result

__all__ = ["NOT_RUN", "ProcessError", "child_env", "run"]

# Return code used when the process never ran or was killed on timeout.
NOT_RUN = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A child process that exited non-zero, timed out or never started.

    ``returncode`` is ``NOT_RUN`` for the last two; git, cargo and gh all
    write the useful part of their diagnostics to the end of stderr, which
    ``detail()`` extracts.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        shown = " ".join(self.command[:3])
        ellipsis = " ..." if len(self.command) > 3 else ""
        return f"{shown}{ellipsis} failed (exit {self.returncode})"

    def detail(self) -> str:
        """Best single-line explanation of the failure."""
        for text in (self.stderr, self.stdout):
            lines = [ln.strip() for ln in text.splitlines() if ln.strip()]
            if lines:
                return lines[-1]
        return str(self)


def child_env(overrides: Mapping[str, str] | None = None) -> dict[str, str]:
    """Environment for a child process: the current one plus ``overrides``."""
    env = dict(os.environ)
    if overrides:
        env.update(overrides)
    return env


def run(
    cmd: list[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run ``cmd`` to completion, capturing text output.

    Args:
        cmd: Program and arguments.
        cwd: Working directory.
        env: Full environment for the child (inherit ours if None).
        timeout: Seconds before the child is killed (None waits forever;
            builds rely on that).

    Returns:
        Ok(stdout) on exit status 0, otherwise Err(ProcessError).
    """
    argv = tuple(cmd)
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return Err(ProcessError(argv, NOT_RUN, partial, f"Command timed out after {timeout}s"))
    except OSError as e:
        # Missing executable, bad cwd, permission denied.
        return Err(ProcessError(argv, NOT_RUN, "", str(e)))

    if proc.returncode == 0:
        return Ok(proc.stdout)
    return Err(ProcessError(argv, proc.returncode, proc.stdout, proc.stderr))
