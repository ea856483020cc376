"""Subprocess execution with Result-based error handling.

All external tools (git, docker) go through `run`, which captures output,
enforces a timeout and returns a structured error instead of raising.

Usage:
    result = run(["git", "--version"], cwd=Path("."), timeout=30.0)
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from onepaas.core.result import Err, Ok, Result

__all__ = ["LAUNCH_FAILED", "ProcessError", "run"]

# Return code reported when the process could not be started or was killed on timeout.
LAUNCH_FAILED = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code, or LAUNCH_FAILED if the process never ran to completion.
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
        timed_out: True if the process was killed because the timeout elapsed.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def launched(self) -> bool:
        """False when the executable could not be started at all."""
        return self.returncode != LAUNCH_FAILED or self.timed_out

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        if self.timed_out:
            return f"{cmd_str} timed out"
        return f"{cmd_str} failed (exit {self.returncode})"


def run(
    cmd: list[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
    input: str | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Full environment for the child (inherits the current one if None).
        timeout: Maximum seconds to wait (None for no limit). The child is
            killed when it elapses.
        input: Text written to the child's stdin. Use it for secrets so they
            never appear in the argument list.

    Returns:
        Ok(stdout) on exit 0, Err(ProcessError) otherwise.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            input=input,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=LAUNCH_FAILED,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
                timed_out=True,
            )
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=LAUNCH_FAILED,
                stdout="",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)
