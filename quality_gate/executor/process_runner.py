"""
Process Runner
==============
Runs one external tool as a bounded asynchronous subprocess and returns a
structured CommandResult (output, exit code, timing).

BOUNDARY RULES (CRITICAL):
    - Runner ONLY observes execution.
    - Runner NEVER parses diagnostics; that is the Parser's job.
    - Runner NEVER raises for tool problems: a missing binary, a timeout or
      an OS error is reported on the result.
    - Cancellation is the one exception: the child is killed and the
      CancelledError propagates to the caller.

TIMEOUTS:
    Every call is bounded. On timeout the child process is killed and
    reaped before returning, so no hung tool outlives its stage.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Command Result (returned to Stage Runners / Verification checks)
# ---------------------------------------------------------------------------
@dataclass
class CommandResult:
    """
    Structured output from a single tool invocation.

    Fields
    ------
    command : list[str]
        The argv that was executed.
    exit_code : int
        Process exit code (0 = success, -1 = never completed).
    stdout : str
        Captured standard output.
    stderr : str
        Captured standard error.
    execution_time_seconds : float
        Wall clock duration of the call.
    timed_out : bool
        True when the timeout elapsed and the process was killed.
    not_found : bool
        True when the tool binary could not be started.
    error : str | None
        Infrastructure failure message (not tool diagnostics).
    """
    command: list[str]
    exit_code: int = -1
    stdout: str = ""
    stderr: str = ""
    execution_time_seconds: float = 0.0
    timed_out: bool = False
    not_found: bool = False
    error: Optional[str] = None

    @property
    def output(self) -> str:
        """Combined stdout + stderr."""
        if self.stdout and self.stderr:
            return f"{self.stdout}\n{self.stderr}"
        return self.stdout or self.stderr

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out and self.error is None


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        proc.kill()
    except ProcessLookupError:
        return
    await proc.wait()


async def run_command(
    command: list[str],
    cwd: str,
    timeout: float,
    env: Optional[dict[str, str]] = None,
) -> CommandResult:
    """
    Execute ``command`` in ``cwd`` with a hard timeout.

    Parameters
    ----------
    command : list[str]
        Program and arguments (no shell).
    cwd : str
        Working directory, normally the generated project root.
    timeout : float
        Seconds before the process is killed.
    env : dict | None
        Full environment for the child; inherits ours when None.

    Returns
    -------
    CommandResult
        Never raises except for cancellation of the awaiting task.
    """
    result = CommandResult(command=list(command))
    start = time.monotonic()
    logger.debug("Running %s (cwd=%s, timeout=%ss)", " ".join(command), cwd, timeout)

    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            cwd=cwd,
            env=env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        logger.warning("%s not installed – skipping", command[0])
        result.not_found = True
        result.error = f"{command[0]} not found"
        result.execution_time_seconds = round(time.monotonic() - start, 3)
        return result
    except OSError as e:
        logger.error("Failed to start %s: %s", command[0], e)
        result.error = f"Failed to start {command[0]}: {e}"
        result.execution_time_seconds = round(time.monotonic() - start, 3)
        return result

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        await _kill(proc)
        logger.warning("%s timed out after %ss – killed", command[0], timeout)
        result.timed_out = True
        result.error = f"Timed out after {timeout}s"
        result.execution_time_seconds = round(time.monotonic() - start, 3)
        return result
    except asyncio.CancelledError:
        await _kill(proc)
        logger.info("%s cancelled – process terminated", command[0])
        raise

    result.exit_code = proc.returncode if proc.returncode is not None else -1
    result.stdout = stdout.decode("utf-8", errors="replace")
    result.stderr = stderr.decode("utf-8", errors="replace")
    result.execution_time_seconds = round(time.monotonic() - start, 3)
    logger.debug(
        "%s exited with %d in %.3fs",
        command[0], result.exit_code, result.execution_time_seconds,
    )
    return result
