"""
Shell command runner for the user's test command.

Design constraints:
  - Runs the command through the shell, exactly as the user typed it
  - Captures stdout and stderr separately
  - Cancellable: if the awaiting task is cancelled the process is killed
  - Never interprets the test runner's output beyond "did it run at all"

A non-zero exit is an expected outcome (that is what the fix cycle is for)
and is returned, not raised. Only a command that could not be started is an
error: see CommandNotRunnableError.
"""

import asyncio
import logging
import os
import re
import signal
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_POSIX = os.name == "posix"

# Shell exit statuses for "found but not executable" / "not found"
_NOT_RUNNABLE_CODES = {126, 127}

# Lines a shell prints when the command itself cannot be located or run
_NOT_FOUND_LINE = re.compile(
    r"^(?:\S*/)?(?:ba|da|z)?sh: (?:line \d+: |\d+: )?\S+: (?:command )?not found$"
    r"|^zsh: command not found: \S+$"
    r"|is not recognized as an internal or external command",
    re.MULTILINE,
)


class CommandNotRunnableError(RuntimeError):
    """The test command itself could not be run, so there is nothing to fix."""

    def __init__(self, command: str, stderr: str, returncode: int) -> None:
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"Could not run test command `{command}`: {detail}")
        self.command = command
        self.stderr = stderr
        self.returncode = returncode


@dataclass
class CommandResult:
    """Structured result of one test command run."""
    command: str
    returncode: int
    stdout: str
    stderr: str
    elapsed_seconds: float = 0.0

    @property
    def passed(self) -> bool:
        return self.returncode == 0

    @property
    def failure_text(self) -> str:
        """Text sent to the model: stderr, or stdout when stderr is blank."""
        if self.stderr.strip():
            return self.stderr
        return self.stdout


def is_not_runnable(result: CommandResult) -> bool:
    """True when a failed run means the command is broken, not the code."""
    if result.passed:
        return False
    if result.returncode in _NOT_RUNNABLE_CODES:
        return True
    return _NOT_FOUND_LINE.search(result.stderr) is not None


async def run_command(command: str, cwd: str | None = None) -> CommandResult:
    """
    Run `command` through the shell and wait for it to finish.

    Returns CommandResult for any exit status. Cancelling the awaiting task
    kills the process before CancelledError propagates.
    """
    start = time.monotonic()
    proc = await asyncio.create_subprocess_shell(
        command,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
        # Own process group so the test runner's children die with the shell
        start_new_session=_POSIX,
    )
    try:
        stdout_bytes, stderr_bytes = await proc.communicate()
    except asyncio.CancelledError:
        if proc.returncode is None:
            logger.debug("Killing superseded test command (pid=%s)", proc.pid)
            _kill(proc)
            await proc.wait()
        raise

    elapsed = time.monotonic() - start
    result = CommandResult(
        command=command,
        returncode=proc.returncode,
        stdout=stdout_bytes.decode("utf-8", errors="replace"),
        stderr=stderr_bytes.decode("utf-8", errors="replace"),
        elapsed_seconds=elapsed,
    )
    logger.info(
        "Command finished: returncode=%d elapsed=%.2fs",
        result.returncode,
        result.elapsed_seconds,
    )
    return result


def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        if _POSIX:
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass


def check_runnable(result: CommandResult) -> CommandResult:
    """Raise CommandNotRunnableError for a broken invocation; otherwise pass through."""
    if is_not_runnable(result):
        raise CommandNotRunnableError(result.command, result.stderr, result.returncode)
    return result
