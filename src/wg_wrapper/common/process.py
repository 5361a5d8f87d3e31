"""Blocking invocation of the external WireGuard tools."""

import shutil
import subprocess
from dataclasses import dataclass

from .exceptions import ControlError
from .logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    args: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_command(args: list[str], input_text: str | None = None) -> CommandResult:
    """Run an external command to completion and capture its text output.

    There is no timeout: the caller is suspended until the tool exits.
    These are short-lived local CLI invocations, so a hung tool hangs the
    session rather than being retried.

    Args:
        args: Command and arguments
        input_text: Optional text passed on stdin

    Returns:
        CommandResult with exit code and captured output

    Raises:
        ControlError: If the executable cannot be started at all
    """
    logger.debug("Running command", args=args)
    try:
        completed = subprocess.run(
            args,
            input=input_text,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        logger.error("Failed to start command", args=args, error=str(e))
        raise ControlError(f"Failed to run {args[0]}: {e}", command=args) from e

    logger.debug("Command finished", args=args, returncode=completed.returncode)
    return CommandResult(
        args=list(args),
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


def run_checked(
    args: list[str], default_message: str, input_text: str | None = None
) -> CommandResult:
    """Run a command and raise ``ControlError`` on a non-zero exit.

    The error carries the tool's stderr verbatim; its message is the trimmed
    stderr, or ``default_message`` when the tool printed nothing.
    """
    result = run_command(args, input_text=input_text)
    if not result.ok:
        message = result.stderr.strip() or default_message
        logger.error(
            "Command failed", args=args, returncode=result.returncode, error=message
        )
        raise ControlError(message, stderr=result.stderr, command=list(args))
    return result


def check_dependencies(binaries: list[str]) -> list[str]:
    """Return the binaries that cannot be found in PATH."""
    return [binary for binary in binaries if shutil.which(binary) is None]
