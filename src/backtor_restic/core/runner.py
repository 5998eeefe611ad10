"""Execution of backup engine commands with an enforced deadline.

The runner only starts processes and captures what they print. Deciding
whether the printed text means the operation worked is left to the parser
and the operations built on top of it.
"""

import logging
import os
import shlex
import signal
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional

from ..__util__ import EngineExecutionError, EngineTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandOutcome:
    """Combined stdout/stderr text and exit status of a finished command."""

    command: list[str]
    output: str
    returncode: int

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


def format_command(template: str, *args) -> list[str]:
    """Fill a ``{}`` style command template and split it into an argv list.

    Arguments are quoted before substitution so each one stays a single
    argv element whatever characters it contains.
    """
    quoted = [shlex.quote(str(arg)) for arg in args]
    return shlex.split(template.format(*quoted))


class CommandRunner:
    """Run external commands, optionally bounded by a timeout."""

    def __init__(self, env: Optional[Mapping[str, str]] = None) -> None:
        self.env = dict(env or {})

    def run(
        self,
        template: str,
        *args,
        timeout: Optional[float] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandOutcome:
        """Execute ``template`` filled with ``args`` and return its outcome.

        Args:
            template: Command line with ``{}`` placeholders
            args: Values for the placeholders
            timeout: Seconds to wait before killing the command (None = no limit)
            env: Extra environment variables for the child process

        Returns:
            CommandOutcome of a command that exited with status 0

        Raises:
            EngineTimeoutError: If the deadline passed; partial output is dropped
            EngineExecutionError: If the command failed to start or exited non-zero
        """
        command = format_command(template, *args)
        child_env = os.environ.copy()
        child_env.update(self.env)
        if env:
            child_env.update(env)

        logger.debug("Executing command: %s (timeout=%s)", command, timeout)

        try:
            process = subprocess.Popen(
                command,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=child_env,
                start_new_session=True,
            )
        except OSError as e:
            logger.error("Failed to start command %s: %s", command, e)
            raise EngineExecutionError(f"Failed to start {command[0]}: {e}") from e

        try:
            raw_output, _ = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            _kill_process_group(process)
            logger.error("Command timed out after %s seconds: %s", timeout, command)
            raise EngineTimeoutError(command, timeout) from None

        outcome = CommandOutcome(
            command=command,
            output=raw_output.decode("utf-8", errors="replace"),
            returncode=process.returncode,
        )
        logger.debug("Command exited with %d: %s", outcome.returncode, command)
        logger.debug("Command output: %s", outcome.output)

        if not outcome.succeeded:
            raise EngineExecutionError(
                f"Command {' '.join(command)} exited with code {outcome.returncode}: "
                f"{outcome.output.strip()}",
                outcome,
            )
        return outcome


def _kill_process_group(process: subprocess.Popen) -> None:
    """Kill a timed out command together with anything it spawned."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except OSError as e:
        logger.debug("killpg failed for %d (%s), killing process only", process.pid, e)
        process.kill()
    # Reap the child and drop whatever it printed before dying
    process.communicate()
