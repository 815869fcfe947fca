"""Shell command executor adapter.

Implements CommandExecutorPort with asyncio subprocesses. Each command runs
in its own session so that a timeout or cancellation can take down the
whole process group, including anything the script spawned.

POSIX only: relies on process groups and os.killpg.
"""

import asyncio
import logging
import os
import signal

from diagbundle.core.models import CommandResult
from diagbundle.core.ports import CommandExecutorPort

logger = logging.getLogger(__name__)


class ShellCommandExecutor(CommandExecutorPort):
    """Runs command lines through /bin/sh with combined output capture."""

    def __init__(self, kill_grace_seconds: float = 5.0, cwd: str | None = None):
        """Initialize the executor.

        Args:
            kill_grace_seconds: Time between SIGTERM and SIGKILL when
                terminating a process group.
            cwd: Working directory for commands (default: inherited).
        """
        self.kill_grace_seconds = kill_grace_seconds
        self.cwd = cwd

    async def execute(
        self, command: str, timeout: float | None = None
    ) -> CommandResult:
        """Run a command line and wait for it to finish."""
        logger.debug(f"Executing command: {command}")
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            start_new_session=True,
            cwd=self.cwd,
        )

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except TimeoutError:
            logger.warning(
                f"Command timed out after {timeout}s, terminating process group {process.pid}"
            )
            await self._terminate(process)
            raise TimeoutError(f"Command timed out after {timeout} seconds")
        except asyncio.CancelledError:
            logger.warning(
                f"Command cancelled, terminating process group {process.pid}"
            )
            await self._terminate(process)
            raise

        output = stdout.decode("utf-8", errors="replace") if stdout else ""
        exit_code = process.returncode if process.returncode is not None else -1
        logger.debug(f"Command exited with code {exit_code}")
        return CommandResult(exit_code=exit_code, output=output)

    async def _terminate(self, process: asyncio.subprocess.Process) -> None:
        """Terminate a process group: SIGTERM, then SIGKILL after the grace period."""
        if not self._signal_group(process.pid, signal.SIGTERM):
            await process.wait()
            return

        try:
            await asyncio.wait_for(process.wait(), timeout=self.kill_grace_seconds)
        except TimeoutError:
            logger.warning(f"Process group {process.pid} ignored SIGTERM, sending SIGKILL")
            self._signal_group(process.pid, signal.SIGKILL)
            await process.wait()

        # Children may outlive the group leader
        self._signal_group(process.pid, signal.SIGKILL)

    @staticmethod
    def _signal_group(pgid: int, sig: int) -> bool:
        """Send a signal to a process group. Returns False if it is already gone."""
        try:
            os.killpg(pgid, sig)
        except ProcessLookupError:
            return False
        except PermissionError as e:
            logger.error(f"Failed to signal process group {pgid}: {e}")
            return False
        return True
