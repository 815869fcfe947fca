"""Execution of the external diagnostic script.

The script is the sole authority on what gets collected. This module only
invokes it safely, classifies its exit status, and hands the workspace to
the locator. Failed runs are never retried: the script may have left
partial output behind.
"""

import logging
import os
import shlex
from collections.abc import Sequence
from pathlib import Path

from .errors import DiagnosisExecutionError, DiagnosisTimeoutError, ScriptNotFoundError
from .locator import BundleLocator
from .ports import CommandExecutorPort
from .workspace import WorkspaceManager

logger = logging.getLogger(__name__)

# Captured script output is logged up to this many characters
MAX_LOGGED_OUTPUT = 4000


def build_command(script: str | Path, args: Sequence[str]) -> str:
    """Join the script path and its arguments into one command line.

    Order is preserved. Each part is shell-quoted, which leaves plain
    identifiers and paths untouched.
    """
    return " ".join(shlex.quote(str(part)) for part in (script, *args))


class DiagnosticRunner:
    """Runs the diagnostic script for one identifier and locates its bundle."""

    def __init__(
        self,
        executor: CommandExecutorPort,
        workspaces: WorkspaceManager,
        locator: BundleLocator,
        installation_home: str,
        script_name: str = "diag.sh",
        script_dir: str = "bin",
        default_timeout: float | None = None,
    ):
        """Initialize the runner.

        Args:
            executor: CommandExecutorPort used to run the script.
            workspaces: WorkspaceManager that allocates output directories.
            locator: BundleLocator used once the script succeeds.
            installation_home: Installation directory holding the script.
            script_name: File name of the diagnostic script.
            script_dir: Directory of the script, relative to installation_home.
            default_timeout: Seconds before the script is killed when the
                caller gives no timeout. None waits indefinitely.
        """
        self.executor = executor
        self.workspaces = workspaces
        self.locator = locator
        self.installation_home = installation_home
        self.script_name = script_name
        self.script_dir = script_dir
        self.default_timeout = default_timeout

    @property
    def script_path(self) -> Path:
        return (Path(self.installation_home) / self.script_dir / self.script_name).absolute()

    def resolve_script(self) -> Path:
        """Return the script path, checking it exists and is executable.

        Raises:
            ScriptNotFoundError: If the script is missing or not executable.
        """
        script = self.script_path
        if not script.is_file() or not os.access(script, os.X_OK):
            raise ScriptNotFoundError(str(script))
        return script

    async def run(self, identifier: str, timeout: float | None = None) -> str:
        """Generate a bundle for a project name or job ID.

        Steps:
        1. Allocate a fresh workspace
        2. Resolve the script
        3. Build "<script> <identifier> <workspace>"
        4. Execute and wait (bounded by timeout)
        5. Classify the exit code
        6. Locate the archive

        Returns:
            Absolute path of the archive.

        Raises:
            ScriptNotFoundError: If the script is missing.
            DiagnosisTimeoutError: If the script exceeded the timeout.
            DiagnosisExecutionError: If the script exited non-zero.
            PackageNotAvailableError: If the workspace cannot be listed.
            PackageNotFoundError: If the script left no archive.
        """
        workspace = self.workspaces.allocate()
        script = self.resolve_script()

        args = [identifier, str(workspace)]
        command = build_command(script, args)
        logger.debug(f"Diagnosis script args: {args}")

        effective_timeout = timeout if timeout is not None else self.default_timeout
        try:
            result = await self.executor.execute(command, timeout=effective_timeout)
        except TimeoutError as e:
            logger.error(
                f"Diagnosis script timed out after {effective_timeout}s",
                extra={"identifier": identifier, "workspace": str(workspace)},
            )
            raise DiagnosisTimeoutError(effective_timeout or 0.0) from e

        if not result.succeeded:
            logger.error(
                f"Diagnosis script failed with exit code {result.exit_code}: "
                f"{result.output[-MAX_LOGGED_OUTPUT:]}",
                extra={
                    "identifier": identifier,
                    "exit_code": result.exit_code,
                    "workspace": str(workspace),
                },
            )
            raise DiagnosisExecutionError(result.exit_code)

        return self.locator.locate(workspace)
