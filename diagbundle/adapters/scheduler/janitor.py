"""Workspace janitor scheduler.

Implements a long-running asyncio loop that periodically removes
diagnosis workspaces older than the retention window, catching bundles
that were never downloaded or released.
"""

import asyncio
import logging
from pathlib import Path

from diagbundle.core.workspace import WorkspaceManager

logger = logging.getLogger(__name__)


class WorkspaceJanitor:
    """Asyncio-based background sweeper for expired workspaces."""

    def __init__(
        self,
        workspaces: WorkspaceManager,
        retention_seconds: float,
        interval_seconds: float = 600,
    ):
        """Initialize the janitor.

        Args:
            workspaces: WorkspaceManager whose root is swept.
            retention_seconds: Age after which a workspace is removed.
            interval_seconds: Time between sweeps.
        """
        self.workspaces = workspaces
        self.retention_seconds = retention_seconds
        self.interval_seconds = interval_seconds
        self.running = False
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start sweeping in the background."""
        if self.running:
            logger.warning("Workspace janitor already running")
            return

        self.running = True
        logger.info(
            f"Starting workspace janitor: retention {self.retention_seconds}s, "
            f"interval {self.interval_seconds}s"
        )
        self._task = asyncio.create_task(self._run_loop())

    async def stop(self) -> None:
        """Stop the sweep loop."""
        if not self.running:
            return

        self.running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Workspace janitor stopped")

    async def run_once(self) -> list[Path]:
        """Run a single sweep without blocking the event loop."""
        return await asyncio.to_thread(self.workspaces.sweep, self.retention_seconds)

    async def _run_loop(self) -> None:
        """Main janitor loop."""
        sweep_number = 0
        while self.running:
            sweep_number += 1
            try:
                removed = await self.run_once()
                logger.debug(f"Sweep #{sweep_number} removed {len(removed)} workspaces")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in workspace sweep #{sweep_number}: {e}", exc_info=True)

            await asyncio.sleep(self.interval_seconds)
