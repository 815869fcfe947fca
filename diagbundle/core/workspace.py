"""Output workspace allocation and retention.

Each diagnosis run gets a fresh directory created with tempfile.mkdtemp,
so concurrent runs never share one. Workspaces outlive the pipeline: the
transport releases a workspace once its bundle has been delivered, and a
periodic sweep removes anything left behind.

Ownership is recorded with a marker file next to each workspace
(".<workspace>.owned" in the root), so release and sweep only ever touch
directories this manager allocated, even when the root is shared.
"""

import logging
import shutil
import tempfile
import time
from pathlib import Path

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "diag_"
DEFAULT_ROOT_NAME = "diagbundle"
MARKER_SUFFIX = ".owned"


class WorkspaceManager:
    """Allocates, releases and sweeps diagnosis workspaces under one root."""

    def __init__(self, root: str | None = None, prefix: str = WORKSPACE_PREFIX):
        """Initialize the workspace manager.

        Args:
            root: Directory that holds all workspaces. Defaults to a
                "diagbundle" directory inside the system temporary directory.
            prefix: Name prefix of workspace directories.
        """
        self.root = Path(root) if root else Path(tempfile.gettempdir()) / DEFAULT_ROOT_NAME
        self.prefix = prefix

    def allocate(self) -> Path:
        """Create a new, empty, uniquely named workspace directory."""
        self.root.mkdir(parents=True, exist_ok=True)
        workspace = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.root)).resolve()
        self._marker(workspace).touch()
        logger.debug(f"Allocated workspace {workspace}")
        return workspace

    def _marker(self, workspace: Path) -> Path:
        return workspace.parent / f".{workspace.name}{MARKER_SUFFIX}"

    def _candidate(self, path: str | Path) -> Path | None:
        """Top-level prefixed directory under the root that contains path, if any."""
        resolved = Path(path).resolve()
        root = self.root.resolve()
        if resolved == root or not resolved.is_relative_to(root):
            return None
        top = resolved.relative_to(root).parts[0]
        if not top.startswith(self.prefix):
            return None
        return root / top

    def owns(self, path: str | Path) -> bool:
        """Return True if path lies inside a workspace allocated by this manager."""
        workspace = self._candidate(path)
        return workspace is not None and self._marker(workspace).is_file()

    def workspace_of(self, path: str | Path) -> Path:
        """Return the workspace directory containing path.

        Raises:
            ValueError: If path is not inside a workspace allocated under this root.
        """
        workspace = self._candidate(path)
        if workspace is None or not self._marker(workspace).is_file():
            raise ValueError(f"{path} is not inside a workspace under {self.root}")
        return workspace

    def release(self, path: str | Path) -> None:
        """Delete the workspace containing path.

        A workspace that no longer exists is ignored.

        Raises:
            ValueError: If path is not inside a workspace allocated under this root.
        """
        workspace = self._candidate(path)
        if workspace is None:
            raise ValueError(f"{path} is not inside a workspace under {self.root}")
        marker = self._marker(workspace)
        if not workspace.exists():
            marker.unlink(missing_ok=True)
            return
        if not marker.is_file():
            raise ValueError(f"{workspace} was not allocated by this workspace manager")
        shutil.rmtree(workspace)
        marker.unlink(missing_ok=True)
        logger.info(f"Released workspace {workspace}", extra={"workspace": str(workspace)})

    def sweep(self, max_age_seconds: float) -> list[Path]:
        """Delete owned workspaces whose modification time is older than max_age_seconds.

        Returns:
            The workspaces that were removed.
        """
        if not self.root.is_dir():
            return []

        cutoff = time.time() - max_age_seconds
        removed: list[Path] = []
        for candidate in sorted(self.root.iterdir()):
            if not candidate.name.startswith(self.prefix) or not candidate.is_dir():
                continue
            marker = self._marker(candidate)
            if not marker.is_file():
                continue
            try:
                if candidate.stat().st_mtime >= cutoff:
                    continue
                shutil.rmtree(candidate)
            except FileNotFoundError:
                # Released concurrently
                continue
            except OSError as e:
                logger.warning(f"Failed to sweep workspace {candidate}: {e}")
                continue
            marker.unlink(missing_ok=True)
            removed.append(candidate)

        if removed:
            logger.info(
                f"Swept {len(removed)} expired workspaces",
                extra={"count": len(removed), "root": str(self.root)},
            )
        return removed
