"""Discovery of the archive left behind by the diagnostic script.

The script writes its archive into a subdirectory of the workspace, one
level down. Entries are visited in sorted name order at both levels, so
when a script leaves more than one archive the lexicographically first
subdirectory, then the first file inside it, wins.
"""

import logging
import os
from pathlib import Path

from .errors import PackageNotAvailableError, PackageNotFoundError

logger = logging.getLogger(__name__)


class BundleLocator:
    """Finds the diagnostic archive inside a workspace."""

    def __init__(self, suffix: str = ".zip"):
        self.suffix = suffix

    def locate(self, workspace_root: str | Path) -> str:
        """Return the absolute path of the archive under workspace_root.

        Raises:
            PackageNotAvailableError: If workspace_root cannot be listed.
            PackageNotFoundError: If no subdirectory holds a matching file.
        """
        root = Path(workspace_root).absolute()
        try:
            entries = sorted(os.scandir(root), key=lambda e: e.name)
        except OSError as e:
            raise PackageNotAvailableError(str(root)) from e

        for entry in entries:
            if not entry.is_dir():
                continue
            try:
                children = sorted(os.scandir(entry.path), key=lambda e: e.name)
            except OSError as e:
                logger.warning(f"Skipping unreadable directory {entry.path}: {e}")
                continue
            for child in children:
                if child.name.endswith(self.suffix) and child.is_file():
                    return str(Path(child.path).absolute())

        raise PackageNotFoundError(str(root))
