"""Host directory preparation for the OpenCloud volumes."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import RuntimeFailure
from ..shared.logging import get_logger
from .constants import DIRECTORY_MODE, SERVICE_GID, SERVICE_UID

logger = get_logger(__name__)


@dataclass
class StorageResult:
    """Outcome of directory preparation."""

    directories: list[Path] = field(default_factory=list)
    error: RuntimeFailure | None = None


class StoragePreparer:
    """Create the data and config directories with the service's ownership."""

    def __init__(
        self,
        config_dir: Path,
        uid: int = SERVICE_UID,
        gid: int = SERVICE_GID,
        mode: int = DIRECTORY_MODE,
        chown=None,
    ):
        """Initialize storage preparer.

        Args:
            config_dir: Host directory mounted at /etc/opencloud.
            uid: Owner applied recursively.
            gid: Group applied recursively.
            mode: Permission bits for the top-level directories.
            chown: Callable(path, uid, gid, follow_symlinks=...), default os.chown.
        """
        self.config_dir = config_dir
        self.uid = uid
        self.gid = gid
        self.mode = mode
        self._chown = chown or os.chown

    def prepare(self, storage_path: str | Path) -> StorageResult:
        """Create both directories and apply ownership and mode.

        Safe to rerun on existing directories.
        """
        directories = [Path(storage_path), self.config_dir]
        try:
            for directory in directories:
                directory.mkdir(parents=True, exist_ok=True)
                self._chown_tree(directory)
                directory.chmod(self.mode)
        except OSError as e:
            return StorageResult(
                directories=directories,
                error=RuntimeFailure(f"Cannot prepare storage directory: {e}"),
            )

        logger.info("storage.ready", directories=[str(d) for d in directories])
        return StorageResult(directories=directories)

    def _chown_tree(self, root: Path) -> None:
        # Links inside the tree are chowned themselves, never their targets.
        self._chown(root, self.uid, self.gid, follow_symlinks=True)
        for dirpath, dirnames, filenames in os.walk(root):
            for name in dirnames + filenames:
                self._chown(os.path.join(dirpath, name), self.uid, self.gid, follow_symlinks=False)
