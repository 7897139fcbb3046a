"""Single-run lock.

Two installers on one host would race on the manifest path and the fixed
container names. The lock is an flock on a file, released when the process
exits even if it dies.
"""

from __future__ import annotations

import fcntl
import os
from pathlib import Path

from ..errors import EnvironmentCheckError
from ..shared.logging import get_logger

logger = get_logger(__name__)


class DeploymentLock:
    """Exclusive, non-blocking lock held for the duration of a run."""

    def __init__(self, path: Path):
        self.path = path
        self._fd: int | None = None

    def acquire(self) -> None:
        """Take the lock.

        Raises:
            EnvironmentCheckError: another run holds it or the file is unusable.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o600)
        except OSError as e:
            raise EnvironmentCheckError(f"Cannot open lock file {self.path}: {e}") from e

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            os.close(fd)
            raise EnvironmentCheckError(
                "Another ocdeploy run is in progress on this host",
                hint=f"Wait for it to finish (lock: {self.path})",
            ) from e

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        self._fd = fd
        logger.debug("lock.acquired", path=str(self.path))

    def release(self) -> None:
        if self._fd is None:
            return
        fcntl.flock(self._fd, fcntl.LOCK_UN)
        os.close(self._fd)
        self._fd = None
        logger.debug("lock.released", path=str(self.path))

    def __enter__(self) -> DeploymentLock:
        self.acquire()
        return self

    def __exit__(self, *exc) -> None:
        self.release()
