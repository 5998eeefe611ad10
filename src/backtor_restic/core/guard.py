"""Exclusive access to the backup repository."""

import logging
import threading
from pathlib import Path
from typing import Optional

from filelock import FileLock

logger = logging.getLogger(__name__)


class RepositoryGuard:
    """Serialize every operation that touches the repository.

    Only one holder at a time; other callers block until it is released.
    With ``lock_path`` set, a lock file is also held so that several worker
    processes on one host serialize as well.
    """

    def __init__(self, lock_path: Optional[Path | str] = None) -> None:
        self._lock = threading.Lock()
        self.lock_path = Path(lock_path) if lock_path else None
        self._file_lock = FileLock(self.lock_path) if self.lock_path else None

    def acquire(self) -> None:
        logger.debug("Waiting for repository guard")
        self._lock.acquire()
        if self._file_lock is not None:
            try:
                self._file_lock.acquire()
            except BaseException:
                self._lock.release()
                raise
        logger.debug("Repository guard acquired")

    def release(self) -> None:
        try:
            if self._file_lock is not None:
                self._file_lock.release()
        finally:
            self._lock.release()
            logger.debug("Repository guard released")

    def locked(self) -> bool:
        """Whether some caller currently holds the guard."""
        return self._lock.locked()

    def __enter__(self) -> "RepositoryGuard":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.release()
