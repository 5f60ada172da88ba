"""
Collector process lock.

Only one collector may write to a given database. The API process and the
standalone worker both try this non-blocking file lock before starting the
collection loop; whoever fails to get it does not collect.

The lock is host-local (same machine/container).
"""

from __future__ import annotations

import os
from typing import IO, Optional

from .logging import get_logger

logger = get_logger(__name__)


class CollectorLock:
    def __init__(self, path: str) -> None:
        self.path = path
        self._fh: Optional[IO[str]] = None

    @property
    def held(self) -> bool:
        return self._fh is not None

    def acquire(self) -> bool:
        """Try to take the lock without blocking. Returns True on success."""
        if self._fh is not None:
            return True
        try:
            fh: IO[str] = open(self.path, "a+", encoding="utf-8")
        except OSError as e:
            logger.warning("Collector lock init failed: %s", e)
            return False

        try:
            fh.seek(0)
            if os.name == "nt":
                import msvcrt

                msvcrt.locking(fh.fileno(), msvcrt.LK_NBLCK, 1)
            else:
                import fcntl

                fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            fh.close()
            logger.info("Collector lock held by another process: %s", self.path)
            return False

        fh.seek(0)
        fh.truncate()
        fh.write(str(os.getpid()))
        fh.flush()
        self._fh = fh
        return True

    def release(self) -> None:
        fh, self._fh = self._fh, None
        if fh is None:
            return
        try:
            if os.name == "nt":
                import msvcrt

                fh.seek(0)
                msvcrt.locking(fh.fileno(), msvcrt.LK_UNLCK, 1)
            else:
                import fcntl

                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            logger.warning("Collector lock release failed: %s", e)
        finally:
            fh.close()
