from __future__ import annotations

from contextlib import contextmanager
import logging
import threading
import time
from typing import Dict, Iterator

from .exceptions import LockTimeoutError

logger = logging.getLogger(__name__)


def _lock_key(owner_id: str) -> str:
    return f"owner:{owner_id}:bookings"


class OwnerLockRegistry:
    """In-process keyed mutexes, one per owner."""

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def acquire(self, owner_id: str, timeout_s: float) -> bool:
        key = _lock_key(owner_id)
        started = time.monotonic()
        acquired = self._lock_for(key).acquire(timeout=timeout_s)
        waited = time.monotonic() - started
        if not acquired:
            logger.warning(
                "owner_lock_acquire_timeout",
                extra={"owner_id": owner_id, "waited_s": round(waited, 3)},
            )
        elif waited > 1.0:
            logger.info(
                "owner_lock_acquire_slow",
                extra={"owner_id": owner_id, "waited_s": round(waited, 3)},
            )
        return acquired

    def release(self, owner_id: str) -> None:
        self._lock_for(_lock_key(owner_id)).release()

    def is_locked(self, owner_id: str) -> bool:
        return self._lock_for(_lock_key(owner_id)).locked()

    @contextmanager
    def hold(self, owner_id: str, timeout_s: float) -> Iterator[None]:
        """Hold the owner's mutex for the duration of the block.

        Raises:
            LockTimeoutError: If the mutex is not acquired within timeout_s
        """
        if not self.acquire(owner_id, timeout_s):
            raise LockTimeoutError(owner_id, timeout_s)
        try:
            yield
        finally:
            self.release(owner_id)
