import threading
import time
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Tuple

from account_ledger.core.errors import StorageTimeoutError


class AccountLockManager:
    """
    In-process per-account locks.

    A batch always takes its locks in sorted key order, so two batches that
    share accounts can never hold one lock each while waiting for the other.
    Lock objects are reference counted and dropped once nobody holds or
    waits for them.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, Tuple[threading.Lock, int]] = {}

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, users + 1)
            return lock

    def _checkin(self, key: str) -> None:
        with self._guard:
            lock, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    @contextmanager
    def hold(self, keys: Iterable, timeout: float) -> Iterator[List[str]]:
        ordered = sorted({str(key) for key in keys})
        deadline = time.monotonic() + timeout
        acquired: List[threading.Lock] = []
        checked_out: List[str] = []
        try:
            for key in ordered:
                lock = self._checkout(key)
                checked_out.append(key)
                remaining = max(0.0, deadline - time.monotonic())
                if not lock.acquire(timeout=remaining):
                    raise StorageTimeoutError(
                        f"Timed out after {timeout}s waiting for account {key}"
                    )
                acquired.append(lock)
            yield ordered
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in reversed(checked_out):
                self._checkin(key)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
