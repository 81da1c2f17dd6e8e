from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Generator


class OrderLockRegistry:
    """Per-order exclusive locks for read-recompute-write sequences.

    An entry lives only while some thread holds or waits for it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, tuple[threading.Lock, int]] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    def _acquire_entry(self, order_id: str) -> threading.Lock:
        with self._guard:
            lock, users = self._locks.get(order_id, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[order_id] = (lock, users + 1)
            return lock

    def _release_entry(self, order_id: str) -> None:
        with self._guard:
            lock, users = self._locks[order_id]
            if users <= 1:
                del self._locks[order_id]
            else:
                self._locks[order_id] = (lock, users - 1)

    @contextmanager
    def hold(self, order_id: str) -> Generator[None, None, None]:
        lock = self._acquire_entry(order_id)
        try:
            with lock:
                yield
        finally:
            self._release_entry(order_id)


order_locks = OrderLockRegistry()
