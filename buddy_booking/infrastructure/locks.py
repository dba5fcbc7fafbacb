"""Per-key mutual exclusion for accounts and slots"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class LockTimeoutError(RuntimeError):
    """A keyed lock could not be acquired in time"""


class _Entry:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class KeyedLock:
    """
    Registry of locks created on demand, one per key.

    Unrelated keys never contend. Entries are dropped once nobody holds or
    waits for them, so the registry stays as small as the set of keys in use.
    Callers that take several keys must always take them in the same order
    (slot key before account key).
    """

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._entries: Dict[str, _Entry] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.holders += 1

        acquired = entry.lock.acquire(timeout=-1 if self.timeout is None else self.timeout)
        try:
            if not acquired:
                raise LockTimeoutError(f"Timed out waiting for lock {key!r}")
            yield
        finally:
            if acquired:
                entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


def account_lock_key(account_id: str) -> str:
    return f"account:{account_id}"
