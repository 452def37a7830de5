"""Per-user serialization of ledger recalculations.

Two cascades for the same user racing over the same months could leave an
opening balance that reflects only one of them, so every pass that rewrites
synthetic rows holds the owner's lock. Locks are re-entrant: an entry point
can hold it while calling the cascade.
"""

from __future__ import annotations

from contextlib import contextmanager
from threading import Lock, RLock
from typing import Dict, Iterator

_USER_LOCKS: Dict[int, RLock] = {}
_REGISTRY_LOCK = Lock()


def lock_for(user_id: int) -> RLock:
    """Return the lock owned by *user_id*, creating it on first use."""

    with _REGISTRY_LOCK:
        lock = _USER_LOCKS.get(user_id)
        if lock is None:
            lock = RLock()
            _USER_LOCKS[user_id] = lock
        return lock


@contextmanager
def user_lock(user_id: int) -> Iterator[None]:
    """Hold the user's lock for the duration of the block."""

    lock = lock_for(user_id)
    with lock:
        yield


def clear_locks() -> None:
    """Forget all registered locks (useful for tests)."""

    with _REGISTRY_LOCK:
        _USER_LOCKS.clear()
