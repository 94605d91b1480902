"""Per-user mutual exclusion for mutating engine calls."""

import threading
import weakref
from contextlib import contextmanager


class UserLockRegistry:
    """Hands out one re-entrant lock per user id.

    Locks are held weakly: a user's lock lives only while some caller holds
    or waits on it, so the registry does not grow with every user ever seen.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, user_id: str):
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[user_id] = lock
            return lock

    @contextmanager
    def hold(self, user_id: str):
        lock = self.lock_for(user_id)
        with lock:
            yield
