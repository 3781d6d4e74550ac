"""
Per-account withdrawal locks.

At most one withdrawal per account may be in flight. A second request
for a held account is refused immediately; there is no waiting queue
and no timeout on a held lock.
"""

import threading
from contextlib import contextmanager
from typing import FrozenSet, Iterator, Set


class AccountBusy(Exception):
    """A withdrawal for this account is already in progress."""
    def __init__(self, account: str):
        self.account = account
        super().__init__(f"withdrawal already in progress for {account}")


class AccountLockManager:
    """
    In-process lock set keyed by lowercased account address.

    Thread-safe; requests for different accounts never contend beyond
    the short critical section that updates the set.

    Not shared between processes. A deployment running several workers
    needs a distributed implementation exposing the same methods.
    """

    def __init__(self):
        self._held: Set[str] = set()
        self._lock = threading.Lock()

    @staticmethod
    def _key(account: str) -> str:
        return account.lower()

    def try_acquire(self, account: str) -> bool:
        """
        Atomically take the lock for `account`.

        Returns:
            True if acquired, False if it is already held
        """
        key = self._key(account)
        with self._lock:
            if key in self._held:
                return False
            self._held.add(key)
            return True

    def release(self, account: str) -> None:
        """Drop the lock for `account`. Releasing a free account is a no-op."""
        with self._lock:
            self._held.discard(self._key(account))

    @contextmanager
    def hold(self, account: str) -> Iterator[None]:
        """
        Hold the lock for the duration of the block.

        Raises:
            AccountBusy: if the account is already locked. Nothing is
                released in that case.
        """
        if not self.try_acquire(account):
            raise AccountBusy(account)
        try:
            yield
        finally:
            self.release(account)

    def is_held(self, account: str) -> bool:
        with self._lock:
            return self._key(account) in self._held

    def held(self) -> FrozenSet[str]:
        """Snapshot of the currently locked accounts."""
        with self._lock:
            return frozenset(self._held)

    def __len__(self) -> int:
        with self._lock:
            return len(self._held)
