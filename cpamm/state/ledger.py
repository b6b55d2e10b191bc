"""
Pool ledger: the single mutable store of pool state.

Maps pool key -> Pool. Share adjustments go through `credit_shares` /
`debit_shares`, which update the actor balance and the pool total together.

Concurrency: `locked(key)` serializes operations per pool key; pools with
different keys share no mutable state and can be driven from different
threads. A same-thread re-entry on a locked key raises `PoolLocked`.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from ..errors import PoolInvariantError, PoolLocked, PoolNotFound
from ..kernels.python.uint256 import require_reserve, require_uint
from .balances import Actor, Amount
from .pools import Pool, PoolKey


class PoolLedger:
    def __init__(self) -> None:
        self._pools: Dict[str, Pool] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._owners: Dict[str, int] = {}
        # Threads holding or waiting for each key's lock.
        self._users: Dict[str, int] = {}
        # Guards the dicts above, never held across an operation.
        self._guard = threading.Lock()

    def get(self, key: PoolKey) -> Optional[Pool]:
        return self._pools.get(key.hex)

    def get_or_create(self, key: PoolKey) -> Pool:
        """Return the pool for `key`, creating an empty UNINITIALIZED entry if absent."""
        with self._guard:
            pool = self._pools.get(key.hex)
            if pool is None:
                pool = Pool(key=key)
                self._pools[key.hex] = pool
            return pool

    def _require(self, key: PoolKey) -> Pool:
        pool = self._pools.get(key.hex)
        if pool is None:
            raise PoolNotFound(f"no pool for key {key.hex}")
        return pool

    def credit_shares(self, key: PoolKey, actor: Actor, amount: Amount) -> None:
        self._require(key).shares.credit(actor, require_uint("amount", amount))

    def debit_shares(self, key: PoolKey, actor: Actor, amount: Amount) -> None:
        """
        Raises:
            InsufficientShares: If actor holds fewer than `amount` shares
        """
        self._require(key).shares.debit(actor, require_uint("amount", amount))

    def share_balance(self, key: PoolKey, actor: Actor) -> Amount:
        pool = self._pools.get(key.hex)
        return 0 if pool is None else pool.shares.get(actor)

    def set_reserves(self, key: PoolKey, reserve_a: Amount, reserve_b: Amount) -> None:
        pool = self._require(key)
        pool.reserve_a = require_reserve("reserve_a", reserve_a)
        pool.reserve_b = require_reserve("reserve_b", reserve_b)

    def verify(self, key: PoolKey) -> None:
        """
        Raises:
            PoolInvariantError: If the pool's current state violates an invariant
        """
        violations = self._require(key).check_invariants()
        if violations:
            raise PoolInvariantError(violations)

    def snapshot(self, key: PoolKey) -> Optional[Pool]:
        """Detached copy of the pool (None if absent), for `restore`."""
        pool = self._pools.get(key.hex)
        return None if pool is None else pool.copy()

    def view(self, key: PoolKey) -> Optional[Pool]:
        """
        Detached copy of settled state.

        Waits for an operation in flight on another thread; a re-entrant read
        from the thread holding the key reads directly.
        """
        ident = threading.get_ident()
        with self._guard:
            lock = self._locks.get(key.hex)
            owned = self._owners.get(key.hex) == ident
        if lock is None or owned:
            return self.snapshot(key)
        with lock:
            return self.snapshot(key)

    def restore(self, key: PoolKey, snapshot: Optional[Pool]) -> None:
        with self._guard:
            if snapshot is None:
                self._pools.pop(key.hex, None)
            else:
                self._pools[key.hex] = snapshot.copy()

    def insert(self, pool: Pool) -> None:
        """Insert a fully built pool (used when loading snapshots)."""
        violations = pool.check_invariants()
        if violations:
            raise PoolInvariantError(violations)
        with self._guard:
            self._pools[pool.key.hex] = pool

    @contextmanager
    def locked(self, key: PoolKey) -> Iterator[None]:
        ident = threading.get_ident()
        with self._guard:
            if self._owners.get(key.hex) == ident:
                raise PoolLocked(f"operation already in progress on pool {key.hex}")
            lock = self._locks.setdefault(key.hex, threading.Lock())
            self._users[key.hex] = self._users.get(key.hex, 0) + 1
        lock.acquire()
        with self._guard:
            self._owners[key.hex] = ident
        try:
            yield
        finally:
            with self._guard:
                self._owners.pop(key.hex, None)
                self._users[key.hex] -= 1
                # A key with no pool entry keeps no lock once idle.
                if self._users[key.hex] == 0:
                    del self._users[key.hex]
                    if key.hex not in self._pools:
                        del self._locks[key.hex]
            lock.release()

    def pools(self) -> Iterator[Pool]:
        """Iterate pools in key order."""
        for key_hex in sorted(self._pools):
            yield self._pools[key_hex]

    def __len__(self) -> int:
        return len(self._pools)

    def __repr__(self) -> str:
        return f"PoolLedger({len(self._pools)} pools)"
