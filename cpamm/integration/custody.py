"""
Asset custody collaborator.

The pool engine never moves assets itself; it calls `transfer_in` /
`transfer_out` on a custody object. Any exception from those calls aborts the
operation. `InMemoryCustody` is the reference implementation, backed by a
`BalanceTable` with one account holding everything the pools custody.
"""

from __future__ import annotations

import threading
from typing import Optional, Protocol

from ..state.balances import Actor, Amount, AssetId, BalanceTable
from ..state.pools import canonical_asset_id


CUSTODY_ACCOUNT: Actor = "cpamm:custody"


class TransferError(Exception):
    """Raised by custody implementations when a transfer cannot be executed."""


class Custody(Protocol):
    def transfer_in(self, asset: AssetId, sender: Actor, amount: Amount) -> None:
        ...

    def transfer_out(self, asset: AssetId, recipient: Actor, amount: Amount) -> None:
        ...


class InMemoryCustody:
    def __init__(self, balances: Optional[BalanceTable] = None, *, account: Actor = CUSTODY_ACCOUNT) -> None:
        self.balances = balances if balances is not None else BalanceTable()
        self.account = account
        # One custody serves every pool, and pools run in parallel.
        self._lock = threading.Lock()

    def mint(self, actor: Actor, asset: AssetId, amount: Amount) -> None:
        """Credit an actor out of thin air (faucet for local setups and tests)."""
        with self._lock:
            self.balances.add(actor, canonical_asset_id(asset), amount)

    def balance_of(self, actor: Actor, asset: AssetId) -> Amount:
        return self.balances.get(actor, canonical_asset_id(asset))

    def held(self, asset: AssetId) -> Amount:
        """Total amount of `asset` currently in custody."""
        return self.balances.get(self.account, canonical_asset_id(asset))

    def _move(self, asset: AssetId, src: Actor, dst: Actor, amount: Amount) -> None:
        asset = canonical_asset_id(asset)
        if amount <= 0:
            raise TransferError(f"transfer amount must be positive: {amount}")
        with self._lock:
            available = self.balances.get(src, asset)
            if available < amount:
                raise TransferError(f"{src} holds {available} of {asset}, needs {amount}")
            self.balances.subtract(src, asset, amount)
            self.balances.add(dst, asset, amount)

    def transfer_in(self, asset: AssetId, sender: Actor, amount: Amount) -> None:
        self._move(asset, sender, self.account, amount)

    def transfer_out(self, asset: AssetId, recipient: Actor, amount: Amount) -> None:
        self._move(asset, self.account, recipient, amount)
