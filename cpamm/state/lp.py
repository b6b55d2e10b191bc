"""
Pool share balance tracking.

Shares are scoped to a single pool and tracked separately from asset balances.
"""

from __future__ import annotations

from typing import Dict, Iterator, Tuple

from ..errors import ArithmeticOverflow, InsufficientShares, InvalidAmount
from ..kernels.python.uint256 import MAX_RESERVE, RESERVE_BITS
from .balances import Actor, Amount


class ShareTable:
    """
    Share balance table mapping actor -> shares, with a running total.

    Notes:
    - Balances are always non-negative.
    - Zero balances are omitted to keep the table sparse.
    - `credit` / `debit` update the actor entry and the total together; a
      rejected call changes neither.
    """

    def __init__(self) -> None:
        self._balances: Dict[Actor, Amount] = {}
        self._total: Amount = 0

    @property
    def total(self) -> Amount:
        return self._total

    def get(self, actor: Actor) -> Amount:
        """Get share balance for actor. Returns 0 if not found."""
        return self._balances.get(actor, 0)

    def credit(self, actor: Actor, amount: Amount) -> None:
        if amount < 0:
            raise InvalidAmount(f"Credit must be non-negative: {amount}")
        new_total = self._total + amount
        if new_total > MAX_RESERVE:
            raise ArithmeticOverflow(f"total shares exceed {RESERVE_BITS}-bit reserve width")
        self._set(actor, self.get(actor) + amount)
        self._total = new_total

    def debit(self, actor: Actor, amount: Amount) -> None:
        if amount < 0:
            raise InvalidAmount(f"Debit must be non-negative: {amount}")
        current = self.get(actor)
        if amount > current:
            raise InsufficientShares(
                f"Insufficient shares: {actor} holds {current}, needs {amount}"
            )
        self._set(actor, current - amount)
        self._total -= amount

    def _set(self, actor: Actor, amount: Amount) -> None:
        if amount == 0:
            self._balances.pop(actor, None)
        else:
            self._balances[actor] = amount

    def items(self) -> Iterator[Tuple[Actor, Amount]]:
        """Iterate (actor, shares) in actor order."""
        for actor in sorted(self._balances):
            yield actor, self._balances[actor]

    def copy(self) -> "ShareTable":
        out = ShareTable()
        out._balances = dict(self._balances)
        out._total = self._total
        return out

    def verify_total(self) -> bool:
        """Verify sum(balances) == total and all balances are positive."""
        if any(amount <= 0 for amount in self._balances.values()):
            return False
        return sum(self._balances.values()) == self._total

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"ShareTable({len(self._balances)} holders, total={self._total})"
