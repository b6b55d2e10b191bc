"""
Participant asset balances held outside the pools.

Backs the in-memory custody collaborator; pool reserves live in the ledger.
"""

from typing import Dict, Tuple

Actor = str  # opaque participant identity
AssetId = str  # canonical 0x-prefixed lowercase hex
Amount = int  # non-negative; committed reserves and shares are bounded by MAX_RESERVE


class BalanceTable:
    """(actor, asset) -> amount, with zero balances dropped."""

    def __init__(self) -> None:
        self._balances: Dict[Tuple[Actor, AssetId], Amount] = {}

    def get(self, actor: Actor, asset: AssetId) -> Amount:
        return self._balances.get((actor, asset), 0)

    def add(self, actor: Actor, asset: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")
        if amount:
            self._balances[(actor, asset)] = self.get(actor, asset) + amount

    def subtract(self, actor: Actor, asset: AssetId, amount: Amount) -> None:
        """
        Raises:
            ValueError: If amount is negative or exceeds the balance
        """
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {amount}")
        remaining = self.get(actor, asset) - amount
        if remaining < 0:
            raise ValueError(f"insufficient balance for {actor}: short by {-remaining}")
        if remaining:
            self._balances[(actor, asset)] = remaining
        else:
            self._balances.pop((actor, asset), None)

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
