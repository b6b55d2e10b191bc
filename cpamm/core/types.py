"""Result and event types for pool operations.

All types are frozen dataclasses. Amounts in receipts are reported in the
caller's asset order, not the pool's canonical order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Dict

from ..state.balances import Actor, Amount, AssetId


@unique
class Event(Enum):
    """One member per committed pool operation."""
    POOL_CREATED = "PoolCreated"
    SWAPPED = "Swapped"
    LIQUIDITY_ADDED = "LiquidityAdded"
    LIQUIDITY_REMOVED = "LiquidityRemoved"


@dataclass(frozen=True)
class PoolEvent:
    """Notification emitted after an operation has fully settled."""

    event: Event
    pool_key: str
    actor: Actor
    fields: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CreatePoolReceipt:
    pool_key: str
    asset_a: AssetId
    asset_b: AssetId
    amount_a: Amount
    amount_b: Amount
    shares: Amount


@dataclass(frozen=True)
class SwapReceipt:
    pool_key: str
    asset_in: AssetId
    asset_out: AssetId
    amount_in: Amount
    amount_out: Amount


@dataclass(frozen=True)
class AddLiquidityReceipt:
    pool_key: str
    asset_a: AssetId
    asset_b: AssetId
    amount_a: Amount
    amount_b: Amount
    shares: Amount


@dataclass(frozen=True)
class RemoveLiquidityReceipt:
    pool_key: str
    asset_a: AssetId
    asset_b: AssetId
    amount_a: Amount
    amount_b: Amount
    shares: Amount
