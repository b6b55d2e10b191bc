"""
Pool identity and per-pool state.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from ..errors import IdenticalAssets, InvalidPair
from ..kernels.python.uint256 import MAX_RESERVE
from .balances import Amount, AssetId
from .canonical import MAX_ASSET_ID_BYTES, domain_sep_bytes, encode_bytes, hex_to_bytes
from .lp import ShareTable


class PoolStatus(Enum):
    """Pool status enumeration."""
    UNINITIALIZED = "UNINITIALIZED"
    SEEDED = "SEEDED"


def _asset_bytes(asset: AssetId) -> bytes:
    return hex_to_bytes(asset, name="asset", max_nbytes=MAX_ASSET_ID_BYTES)


def canonical_asset_id(asset: AssetId) -> AssetId:
    """Normalize an asset id to lowercase 0x-prefixed hex."""
    return "0x" + _asset_bytes(asset).hex()


@dataclass(frozen=True)
class PoolKey:
    """
    Order-independent identifier for an unordered asset pair.

    `asset0 < asset1` under byte-wise order; `hex` is the ledger lookup key.
    """

    hex: str
    asset0: AssetId
    asset1: AssetId

    def __str__(self) -> str:
        return self.hex


def derive_pool_key(asset_x: AssetId, asset_y: AssetId) -> PoolKey:
    """
    Deterministically derive the pool key for an asset pair.

        key = H(domain_sep("pool_key") || len(a) || a || len(b) || b),  a < b

    Raises:
        IdenticalAssets: If both ids name the same asset (an InvalidPair)
    """
    raw_x = _asset_bytes(asset_x)
    raw_y = _asset_bytes(asset_y)
    if raw_x == raw_y:
        raise IdenticalAssets(f"pool assets must differ: {'0x' + raw_x.hex()}")
    lo, hi = sorted((raw_x, raw_y))

    digest = hashlib.sha256(domain_sep_bytes("pool_key") + encode_bytes(lo) + encode_bytes(hi)).hexdigest()
    return PoolKey(hex="0x" + digest, asset0="0x" + lo.hex(), asset1="0x" + hi.hex())


@dataclass
class Pool:
    """
    State of one asset pair's pool.

    Attributes:
        key: Pool key (fixes asset_a/asset_b ordering)
        reserve_a: Custodied amount of key.asset0
        reserve_b: Custodied amount of key.asset1
        shares: Per-actor share balances with running total
    """
    key: PoolKey
    reserve_a: Amount = 0
    reserve_b: Amount = 0
    shares: ShareTable = field(default_factory=ShareTable)

    @property
    def asset_a(self) -> AssetId:
        return self.key.asset0

    @property
    def asset_b(self) -> AssetId:
        return self.key.asset1

    @property
    def total_shares(self) -> Amount:
        return self.shares.total

    @property
    def status(self) -> PoolStatus:
        return PoolStatus.SEEDED if self.total_shares > 0 else PoolStatus.UNINITIALIZED

    def is_asset_a(self, asset: AssetId) -> bool:
        """
        True if `asset` is this pool's asset_a, False if asset_b.

        Raises:
            InvalidPair: If asset is not in this pool
        """
        canon = canonical_asset_id(asset)
        if canon == self.asset_a:
            return True
        if canon == self.asset_b:
            return False
        raise InvalidPair(f"Asset {asset} not in pool {self.key.hex}")

    def get_reserve(self, asset: AssetId) -> Amount:
        return self.reserve_a if self.is_asset_a(asset) else self.reserve_b

    def check_invariants(self) -> List[str]:
        """Return the list of violated invariant ids (empty = all pass)."""
        violations = []
        if not (0 <= self.reserve_a <= MAX_RESERVE and 0 <= self.reserve_b <= MAX_RESERVE):
            violations.append("reserves_in_range")
        seeded = self.total_shares > 0
        if (self.reserve_a > 0) != seeded or (self.reserve_b > 0) != seeded:
            violations.append("seeded_consistency")
        if not self.shares.verify_total():
            violations.append("share_conservation")
        return violations

    def copy(self) -> "Pool":
        return Pool(key=self.key, reserve_a=self.reserve_a, reserve_b=self.reserve_b, shares=self.shares.copy())

    def __repr__(self) -> str:
        return (
            f"Pool(key={self.key.hex[:18]}..., "
            f"reserves=({self.reserve_a}, {self.reserve_b}), "
            f"total_shares={self.total_shares}, status={self.status.value})"
        )
