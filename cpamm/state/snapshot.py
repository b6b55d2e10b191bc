"""
Ledger snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing / persistence.
- Round-trippable into a `PoolLedger`, with every pool re-validated on load.
- Explicit versioning.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from .canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex
from .ledger import PoolLedger
from .lp import ShareTable
from .pools import Pool, derive_pool_key


LEDGER_SNAPSHOT_VERSION = 1


def _require_str(value: Any, *, name: str, max_len: int = 4096) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Deterministic, versioned snapshot of a `PoolLedger`.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("ledger_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("ledger_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def _pool_entry(pool: Pool) -> Dict[str, Any]:
    return {
        "pool_key": pool.key.hex,
        "asset_a": pool.asset_a,
        "asset_b": pool.asset_b,
        "reserve_a": int(pool.reserve_a),
        "reserve_b": int(pool.reserve_b),
        "total_shares": int(pool.total_shares),
        "shares": [{"actor": actor, "amount": int(amount)} for actor, amount in pool.shares.items()],
    }


def snapshot_from_ledger(ledger: PoolLedger) -> LedgerSnapshot:
    # Empty UNINITIALIZED entries carry no state and are left out.
    pools = [_pool_entry(pool) for pool in ledger.pools() if pool.total_shares > 0]
    data = {"version": LEDGER_SNAPSHOT_VERSION, "pools": pools}
    return LedgerSnapshot(version=LEDGER_SNAPSHOT_VERSION, data=data)


def _pool_from_entry(entry: Mapping[str, Any]) -> Pool:
    if not isinstance(entry, Mapping):
        raise TypeError("pool entry must be an object")
    key = derive_pool_key(
        _require_str(entry.get("asset_a"), name="asset_a"),
        _require_str(entry.get("asset_b"), name="asset_b"),
    )
    if _require_str(entry.get("pool_key"), name="pool_key") != key.hex:
        raise ValueError(f"pool_key does not match assets: {entry.get('pool_key')}")
    if entry.get("asset_a") != key.asset0:
        raise ValueError("pool assets must be stored in canonical order")

    shares = ShareTable()
    raw_shares = entry.get("shares")
    if not isinstance(raw_shares, list):
        raise TypeError("shares must be a list")
    seen = set()
    for share in raw_shares:
        if not isinstance(share, Mapping):
            raise TypeError("share entry must be an object")
        actor = _require_str(share.get("actor"), name="actor")
        if actor in seen:
            raise ValueError(f"duplicate share entry for {actor}")
        seen.add(actor)
        shares.credit(actor, _require_int(share.get("amount"), name="amount"))

    if shares.total != _require_int(entry.get("total_shares"), name="total_shares"):
        raise ValueError("total_shares does not match share entries")

    return Pool(
        key=key,
        reserve_a=_require_int(entry.get("reserve_a"), name="reserve_a"),
        reserve_b=_require_int(entry.get("reserve_b"), name="reserve_b"),
        shares=shares,
    )


def ledger_from_snapshot(data: Mapping[str, Any]) -> PoolLedger:
    """
    Rebuild a ledger from snapshot data.

    Raises:
        TypeError / ValueError: On malformed data
        PoolInvariantError: If a pool's state violates an invariant
    """
    if not isinstance(data, Mapping):
        raise TypeError("snapshot must be an object")
    if data.get("version") != LEDGER_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {data.get('version')!r}")
    pools = data.get("pools")
    if not isinstance(pools, list):
        raise TypeError("pools must be a list")

    ledger = PoolLedger()
    for entry in pools:
        pool = _pool_from_entry(entry)
        if ledger.get(pool.key) is not None:
            raise ValueError(f"duplicate pool entry: {pool.key.hex}")
        ledger.insert(pool)
    return ledger
