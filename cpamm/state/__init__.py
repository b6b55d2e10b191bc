"""
State management for the pool engine
"""

from .balances import BalanceTable
from .ledger import PoolLedger
from .lp import ShareTable
from .nonces import NonceTable
from .pools import Pool, PoolKey, PoolStatus, canonical_asset_id, derive_pool_key

__all__ = [
    "BalanceTable",
    "PoolLedger",
    "ShareTable",
    "NonceTable",
    "Pool",
    "PoolKey",
    "PoolStatus",
    "canonical_asset_id",
    "derive_pool_key",
]
