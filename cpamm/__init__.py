"""
cpamm: a constant-product AMM pool ledger.
"""

from .errors import AmmError
from .integration import AssetRegistry, EngineConfig, InMemoryCustody, PoolService, build_service, load_config
from .state import PoolLedger, derive_pool_key

__version__ = "0.1.0"

__all__ = [
    "AmmError",
    "AssetRegistry",
    "EngineConfig",
    "InMemoryCustody",
    "PoolLedger",
    "PoolService",
    "build_service",
    "derive_pool_key",
    "load_config",
]
