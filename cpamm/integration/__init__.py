"""
Integration layer: pool service, custody, asset registry and configuration.
"""

from .config import EngineConfig, build_service, config_from_env, config_from_mapping, configure_logging, load_config
from .custody import CUSTODY_ACCOUNT, Custody, InMemoryCustody, TransferError
from .pool_service import PoolService
from .registry import AssetRegistry, sign_registry_command

__all__ = [
    "EngineConfig",
    "build_service",
    "config_from_env",
    "config_from_mapping",
    "configure_logging",
    "load_config",
    "CUSTODY_ACCOUNT",
    "Custody",
    "InMemoryCustody",
    "TransferError",
    "PoolService",
    "AssetRegistry",
    "sign_registry_command",
]
