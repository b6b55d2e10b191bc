"""
Engine configuration.

A YAML file (PyYAML `safe_load`) with the keys:

    chain_id: cpamm-local
    admin_pubkey: 0x...          # optional, 48-byte BLS12-381 G1 pubkey
    supported_assets: [0x..., 0x...]
    log_level: INFO

`CPAMM_CHAIN_ID`, `CPAMM_ADMIN_PUBKEY` and `CPAMM_LOG_LEVEL` override the
file values when set.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union

import yaml

from ..state.balances import AssetId
from ..state.canonical import canonical_hex_allow_0x
from ..state.ledger import PoolLedger
from ..state.nonces import PUBKEY_NBYTES
from ..state.pools import canonical_asset_id
from .custody import Custody
from .pool_service import EventSink, PoolService
from .registry import AssetRegistry

DEFAULT_CHAIN_ID = "cpamm-local"
DEFAULT_LOG_LEVEL = "INFO"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_KNOWN_KEYS = frozenset({"chain_id", "admin_pubkey", "supported_assets", "log_level"})


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class EngineConfig:
    chain_id: str = DEFAULT_CHAIN_ID
    admin_pubkey: Optional[str] = None
    supported_assets: Tuple[AssetId, ...] = ()
    log_level: str = DEFAULT_LOG_LEVEL


def _parse_log_level(value: Any) -> str:
    if not isinstance(value, str) or value.upper() not in _LOG_LEVELS:
        raise ConfigError(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {value!r}")
    return value.upper()


def _parse_pubkey(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        return canonical_hex_allow_0x(value, nbytes=PUBKEY_NBYTES, name="admin_pubkey")
    except (TypeError, ValueError) as exc:
        raise ConfigError(str(exc)) from exc


def config_from_mapping(obj: Mapping[str, Any]) -> EngineConfig:
    if not isinstance(obj, Mapping):
        raise ConfigError("config must be a mapping")
    unknown = set(obj) - _KNOWN_KEYS
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(sorted(map(str, unknown)))}")

    chain_id = obj.get("chain_id", DEFAULT_CHAIN_ID)
    if not isinstance(chain_id, str) or not chain_id:
        raise ConfigError("chain_id must be a non-empty string")

    raw_assets = obj.get("supported_assets") or []
    if not isinstance(raw_assets, list):
        raise ConfigError("supported_assets must be a list")
    try:
        assets = tuple(sorted({canonical_asset_id(a) for a in raw_assets}))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid supported asset: {exc}") from exc

    return EngineConfig(
        chain_id=chain_id,
        admin_pubkey=_parse_pubkey(obj.get("admin_pubkey")),
        supported_assets=assets,
        log_level=_parse_log_level(obj.get("log_level", DEFAULT_LOG_LEVEL)),
    )


def load_config(path: Union[str, Path]) -> EngineConfig:
    """
    Load an `EngineConfig` from a YAML file. An empty file yields the defaults.

    Raises:
        ConfigError: If the document is not a mapping or a value is invalid
        OSError: If the file cannot be read
    """
    text = Path(path).read_text(encoding="utf-8")
    try:
        obj = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    return config_from_mapping({} if obj is None else obj)


def config_from_env(base: Optional[EngineConfig] = None, environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    env = os.environ if environ is None else environ
    config = base if base is not None else EngineConfig()
    if env.get("CPAMM_CHAIN_ID"):
        config = replace(config, chain_id=env["CPAMM_CHAIN_ID"])
    if env.get("CPAMM_ADMIN_PUBKEY"):
        config = replace(config, admin_pubkey=_parse_pubkey(env["CPAMM_ADMIN_PUBKEY"]))
    if env.get("CPAMM_LOG_LEVEL"):
        config = replace(config, log_level=_parse_log_level(env["CPAMM_LOG_LEVEL"]))
    return config


def configure_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, _parse_log_level(level)),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_service(
    config: EngineConfig,
    custody: Custody,
    *,
    ledger: Optional[PoolLedger] = None,
    events: Optional[EventSink] = None,
) -> PoolService:
    """Wire a ledger, an asset registry and custody into a `PoolService`."""
    registry = AssetRegistry(
        chain_id=config.chain_id,
        admin_pubkey=config.admin_pubkey,
        assets=config.supported_assets,
    )
    return PoolService(ledger if ledger is not None else PoolLedger(), custody, registry, events=events)
