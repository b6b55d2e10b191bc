from __future__ import annotations

from pathlib import Path

import pytest
from py_ecc.bls import G2Basic

from cpamm.integration.config import (
    ConfigError,
    EngineConfig,
    build_service,
    config_from_env,
    config_from_mapping,
    load_config,
)
from cpamm.integration.custody import InMemoryCustody

ASSET_X = "0x" + "0a" * 20
ASSET_Y = "0x" + "0b" * 20


def _pubkey() -> str:
    return "0x" + G2Basic.SkToPk(G2Basic.KeyGen(b"\x07" * 32)).hex()


def test_load_config_from_yaml(tmp_path: Path) -> None:
    pk = _pubkey()
    path = tmp_path / "cpamm.yaml"
    path.write_text(
        "chain_id: cpamm-devnet\n"
        f"admin_pubkey: '{pk.upper().replace('0X', '0x')}'\n"
        "supported_assets:\n"
        f"  - '{ASSET_Y}'\n"
        f"  - '{ASSET_X[2:]}'\n"
        "log_level: debug\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config == EngineConfig(
        chain_id="cpamm-devnet",
        admin_pubkey=pk,
        supported_assets=(ASSET_X, ASSET_Y),
        log_level="DEBUG",
    )


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == EngineConfig()


@pytest.mark.parametrize(
    "doc, match",
    [
        ("- just\n- a list\n", "mapping"),
        ("chain_id: ''\n", "chain_id"),
        ("log_level: LOUD\n", "log_level"),
        ("supported_assets: 0x01\n", "list"),
        ("supported_assets: ['0xzz']\n", "supported asset"),
        ("admin_pubkey: '0x1234'\n", "admin_pubkey"),
        ("fee_bps: 30\n", "unknown config keys"),
        ("chain_id: [unclosed\n", "invalid YAML"),
    ],
)
def test_invalid_config_is_rejected(tmp_path: Path, doc: str, match: str) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text(doc, encoding="utf-8")
    with pytest.raises(ConfigError, match=match):
        load_config(path)


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CPAMM_CHAIN_ID", "from-env")
    monkeypatch.setenv("CPAMM_LOG_LEVEL", "warning")
    monkeypatch.delenv("CPAMM_ADMIN_PUBKEY", raising=False)
    base = config_from_mapping({"chain_id": "from-file", "supported_assets": [ASSET_X]})

    config = config_from_env(base)
    assert config.chain_id == "from-env"
    assert config.log_level == "WARNING"
    assert config.supported_assets == (ASSET_X,)


def test_env_override_validates_pubkey() -> None:
    with pytest.raises(ConfigError):
        config_from_env(environ={"CPAMM_ADMIN_PUBKEY": "0xabc"})


def test_build_service_wires_registry_and_custody() -> None:
    custody = InMemoryCustody()
    custody.mint("alice", ASSET_X, 1000)
    custody.mint("alice", ASSET_Y, 4000)
    service = build_service(EngineConfig(supported_assets=(ASSET_X, ASSET_Y)), custody)

    assert service.create_pool(ASSET_X, ASSET_Y, 1000, 4000, "alice").shares == 2000
    assert len(service.ledger) == 1
