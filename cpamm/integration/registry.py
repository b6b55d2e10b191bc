"""
Supported-asset registry with an admin signature guard.

Only assets in the registry may form new pools. The set is mutated by signed
admin commands:

    msg_hash = SHA256( domain_sep(f"asset_registry:{chain_id}", v1)
                       || canonical_json_bytes({"op", "asset", "nonce"}) )
    signature = BLS12-381 G2Basic.Sign(admin_sk, msg_hash)

Nonces are strictly sequential per admin key (replay protection). The guard
runs before any registry mutation and never touches pool state.
"""

from __future__ import annotations

import hashlib
import logging
import threading
from typing import Any, Dict, Iterable, Optional, Tuple

from py_ecc.bls import G2Basic

from ..errors import Unauthorized
from ..state.balances import AssetId
from ..state.canonical import canonical_hex_allow_0x, canonical_json_bytes, domain_sep_bytes, hex_to_bytes
from ..state.nonces import PUBKEY_NBYTES, NonceTable
from ..state.pools import canonical_asset_id

logger = logging.getLogger(__name__)

SIGNATURE_NBYTES = 96

OP_ADD_ASSET = "add_asset"
OP_REMOVE_ASSET = "remove_asset"


def registry_command(*, op: str, asset: AssetId, nonce: int) -> Dict[str, Any]:
    if op not in (OP_ADD_ASSET, OP_REMOVE_ASSET):
        raise ValueError(f"unknown registry op: {op!r}")
    if not isinstance(nonce, int) or isinstance(nonce, bool) or nonce <= 0:
        raise ValueError("nonce must be a positive int")
    return {"op": op, "asset": canonical_asset_id(asset), "nonce": nonce}


def registry_message_hash(command: Dict[str, Any], *, chain_id: str) -> bytes:
    msg = domain_sep_bytes(f"asset_registry:{chain_id}", version=1) + canonical_json_bytes(command)
    return hashlib.sha256(msg).digest()


def sign_registry_command(secret_key: int, *, op: str, asset: AssetId, nonce: int, chain_id: str) -> str:
    """Sign a registry command with an admin BLS secret key; returns 0x-hex."""
    command = registry_command(op=op, asset=asset, nonce=nonce)
    sig = G2Basic.Sign(secret_key, registry_message_hash(command, chain_id=chain_id))
    return "0x" + sig.hex()


class AssetRegistry:
    def __init__(self, *, chain_id: str, admin_pubkey: Optional[str] = None, assets: Iterable[AssetId] = ()) -> None:
        if not isinstance(chain_id, str) or not chain_id:
            raise ValueError("chain_id must be a non-empty string")
        self.chain_id = chain_id
        self.admin_pubkey = (
            canonical_hex_allow_0x(admin_pubkey, nbytes=PUBKEY_NBYTES, name="admin_pubkey")
            if admin_pubkey is not None
            else None
        )
        self._assets = {canonical_asset_id(asset) for asset in assets}
        self._nonces = NonceTable()
        self._lock = threading.Lock()

    def is_supported(self, asset: AssetId) -> bool:
        return canonical_asset_id(asset) in self._assets

    def supported_assets(self) -> Tuple[AssetId, ...]:
        return tuple(sorted(self._assets))

    def next_nonce(self) -> int:
        if self.admin_pubkey is None:
            return 1
        return self._nonces.get_last(self.admin_pubkey) + 1

    def add_asset(self, asset: AssetId, *, nonce: int, signature: str) -> None:
        """
        Raises:
            Unauthorized: On a bad signature, a reused/skipped nonce, or no admin key
        """
        asset = canonical_asset_id(asset)
        with self._lock:
            self._authorize(OP_ADD_ASSET, asset, nonce, signature)
            self._assets.add(asset)
        logger.info("asset %s added to registry (nonce=%d)", asset, nonce)

    def remove_asset(self, asset: AssetId, *, nonce: int, signature: str) -> None:
        """Existing pools keep working; only new pool creation is affected."""
        asset = canonical_asset_id(asset)
        with self._lock:
            self._authorize(OP_REMOVE_ASSET, asset, nonce, signature)
            self._assets.discard(asset)
        logger.info("asset %s removed from registry (nonce=%d)", asset, nonce)

    def _authorize(self, op: str, asset: AssetId, nonce: int, signature: str) -> None:
        if self.admin_pubkey is None:
            raise Unauthorized("registry has no admin key configured")

        expected = self._nonces.get_last(self.admin_pubkey) + 1
        if nonce != expected:
            logger.warning("rejected %s for %s: nonce %r, expected %d", op, asset, nonce, expected)
            raise Unauthorized(f"nonce must be {expected}, got {nonce!r}")

        command = registry_command(op=op, asset=asset, nonce=nonce)
        msg_hash = registry_message_hash(command, chain_id=self.chain_id)
        try:
            pubkey_bytes = hex_to_bytes(self.admin_pubkey, name="admin_pubkey", nbytes=PUBKEY_NBYTES)
            sig_bytes = hex_to_bytes(signature, name="signature", nbytes=SIGNATURE_NBYTES)
            ok = bool(G2Basic.Verify(pubkey_bytes, msg_hash, sig_bytes))
        except Exception as exc:
            raise Unauthorized(f"signature verification error: {exc}") from exc
        if not ok:
            logger.warning("rejected %s for %s: invalid admin signature", op, asset)
            raise Unauthorized("invalid admin signature")

        self._nonces.set_last(self.admin_pubkey, nonce)
