"""
Nonce table for replay protection of signed admin commands.

We track, per signer pubkey, the last accepted nonce. Policy: strict
sequential nonces (next accepted nonce is last + 1).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from .canonical import canonical_hex_allow_0x

# BLS12-381 G1 public keys are 48 bytes.
PUBKEY_NBYTES = 48


@dataclass
class NonceTable:
    """Mutable mapping: signer_pubkey -> last_used_nonce."""

    _last: Dict[str, int] = field(default_factory=dict)

    def get_last(self, pubkey: str) -> int:
        pk = canonical_hex_allow_0x(pubkey, nbytes=PUBKEY_NBYTES, name="pubkey")
        return self._last.get(pk, 0)

    def set_last(self, pubkey: str, last_nonce: int) -> None:
        if not isinstance(last_nonce, int) or isinstance(last_nonce, bool) or last_nonce < 0:
            raise TypeError("last_nonce must be a non-negative int")
        if last_nonce > 0xFFFFFFFF:
            raise TypeError("last_nonce must fit in u32")
        pk = canonical_hex_allow_0x(pubkey, nbytes=PUBKEY_NBYTES, name="pubkey")
        self._last[pk] = int(last_nonce)

