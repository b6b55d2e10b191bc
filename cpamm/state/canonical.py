"""
Deterministic byte encodings.

Used for pool key derivation, ledger snapshot commitments and the signed
admin commands of the asset registry. Anything hashed goes through here.
"""

from __future__ import annotations

import hashlib
import json
import string
from typing import Any

DOMAIN_PREFIX = b"cpamm:"

# 20-byte addresses and 32-byte ids are the usual sizes.
MAX_ASSET_ID_BYTES = 64

_HEX_DIGITS = frozenset(string.hexdigits)


def _check_json_value(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, str):
        if any(0xD800 <= ord(ch) <= 0xDFFF for ch in value):
            raise TypeError("surrogate code points are not allowed in canonical encoding")
    elif isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _check_json_value(k)
            _check_json_value(v)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _check_json_value(item)


def canonical_json_bytes(value: Any) -> bytes:
    """
    UTF-8 JSON with sorted keys and no whitespace.

    Floats and lone surrogates are rejected so that every value has exactly
    one encoding.
    """
    _check_json_value(value)
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """`cpamm:<label>:v<version>` followed by a NUL terminator."""
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if not label.isascii() or "\x00" in label:
        raise ValueError("label must be ASCII without NUL")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return DOMAIN_PREFIX + f"{label}:v{version}".encode("ascii") + b"\x00"


def encode_uvarint(value: int) -> bytes:
    """Unsigned LEB128."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"uvarint must be a non-negative int, got {value!r}")
    out = bytearray()
    while value > 0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def encode_bytes(value: bytes) -> bytes:
    """Length-prefixed bytes."""
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError("value must be bytes")
    return encode_uvarint(len(value)) + bytes(value)


def hex_to_bytes(hex_str: str, *, name: str, nbytes: int | None = None, max_nbytes: int | None = None) -> bytes:
    """
    Decode hex with an optional 0x prefix.

    `nbytes` pins the decoded length, `max_nbytes` bounds it.
    """
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    digits = hex_str.strip()
    if digits[:2].lower() == "0x":
        digits = digits[2:]
    if not digits:
        raise ValueError(f"{name} must be non-empty hex")
    if len(digits) % 2:
        raise ValueError(f"{name} must have an even number of hex chars")
    if not _HEX_DIGITS.issuperset(digits):
        raise ValueError(f"{name} must be valid hex")
    raw = bytes.fromhex(digits)
    if nbytes is not None and len(raw) != nbytes:
        raise ValueError(f"{name} must be {nbytes} bytes")
    if max_nbytes is not None and len(raw) > max_nbytes:
        raise ValueError(f"{name} must be at most {max_nbytes} bytes")
    return raw


def canonical_hex_allow_0x(hex_str: str, *, name: str, nbytes: int | None = None, max_nbytes: int | None = None) -> str:
    """Lowercase 0x-prefixed form of a hex string."""
    return "0x" + hex_to_bytes(hex_str, name=name, nbytes=nbytes, max_nbytes=max_nbytes).hex()
