"""
Checked unsigned integer arithmetic at a fixed 256-bit width.

Python ints never wrap, so the width is enforced explicitly: every helper
raises ``ArithmeticOverflow`` when a result leaves ``[0, MAX_UINT]``.
"""

from __future__ import annotations

from ...errors import ArithmeticOverflow, InvalidAmount


UINT_BITS = 256
MAX_UINT = (1 << UINT_BITS) - 1

# Committed reserves and share totals. Any product of two committed values
# times the fee denominator stays inside UINT_BITS.
RESERVE_BITS = 112
MAX_RESERVE = (1 << RESERVE_BITS) - 1


def require_uint(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise InvalidAmount(f"{name} must be non-negative: {value}")
    if value > MAX_UINT:
        raise ArithmeticOverflow(f"{name} exceeds {UINT_BITS}-bit width")
    return value


def require_reserve(name: str, value: int) -> int:
    if require_uint(name, value) > MAX_RESERVE:
        raise ArithmeticOverflow(f"{name} exceeds {RESERVE_BITS}-bit reserve width")
    return value


def checked_add(a: int, b: int) -> int:
    out = a + b
    if out > MAX_UINT:
        raise ArithmeticOverflow(f"{a} + {b} exceeds {UINT_BITS}-bit width")
    return out


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise ArithmeticOverflow(f"{a} - {b} underflows")
    return a - b


def checked_mul(a: int, b: int) -> int:
    out = a * b
    if out > MAX_UINT:
        raise ArithmeticOverflow(f"{a} * {b} exceeds {UINT_BITS}-bit width")
    return out


def mul_div_floor(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) with the product checked against MAX_UINT."""
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    return checked_mul(a, b) // denominator
