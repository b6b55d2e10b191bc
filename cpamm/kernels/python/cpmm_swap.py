"""
CPMM swap kernel.

- The fee is applied to the input before pricing: the effective input is
  `amount_in * (FEE_DENOMINATOR - FEE_NUMERATOR)` in fee-denominator units.
- The whole gross input is added to the input reserve, so the fee stays in
  the pool and k strictly grows.
- All formula products are checked against the 256-bit width.

Small, integer-only and auditable; the public wrappers live in
`cpamm/core/cpmm.py`.
"""

from __future__ import annotations

from dataclasses import dataclass

from ...errors import InsufficientLiquidity, InvalidAmount
from .uint256 import checked_add, checked_mul, require_reserve, require_uint


FEE_NUMERATOR = 3
FEE_DENOMINATOR = 1000


@dataclass(frozen=True)
class SwapResult:
    amount_in: int
    amount_out: int
    amount_in_after_fee: int
    new_reserve_in: int
    new_reserve_out: int
    # Audit-only values, exact big-int products (not bounded by the width).
    k_before: int
    k_after: int


def _require_reserves(reserve_in: int, reserve_out: int) -> None:
    require_uint("reserve_in", reserve_in)
    require_uint("reserve_out", reserve_out)
    if reserve_in == 0 or reserve_out == 0:
        raise InsufficientLiquidity("cannot swap against an empty reserve")


def amount_out_for(*, reserve_in: int, reserve_out: int, amount_in: int) -> tuple[int, int]:
    """
    Return (amount_out, amount_in_after_fee).

        amount_in_after_fee = amount_in * (FEE_DENOMINATOR - FEE_NUMERATOR)
        amount_out = floor(amount_in_after_fee * reserve_out
                           / (reserve_in * FEE_DENOMINATOR + amount_in_after_fee))
    """
    _require_reserves(reserve_in, reserve_out)
    require_uint("amount_in", amount_in)
    if amount_in == 0:
        raise InvalidAmount("amount_in must be positive")

    amount_in_after_fee = checked_mul(amount_in, FEE_DENOMINATOR - FEE_NUMERATOR)
    numerator = checked_mul(amount_in_after_fee, reserve_out)
    denominator = checked_add(checked_mul(reserve_in, FEE_DENOMINATOR), amount_in_after_fee)
    amount_out = numerator // denominator

    if amount_out >= reserve_out:
        raise InsufficientLiquidity(
            f"amount_out ({amount_out}) must be below reserve_out ({reserve_out})"
        )
    return amount_out, amount_in_after_fee


def amount_in_for(*, reserve_in: int, reserve_out: int, amount_out: int) -> int:
    """
    Smallest-safe input for an exact output (rounded up by one unit).

        amount_in = floor(reserve_in * amount_out * FEE_DENOMINATOR
                          / ((reserve_out - amount_out) * (FEE_DENOMINATOR - FEE_NUMERATOR))) + 1
    """
    _require_reserves(reserve_in, reserve_out)
    require_uint("amount_out", amount_out)
    if amount_out == 0:
        raise InvalidAmount("amount_out must be positive")
    if amount_out >= reserve_out:
        raise InsufficientLiquidity(
            f"cannot drain full reserve: amount_out ({amount_out}) >= reserve_out ({reserve_out})"
        )

    numerator = checked_mul(checked_mul(reserve_in, amount_out), FEE_DENOMINATOR)
    denominator = checked_mul(reserve_out - amount_out, FEE_DENOMINATOR - FEE_NUMERATOR)
    return checked_add(numerator // denominator, 1)


def swap_exact_in(*, reserve_in: int, reserve_out: int, amount_in: int) -> SwapResult:
    """Exact-in swap quote + post-state."""
    amount_out, amount_in_after_fee = amount_out_for(
        reserve_in=reserve_in, reserve_out=reserve_out, amount_in=amount_in
    )
    new_reserve_in = require_reserve("new_reserve_in", checked_add(reserve_in, amount_in))
    new_reserve_out = reserve_out - amount_out

    return SwapResult(
        amount_in=amount_in,
        amount_out=amount_out,
        amount_in_after_fee=amount_in_after_fee,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=reserve_in * reserve_out,
        k_after=new_reserve_in * new_reserve_out,
    )


def swap_exact_out(*, reserve_in: int, reserve_out: int, amount_out: int) -> SwapResult:
    """
    Exact-out swap quote + post-state.

    Reserves move by the requested `amount_out`, even when the rounded-up
    input would price slightly more output under exact-in rounding.
    """
    amount_in = amount_in_for(reserve_in=reserve_in, reserve_out=reserve_out, amount_out=amount_out)

    quoted_out, amount_in_after_fee = amount_out_for(
        reserve_in=reserve_in, reserve_out=reserve_out, amount_in=amount_in
    )
    if quoted_out < amount_out:
        raise AssertionError("computed amount_in insufficient for desired amount_out")

    new_reserve_in = require_reserve("new_reserve_in", checked_add(reserve_in, amount_in))
    new_reserve_out = reserve_out - amount_out

    return SwapResult(
        amount_in=amount_in,
        amount_out=amount_out,
        amount_in_after_fee=amount_in_after_fee,
        new_reserve_in=new_reserve_in,
        new_reserve_out=new_reserve_out,
        k_before=reserve_in * reserve_out,
        k_after=new_reserve_in * new_reserve_out,
    )
