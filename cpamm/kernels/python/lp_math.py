"""
Liquidity share math kernel.

Pure functions with explicit floor rounding. Rounding always favors the pool:
a depositor can lose dust to rounding, never gain it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ...errors import InsufficientShares, InvalidAmount, PoolNotFound, ZeroShares, ZeroSharesMinted
from .uint256 import checked_add, checked_mul, mul_div_floor, require_reserve, require_uint


@dataclass(frozen=True)
class MintResult:
    shares_minted: int
    new_reserve_a: int
    new_reserve_b: int
    new_total_shares: int


@dataclass(frozen=True)
class BurnResult:
    amount_a_out: int
    amount_b_out: int
    new_reserve_a: int
    new_reserve_b: int
    new_total_shares: int


def initial_shares(*, amount_a: int, amount_b: int) -> int:
    """
    Shares for the seeding deposit: floor(sqrt(amount_a * amount_b)).

    Uses math.isqrt; a float sqrt loses precision well inside the 256-bit range.
    """
    require_reserve("amount_a", amount_a)
    require_reserve("amount_b", amount_b)
    if amount_a == 0 or amount_b == 0:
        raise InvalidAmount(f"initial amounts must be positive: ({amount_a}, {amount_b})")

    shares = math.isqrt(checked_mul(amount_a, amount_b))
    if shares == 0:
        raise ZeroShares("initial deposit too small to mint any shares")
    return shares


def mint_shares(
    *,
    amount_a: int,
    amount_b: int,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
) -> MintResult:
    """
    Mint shares for a deposit into a seeded pool (Uniswap-v2 style).

    The deposit is not rebalanced: the scarcer side sets the share count and
    any excess of the other asset stays in the pool.
    """
    for name, v in (
        ("amount_a", amount_a),
        ("amount_b", amount_b),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
    ):
        require_uint(name, v)

    if total_shares == 0 or reserve_a == 0 or reserve_b == 0:
        raise PoolNotFound("cannot mint shares into an unseeded pool")
    if amount_a == 0 or amount_b == 0:
        raise InvalidAmount(f"deposit amounts must be positive: ({amount_a}, {amount_b})")

    new_reserve_a = require_reserve("new_reserve_a", checked_add(reserve_a, amount_a))
    new_reserve_b = require_reserve("new_reserve_b", checked_add(reserve_b, amount_b))

    shares_a = mul_div_floor(amount_a, total_shares, reserve_a)
    shares_b = mul_div_floor(amount_b, total_shares, reserve_b)
    minted = min(shares_a, shares_b)
    if minted == 0:
        raise ZeroSharesMinted("deposit too small to mint a whole share")

    return MintResult(
        shares_minted=minted,
        new_reserve_a=new_reserve_a,
        new_reserve_b=new_reserve_b,
        new_total_shares=require_reserve("new_total_shares", checked_add(total_shares, minted)),
    )


def burn_shares(*, shares: int, reserve_a: int, reserve_b: int, total_shares: int) -> BurnResult:
    """
    Burn shares for a proportional slice of both reserves (floor rounding).

    A zero output on one side is accepted.
    """
    for name, v in (
        ("shares", shares),
        ("reserve_a", reserve_a),
        ("reserve_b", reserve_b),
        ("total_shares", total_shares),
    ):
        require_uint(name, v)

    if shares == 0:
        raise InvalidAmount("shares must be positive")
    if shares > total_shares:
        raise InsufficientShares(f"cannot burn more shares than supply: {shares} > {total_shares}")

    amount_a_out = mul_div_floor(shares, reserve_a, total_shares)
    amount_b_out = mul_div_floor(shares, reserve_b, total_shares)

    return BurnResult(
        amount_a_out=amount_a_out,
        amount_b_out=amount_b_out,
        new_reserve_a=reserve_a - amount_a_out,
        new_reserve_b=reserve_b - amount_b_out,
        new_total_shares=total_shares - shares,
    )
