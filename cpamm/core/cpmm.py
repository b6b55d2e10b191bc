"""
Constant Product Market Maker (CPMM) pricing engine.

Pure functions over pool reserves with deterministic rounding rules.
Nothing here touches storage; the service layer applies the results.

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1) per operation
- Invariant: After each swap, x' * y' > x * y (the fee stays in the pool)
- Width: committed reserves and share totals stay <= MAX_RESERVE (112 bits),
  so every product of committed values fits the 256-bit arithmetic width
"""

from typing import Tuple

from ..errors import InsufficientLiquidity, InvalidAmount, PoolInvariantError
from ..kernels.python.cpmm_swap import FEE_DENOMINATOR, FEE_NUMERATOR, SwapResult
from ..kernels.python.cpmm_swap import amount_in_for as _kernel_amount_in_for
from ..kernels.python.cpmm_swap import amount_out_for as _kernel_amount_out_for
from ..kernels.python.cpmm_swap import swap_exact_in as _kernel_swap_exact_in
from ..kernels.python.cpmm_swap import swap_exact_out as _kernel_swap_exact_out
from ..kernels.python.lp_math import burn_shares, initial_shares, mint_shares
from ..kernels.python.uint256 import MAX_RESERVE, MAX_UINT, mul_div_floor, require_uint
from ..state.balances import Amount

__all__ = [
    "FEE_NUMERATOR",
    "FEE_DENOMINATOR",
    "MAX_UINT",
    "MAX_RESERVE",
    "seed_pool",
    "compute_swap_output",
    "compute_swap_input",
    "quote",
    "compute_liquidity_mint",
    "compute_liquidity_burn",
    "swap_exact_in",
    "swap_exact_out",
]


def seed_pool(amount_a: Amount, amount_b: Amount) -> Amount:
    """
    Compute shares for the first deposit into a pool.

    Formula:
        shares = floor(sqrt(amount_a * amount_b))

    The geometric mean makes the share count independent of which asset is
    listed first and of the initial exchange rate.

    Raises:
        InvalidAmount: If either amount is zero
        ZeroShares: If the integer square root truncates to zero
        ArithmeticOverflow: If either amount exceeds MAX_RESERVE
    """
    return initial_shares(amount_a=amount_a, amount_b=amount_b)


def compute_swap_output(reserve_in: Amount, reserve_out: Amount, amount_in: Amount) -> Amount:
    """
    Compute output amount for an exact-in swap.

    This implements the CPMM formula with the fee taken on the input:
        amount_in_after_fee = amount_in * (1000 - 3)
        amount_out = floor(amount_in_after_fee * reserve_out /
                           (reserve_in * 1000 + amount_in_after_fee))

    Raises:
        InvalidAmount: If amount_in is zero
        InsufficientLiquidity: If a reserve is empty or amount_out >= reserve_out
        ArithmeticOverflow: If an intermediate product exceeds MAX_UINT
    """
    amount_out, _ = _kernel_amount_out_for(reserve_in=reserve_in, reserve_out=reserve_out, amount_in=amount_in)
    return amount_out


def compute_swap_input(reserve_in: Amount, reserve_out: Amount, amount_out: Amount) -> Amount:
    """
    Compute the input needed to receive exactly `amount_out`.

    Rounded up so that compute_swap_output(reserve_in, reserve_out, result) >= amount_out.
    """
    return _kernel_amount_in_for(reserve_in=reserve_in, reserve_out=reserve_out, amount_out=amount_out)


def quote(amount_a: Amount, reserve_a: Amount, reserve_b: Amount) -> Amount:
    """Amount of asset b matching `amount_a` at the current reserve ratio (floor)."""
    require_uint("amount_a", amount_a)
    require_uint("reserve_a", reserve_a)
    require_uint("reserve_b", reserve_b)
    if amount_a == 0:
        raise InvalidAmount("amount_a must be positive")
    if reserve_a == 0 or reserve_b == 0:
        raise InsufficientLiquidity("cannot quote against an empty reserve")
    return mul_div_floor(amount_a, reserve_b, reserve_a)


def _verify_k(res: SwapResult) -> SwapResult:
    if res.k_after <= res.k_before:
        raise PoolInvariantError([f"k_not_increasing:{res.k_before}->{res.k_after}"])
    return res


def swap_exact_in(
    reserve_in: Amount,
    reserve_out: Amount,
    amount_in: Amount,
) -> Tuple[Amount, Tuple[Amount, Amount]]:
    """
    Exact-in swap with post-swap reserves.

    Returns:
        Tuple of (amount_out, (new_reserve_in, new_reserve_out))

    Raises:
        ArithmeticOverflow: If the new input reserve exceeds MAX_RESERVE
    """
    res = _verify_k(_kernel_swap_exact_in(reserve_in=reserve_in, reserve_out=reserve_out, amount_in=amount_in))
    return res.amount_out, (res.new_reserve_in, res.new_reserve_out)


def swap_exact_out(
    reserve_in: Amount,
    reserve_out: Amount,
    amount_out: Amount,
) -> Tuple[Amount, Tuple[Amount, Amount]]:
    """
    Exact-out swap with post-swap reserves.

    Returns:
        Tuple of (amount_in, (new_reserve_in, new_reserve_out))
    """
    res = _verify_k(_kernel_swap_exact_out(reserve_in=reserve_in, reserve_out=reserve_out, amount_out=amount_out))
    return res.amount_in, (res.new_reserve_in, res.new_reserve_out)


def compute_liquidity_mint(
    amount_a: Amount,
    amount_b: Amount,
    reserve_a: Amount,
    reserve_b: Amount,
    total_shares: Amount,
) -> Amount:
    """
    Compute shares to mint for a deposit into a seeded pool.

    Formula:
        shares = min(floor(amount_a * total_shares / reserve_a),
                     floor(amount_b * total_shares / reserve_b))

    Raises:
        PoolNotFound: If the pool is not seeded
        ZeroSharesMinted: If the deposit is too small to mint a whole share
    """
    res = mint_shares(
        amount_a=amount_a,
        amount_b=amount_b,
        reserve_a=reserve_a,
        reserve_b=reserve_b,
        total_shares=total_shares,
    )
    return res.shares_minted


def compute_liquidity_burn(
    shares: Amount,
    reserve_a: Amount,
    reserve_b: Amount,
    total_shares: Amount,
) -> Tuple[Amount, Amount]:
    """
    Compute asset amounts returned for burning `shares`.

    Formula:
        amount_a = floor(shares * reserve_a / total_shares)
        amount_b = floor(shares * reserve_b / total_shares)

    Raises:
        InvalidAmount: If shares is zero
        InsufficientShares: If shares > total_shares
    """
    res = burn_shares(shares=shares, reserve_a=reserve_a, reserve_b=reserve_b, total_shares=total_shares)
    return res.amount_a_out, res.amount_b_out
