"""
Core pool algorithms
"""

from .cpmm import (
    FEE_DENOMINATOR,
    FEE_NUMERATOR,
    MAX_RESERVE,
    MAX_UINT,
    compute_liquidity_burn,
    compute_liquidity_mint,
    compute_swap_input,
    compute_swap_output,
    quote,
    seed_pool,
    swap_exact_in,
    swap_exact_out,
)
from .types import (
    AddLiquidityReceipt,
    CreatePoolReceipt,
    Event,
    PoolEvent,
    RemoveLiquidityReceipt,
    SwapReceipt,
)

__all__ = [
    "FEE_DENOMINATOR",
    "FEE_NUMERATOR",
    "MAX_RESERVE",
    "MAX_UINT",
    "compute_liquidity_burn",
    "compute_liquidity_mint",
    "compute_swap_input",
    "compute_swap_output",
    "quote",
    "seed_pool",
    "swap_exact_in",
    "swap_exact_out",
    "AddLiquidityReceipt",
    "CreatePoolReceipt",
    "Event",
    "PoolEvent",
    "RemoveLiquidityReceipt",
    "SwapReceipt",
]
