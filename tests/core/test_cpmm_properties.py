"""Property tests for the pricing formulas.

Hypothesis drives reserves, amounts and operation sequences; every case must
satisfy the pool invariants after each step.
"""

from __future__ import annotations

import hypothesis.strategies as st
import pytest
from hypothesis import assume, given, reject, settings

from cpamm.core.cpmm import (
    MAX_RESERVE,
    compute_liquidity_burn,
    compute_liquidity_mint,
    compute_swap_input,
    compute_swap_output,
    seed_pool,
    swap_exact_in,
    swap_exact_out,
)
from cpamm.errors import AmmError, ArithmeticOverflow
from cpamm.state.pools import derive_pool_key

reserves = st.integers(min_value=1, max_value=10**30)
amounts = st.integers(min_value=1, max_value=10**30)
asset_ids = st.binary(min_size=1, max_size=32).map(lambda b: "0x" + b.hex())


@given(reserve_in=reserves, reserve_out=reserves, amount_in=amounts)
def test_swap_strictly_increases_k(reserve_in: int, reserve_out: int, amount_in: int) -> None:
    amount_out, (new_in, new_out) = swap_exact_in(reserve_in, reserve_out, amount_in)
    assert 0 <= amount_out < reserve_out
    assert new_in * new_out > reserve_in * reserve_out


@given(reserve_in=reserves, reserve_out=st.integers(min_value=2, max_value=10**30), data=st.data())
def test_exact_out_input_always_covers_output(reserve_in: int, reserve_out: int, data: st.DataObject) -> None:
    amount_out = data.draw(st.integers(min_value=1, max_value=reserve_out - 1))
    amount_in = compute_swap_input(reserve_in, reserve_out, amount_out)
    if reserve_in + amount_in > MAX_RESERVE:
        with pytest.raises(ArithmeticOverflow, match="new_reserve_in"):
            swap_exact_out(reserve_in, reserve_out, amount_out)
        return
    assert compute_swap_output(reserve_in, reserve_out, amount_in) >= amount_out
    _, (new_in, new_out) = swap_exact_out(reserve_in, reserve_out, amount_out)
    assert new_in * new_out > reserve_in * reserve_out


@given(reserve_a=reserves, reserve_b=reserves, total=reserves, data=st.data())
def test_burn_never_creates_value(reserve_a: int, reserve_b: int, total: int, data: st.DataObject) -> None:
    shares = data.draw(st.integers(min_value=1, max_value=total))
    amount_a, amount_b = compute_liquidity_burn(shares, reserve_a, reserve_b, total)
    assert amount_a <= reserve_a
    assert amount_b <= reserve_b


@given(seed_a=reserves, seed_b=reserves, add_a=amounts, add_b=amounts)
def test_mint_then_burn_never_gains(seed_a: int, seed_b: int, add_a: int, add_b: int) -> None:
    total = seed_pool(seed_a, seed_b)
    try:
        minted = compute_liquidity_mint(add_a, add_b, seed_a, seed_b, total)
    except AmmError:
        reject()
    out_a, out_b = compute_liquidity_burn(minted, seed_a + add_a, seed_b + add_b, total + minted)
    assert out_a <= add_a
    assert out_b <= add_b


@settings(max_examples=50)
@given(
    seed_a=st.integers(min_value=1, max_value=10**18),
    seed_b=st.integers(min_value=1, max_value=10**18),
    steps=st.lists(
        st.tuples(st.booleans(), st.integers(min_value=1, max_value=10**18), st.integers(min_value=1, max_value=10**18)),
        max_size=20,
    ),
)
def test_share_conservation_across_mint_and_burn(seed_a: int, seed_b: int, steps: list) -> None:
    reserve_a, reserve_b = seed_a, seed_b
    balances = {"lp0": seed_pool(seed_a, seed_b)}
    total = balances["lp0"]

    for i, (is_mint, x, y) in enumerate(steps):
        if is_mint:
            try:
                minted = compute_liquidity_mint(x, y, reserve_a, reserve_b, total)
            except AmmError:
                continue
            actor = f"lp{i}"
            balances[actor] = balances.get(actor, 0) + minted
            total += minted
            reserve_a += x
            reserve_b += y
        else:
            actor = max(balances, key=balances.__getitem__)
            burn = min(x, balances[actor])
            if burn == 0:
                continue
            out_a, out_b = compute_liquidity_burn(burn, reserve_a, reserve_b, total)
            balances[actor] -= burn
            total -= burn
            reserve_a -= out_a
            reserve_b -= out_b
        assert sum(balances.values()) == total
        assert reserve_a >= 0 and reserve_b >= 0
        if total == 0:
            assert reserve_a == 0 and reserve_b == 0
            break


@given(x=asset_ids, y=asset_ids)
def test_pool_key_is_symmetric(x: str, y: str) -> None:
    assume(x != y)
    assert derive_pool_key(x, y) == derive_pool_key(y, x)
