"""
Pool service: the imperative shell around the pricing core.

Each mutating operation:
- takes the pool's lock (one operation per pool key at a time),
- validates inputs and prices the operation with `cpamm.core.cpmm`,
- collects inputs (`transfer_in`), then writes the final ledger state and
  checks pool invariants, then disburses outputs (`transfer_out`),
- emits a `PoolEvent` once everything has settled.

Any failure restores the pool to its pre-call state and reverses the
transfers already made, then re-raises the original error. Pool state is
never read after the first outgoing transfer.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Protocol, Tuple

from ..core import cpmm
from ..core.types import (
    AddLiquidityReceipt,
    CreatePoolReceipt,
    Event,
    PoolEvent,
    RemoveLiquidityReceipt,
    SwapReceipt,
)
from ..errors import (
    InsufficientShares,
    InvalidAmount,
    PoolExists,
    PoolNotFound,
    SlippageExceeded,
    TransferFailed,
    UnsupportedAsset,
)
from ..kernels.python.uint256 import checked_add, checked_sub, require_uint
from ..state.balances import Actor, Amount, AssetId
from ..state.ledger import PoolLedger
from ..state.pools import Pool, PoolKey, PoolStatus, canonical_asset_id, derive_pool_key
from .custody import Custody

logger = logging.getLogger(__name__)

EventSink = Callable[[PoolEvent], None]


class AssetGate(Protocol):
    def is_supported(self, asset: AssetId) -> bool:
        ...


class _TransferJournal:
    """Records completed transfers so a failed operation can reverse them."""

    def __init__(self, custody: Custody) -> None:
        self._custody = custody
        self._done: List[Tuple[bool, AssetId, Actor, Amount]] = []

    def pull(self, asset: AssetId, sender: Actor, amount: Amount) -> None:
        if amount == 0:
            return
        try:
            self._custody.transfer_in(asset, sender, amount)
        except Exception as exc:
            raise TransferFailed(exc) from exc
        self._done.append((True, asset, sender, amount))

    def push(self, asset: AssetId, recipient: Actor, amount: Amount) -> None:
        if amount == 0:
            return
        try:
            self._custody.transfer_out(asset, recipient, amount)
        except Exception as exc:
            raise TransferFailed(exc) from exc
        self._done.append((False, asset, recipient, amount))

    def unwind(self) -> None:
        """
        Reverse every recorded transfer, newest first.

        All reversals are attempted; the first failure is raised afterwards.
        """
        first_error: Optional[Exception] = None
        while self._done:
            was_pull, asset, actor, amount = self._done.pop()
            try:
                if was_pull:
                    self._custody.transfer_out(asset, actor, amount)
                else:
                    self._custody.transfer_in(asset, actor, amount)
            except Exception as exc:
                logger.error("compensating transfer of %d %s for %s failed: %r", amount, asset, actor, exc)
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise TransferFailed(first_error) from first_error


def _require_actor(actor: Actor) -> Actor:
    if not isinstance(actor, str) or not actor:
        raise TypeError("actor must be a non-empty string")
    return actor


def _require_positive(name: str, value: Amount) -> Amount:
    if require_uint(name, value) == 0:
        raise InvalidAmount(f"{name} must be positive")
    return value


class PoolService:
    def __init__(
        self,
        ledger: PoolLedger,
        custody: Custody,
        assets: AssetGate,
        *,
        events: Optional[EventSink] = None,
    ) -> None:
        self._ledger = ledger
        self._custody = custody
        self._assets = assets
        self._events = events

    @property
    def ledger(self) -> PoolLedger:
        return self._ledger

    @contextmanager
    def _operation(self, key: PoolKey, name: str) -> Iterator[_TransferJournal]:
        with self._ledger.locked(key):
            before = self._ledger.snapshot(key)
            journal = _TransferJournal(self._custody)
            try:
                yield journal
            except Exception as exc:
                self._ledger.restore(key, before)
                logger.warning("%s on pool %s rolled back: %s", name, key.hex, exc)
                journal.unwind()
                raise

    def _seeded_pool(self, key: PoolKey) -> Pool:
        pool = self._ledger.get(key)
        if pool is None or pool.status is not PoolStatus.SEEDED:
            raise PoolNotFound(f"pool {key.hex} is not initialized")
        return pool

    def _emit(self, event: PoolEvent) -> None:
        if self._events is not None:
            self._events(event)

    # -- mutating operations ------------------------------------------------

    def create_pool(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        amount_a: Amount,
        amount_b: Amount,
        actor: Actor,
    ) -> CreatePoolReceipt:
        """
        Seed a new pool (or re-seed a fully drained one).

        Raises:
            IdenticalAssets, InvalidAmount, UnsupportedAsset, PoolExists,
            ZeroShares, ArithmeticOverflow, TransferFailed
        """
        _require_actor(actor)
        key = derive_pool_key(asset_a, asset_b)
        _require_positive("amount_a", amount_a)
        _require_positive("amount_b", amount_b)
        for asset in (key.asset0, key.asset1):
            if not self._assets.is_supported(asset):
                raise UnsupportedAsset(f"asset {asset} is not supported")

        a_first = canonical_asset_id(asset_a) == key.asset0
        amount0, amount1 = (amount_a, amount_b) if a_first else (amount_b, amount_a)

        with self._operation(key, "create_pool") as journal:
            existing = self._ledger.get(key)
            if existing is not None and existing.status is PoolStatus.SEEDED:
                raise PoolExists(f"pool {key.hex} already exists")
            shares = cpmm.seed_pool(amount0, amount1)

            journal.pull(key.asset0, actor, amount0)
            journal.pull(key.asset1, actor, amount1)

            self._ledger.get_or_create(key)
            self._ledger.set_reserves(key, amount0, amount1)
            self._ledger.credit_shares(key, actor, shares)
            self._ledger.verify(key)

            self._emit(PoolEvent(
                event=Event.POOL_CREATED,
                pool_key=key.hex,
                actor=actor,
                fields={"asset_a": key.asset0, "asset_b": key.asset1,
                        "amount_a": amount0, "amount_b": amount1, "shares": shares},
            ))

        logger.info("pool %s created by %s: reserves=(%d, %d) shares=%d", key.hex, actor, amount0, amount1, shares)
        return CreatePoolReceipt(
            pool_key=key.hex,
            asset_a=canonical_asset_id(asset_a),
            asset_b=canonical_asset_id(asset_b),
            amount_a=amount_a,
            amount_b=amount_b,
            shares=shares,
        )

    def swap(
        self,
        asset_in: AssetId,
        asset_out: AssetId,
        amount_in: Amount,
        min_amount_out: Amount,
        actor: Actor,
    ) -> SwapReceipt:
        """
        Exact-in swap.

        Raises:
            InvalidAmount, IdenticalAssets, PoolNotFound, InsufficientLiquidity,
            SlippageExceeded, ArithmeticOverflow, TransferFailed
        """
        _require_actor(actor)
        _require_positive("amount_in", amount_in)
        require_uint("min_amount_out", min_amount_out)
        key = derive_pool_key(asset_in, asset_out)

        with self._operation(key, "swap") as journal:
            pool = self._seeded_pool(key)
            in_is_a = pool.is_asset_a(asset_in)
            reserve_in, reserve_out = pool.get_reserve(asset_in), pool.get_reserve(asset_out)

            amount_out, (new_in, new_out) = cpmm.swap_exact_in(reserve_in, reserve_out, amount_in)
            if amount_out == 0:
                raise InvalidAmount("amount_out is zero (trade too small)")
            if amount_out < min_amount_out:
                raise SlippageExceeded(f"amount_out ({amount_out}) < min_amount_out ({min_amount_out})")

            receipt = self._settle_swap(journal, key, in_is_a, amount_in, amount_out, new_in, new_out, actor)

        logger.info("swap on pool %s by %s: in=%d out=%d", key.hex, actor, amount_in, amount_out)
        return receipt

    def swap_exact_out(
        self,
        asset_in: AssetId,
        asset_out: AssetId,
        amount_out: Amount,
        max_amount_in: Amount,
        actor: Actor,
    ) -> SwapReceipt:
        """
        Exact-out swap: pay at most `max_amount_in` to receive exactly `amount_out`.

        Raises:
            SlippageExceeded: If the required input exceeds max_amount_in
        """
        _require_actor(actor)
        _require_positive("amount_out", amount_out)
        require_uint("max_amount_in", max_amount_in)
        key = derive_pool_key(asset_in, asset_out)

        with self._operation(key, "swap_exact_out") as journal:
            pool = self._seeded_pool(key)
            in_is_a = pool.is_asset_a(asset_in)
            reserve_in, reserve_out = pool.get_reserve(asset_in), pool.get_reserve(asset_out)

            amount_in, (new_in, new_out) = cpmm.swap_exact_out(reserve_in, reserve_out, amount_out)
            if amount_in > max_amount_in:
                raise SlippageExceeded(f"amount_in ({amount_in}) > max_amount_in ({max_amount_in})")

            receipt = self._settle_swap(journal, key, in_is_a, amount_in, amount_out, new_in, new_out, actor)

        logger.info("exact-out swap on pool %s by %s: in=%d out=%d", key.hex, actor, amount_in, amount_out)
        return receipt

    def _settle_swap(
        self,
        journal: _TransferJournal,
        key: PoolKey,
        in_is_a: bool,
        amount_in: Amount,
        amount_out: Amount,
        new_in: Amount,
        new_out: Amount,
        actor: Actor,
    ) -> SwapReceipt:
        asset_in, asset_out = (key.asset0, key.asset1) if in_is_a else (key.asset1, key.asset0)

        journal.pull(asset_in, actor, amount_in)
        if in_is_a:
            self._ledger.set_reserves(key, new_in, new_out)
        else:
            self._ledger.set_reserves(key, new_out, new_in)
        self._ledger.verify(key)
        journal.push(asset_out, actor, amount_out)

        self._emit(PoolEvent(
            event=Event.SWAPPED,
            pool_key=key.hex,
            actor=actor,
            fields={"asset_in": asset_in, "asset_out": asset_out, "amount_in": amount_in, "amount_out": amount_out},
        ))
        return SwapReceipt(
            pool_key=key.hex,
            asset_in=asset_in,
            asset_out=asset_out,
            amount_in=amount_in,
            amount_out=amount_out,
        )

    def add_liquidity(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        amount_a: Amount,
        amount_b: Amount,
        actor: Actor,
    ) -> AddLiquidityReceipt:
        """
        Deposit into a seeded pool and mint shares.

        The full amounts are collected even when they do not match the
        reserve ratio; the scarcer side sets the share count.

        Raises:
            InvalidAmount, IdenticalAssets, PoolNotFound, ZeroSharesMinted,
            ArithmeticOverflow, TransferFailed
        """
        _require_actor(actor)
        _require_positive("amount_a", amount_a)
        _require_positive("amount_b", amount_b)
        key = derive_pool_key(asset_a, asset_b)
        a_first = canonical_asset_id(asset_a) == key.asset0
        amount0, amount1 = (amount_a, amount_b) if a_first else (amount_b, amount_a)

        with self._operation(key, "add_liquidity") as journal:
            pool = self._seeded_pool(key)
            reserve0, reserve1 = pool.reserve_a, pool.reserve_b
            shares = cpmm.compute_liquidity_mint(amount0, amount1, reserve0, reserve1, pool.total_shares)
            new_reserve0 = checked_add(reserve0, amount0)
            new_reserve1 = checked_add(reserve1, amount1)

            journal.pull(key.asset0, actor, amount0)
            journal.pull(key.asset1, actor, amount1)

            self._ledger.set_reserves(key, new_reserve0, new_reserve1)
            self._ledger.credit_shares(key, actor, shares)
            self._ledger.verify(key)

            self._emit(PoolEvent(
                event=Event.LIQUIDITY_ADDED,
                pool_key=key.hex,
                actor=actor,
                fields={"amount_a": amount0, "amount_b": amount1, "shares": shares},
            ))

        logger.info("liquidity added to pool %s by %s: (%d, %d) shares=%d", key.hex, actor, amount0, amount1, shares)
        return AddLiquidityReceipt(
            pool_key=key.hex,
            asset_a=canonical_asset_id(asset_a),
            asset_b=canonical_asset_id(asset_b),
            amount_a=amount_a,
            amount_b=amount_b,
            shares=shares,
        )

    def remove_liquidity(
        self,
        asset_a: AssetId,
        asset_b: AssetId,
        shares: Amount,
        actor: Actor,
    ) -> RemoveLiquidityReceipt:
        """
        Burn shares for a proportional slice of both reserves.

        Shares and reserves are debited before anything leaves custody.
        Burning the last shares returns the pool to UNINITIALIZED.

        Raises:
            InvalidAmount, IdenticalAssets, PoolNotFound, InsufficientShares,
            TransferFailed
        """
        _require_actor(actor)
        _require_positive("shares", shares)
        key = derive_pool_key(asset_a, asset_b)

        with self._operation(key, "remove_liquidity") as journal:
            pool = self._seeded_pool(key)
            balance = pool.shares.get(actor)
            if balance < shares:
                raise InsufficientShares(f"{actor} holds {balance} shares, needs {shares}")
            reserve0, reserve1 = pool.reserve_a, pool.reserve_b
            amount0, amount1 = cpmm.compute_liquidity_burn(shares, reserve0, reserve1, pool.total_shares)

            self._ledger.debit_shares(key, actor, shares)
            self._ledger.set_reserves(key, checked_sub(reserve0, amount0), checked_sub(reserve1, amount1))
            self._ledger.verify(key)

            journal.push(key.asset0, actor, amount0)
            journal.push(key.asset1, actor, amount1)

            self._emit(PoolEvent(
                event=Event.LIQUIDITY_REMOVED,
                pool_key=key.hex,
                actor=actor,
                fields={"amount_a": amount0, "amount_b": amount1, "shares": shares},
            ))

        logger.info("liquidity removed from pool %s by %s: (%d, %d) shares=%d", key.hex, actor, amount0, amount1, shares)
        a_first = canonical_asset_id(asset_a) == key.asset0
        return RemoveLiquidityReceipt(
            pool_key=key.hex,
            asset_a=canonical_asset_id(asset_a),
            asset_b=canonical_asset_id(asset_b),
            amount_a=amount0 if a_first else amount1,
            amount_b=amount1 if a_first else amount0,
            shares=shares,
        )

    # -- queries ------------------------------------------------------------

    def get_pool(self, asset_a: AssetId, asset_b: AssetId) -> Optional[Pool]:
        """Detached copy of the pool state, or None if the pair was never referenced."""
        return self._ledger.view(derive_pool_key(asset_a, asset_b))

    def get_reserves(self, asset_a: AssetId, asset_b: AssetId) -> Tuple[Amount, Amount]:
        """Reserves in the caller's asset order; (0, 0) for an unknown pool."""
        key = derive_pool_key(asset_a, asset_b)
        pool = self._ledger.view(key)
        if pool is None:
            return 0, 0
        if canonical_asset_id(asset_a) == key.asset0:
            return pool.reserve_a, pool.reserve_b
        return pool.reserve_b, pool.reserve_a

    def get_share_balance(self, asset_a: AssetId, asset_b: AssetId, actor: Actor) -> Amount:
        pool = self._ledger.view(derive_pool_key(asset_a, asset_b))
        return 0 if pool is None else pool.shares.get(actor)

    def quote_swap(self, asset_in: AssetId, asset_out: AssetId, amount_in: Amount) -> Amount:
        """Exact-in output at current reserves, without executing anything."""
        reserve_in, reserve_out = self.get_reserves(asset_in, asset_out)
        if reserve_in == 0 or reserve_out == 0:
            raise PoolNotFound("pool is not initialized")
        amount_out = cpmm.compute_swap_output(reserve_in, reserve_out, amount_in)
        logger.debug("quote %s->%s: in=%d out=%d", asset_in, asset_out, amount_in, amount_out)
        return amount_out
