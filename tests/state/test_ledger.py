from __future__ import annotations

import threading

import pytest

from cpamm.errors import ArithmeticOverflow, InsufficientShares, PoolInvariantError, PoolLocked, PoolNotFound
from cpamm.kernels.python.uint256 import MAX_RESERVE
from cpamm.state.ledger import PoolLedger
from cpamm.state.pools import PoolStatus, derive_pool_key

KEY = derive_pool_key("0x" + "01" * 20, "0x" + "02" * 20)
OTHER = derive_pool_key("0x" + "01" * 20, "0x" + "03" * 20)


def _seeded() -> PoolLedger:
    ledger = PoolLedger()
    ledger.get_or_create(KEY)
    ledger.set_reserves(KEY, 1000, 4000)
    ledger.credit_shares(KEY, "alice", 2000)
    return ledger


def test_get_or_create_makes_uninitialized_entry_once() -> None:
    ledger = PoolLedger()
    assert ledger.get(KEY) is None
    pool = ledger.get_or_create(KEY)
    assert pool.status is PoolStatus.UNINITIALIZED
    assert ledger.get_or_create(KEY) is pool
    assert len(ledger) == 1


def test_share_credit_and_debit_move_total_together() -> None:
    ledger = _seeded()
    ledger.credit_shares(KEY, "bob", 500)
    ledger.debit_shares(KEY, "alice", 300)
    pool = ledger.get(KEY)
    assert pool is not None
    assert pool.total_shares == 2200
    assert ledger.share_balance(KEY, "alice") == 1700
    assert ledger.share_balance(KEY, "bob") == 500
    assert pool.shares.verify_total()


def test_over_debit_changes_nothing() -> None:
    ledger = _seeded()
    with pytest.raises(InsufficientShares):
        ledger.debit_shares(KEY, "alice", 2001)
    assert ledger.share_balance(KEY, "alice") == 2000
    assert ledger.get(KEY).total_shares == 2000  # type: ignore[union-attr]


def test_mutations_require_an_entry() -> None:
    with pytest.raises(PoolNotFound):
        PoolLedger().credit_shares(KEY, "alice", 1)


def test_verify_reports_violations() -> None:
    ledger = _seeded()
    ledger.set_reserves(KEY, 0, 4000)
    with pytest.raises(PoolInvariantError, match="seeded_consistency"):
        ledger.verify(KEY)


def test_snapshot_restore_round_trip() -> None:
    ledger = _seeded()
    before = ledger.snapshot(KEY)
    ledger.set_reserves(KEY, 1, 1)
    ledger.credit_shares(KEY, "mallory", 10**9)
    ledger.restore(KEY, before)
    pool = ledger.get(KEY)
    assert pool is not None
    assert (pool.reserve_a, pool.reserve_b, pool.total_shares) == (1000, 4000, 2000)
    assert ledger.share_balance(KEY, "mallory") == 0


def test_restore_none_removes_entry_created_during_operation() -> None:
    ledger = PoolLedger()
    before = ledger.snapshot(KEY)
    ledger.get_or_create(KEY)
    ledger.restore(KEY, before)
    assert ledger.get(KEY) is None


def test_locked_rejects_same_thread_reentry() -> None:
    ledger = PoolLedger()
    with ledger.locked(KEY):
        with pytest.raises(PoolLocked):
            with ledger.locked(KEY):
                pass
        # Other keys are independent.
        with ledger.locked(OTHER):
            pass
    with ledger.locked(KEY):
        pass


def test_locked_serializes_threads_on_one_key() -> None:
    ledger = _seeded()
    entered = threading.Event()
    release = threading.Event()
    seen = []

    def holder() -> None:
        with ledger.locked(KEY):
            entered.set()
            release.wait(timeout=5)
            ledger.set_reserves(KEY, 2000, 8000)

    def reader() -> None:
        pool = ledger.view(KEY)
        seen.append((pool.reserve_a, pool.reserve_b))  # type: ignore[union-attr]

    t1 = threading.Thread(target=holder)
    t1.start()
    assert entered.wait(timeout=5)
    t2 = threading.Thread(target=reader)
    t2.start()
    t2.join(timeout=0.2)
    assert seen == []
    release.set()
    t1.join(timeout=5)
    t2.join(timeout=5)
    assert seen == [(2000, 8000)]


def test_pools_iterate_in_key_order() -> None:
    ledger = PoolLedger()
    ledger.get_or_create(OTHER)
    ledger.get_or_create(KEY)
    assert [p.key.hex for p in ledger.pools()] == sorted([KEY.hex, OTHER.hex])


def test_set_reserves_rejects_values_past_reserve_width() -> None:
    ledger = _seeded()
    ledger.set_reserves(KEY, MAX_RESERVE, 1)
    with pytest.raises(ArithmeticOverflow, match="reserve width"):
        ledger.set_reserves(KEY, MAX_RESERVE + 1, 1)
    with pytest.raises(ArithmeticOverflow, match="reserve width"):
        ledger.credit_shares(KEY, "bob", MAX_RESERVE)
    assert ledger.share_balance(KEY, "bob") == 0


def test_lock_for_key_without_pool_is_dropped_when_idle() -> None:
    ledger = PoolLedger()
    with ledger.locked(KEY):
        assert KEY.hex in ledger._locks
    assert ledger._locks == {}
    assert ledger._users == {}

    seeded = _seeded()
    with seeded.locked(KEY):
        pass
    assert KEY.hex in seeded._locks


def test_lock_survives_while_another_thread_waits() -> None:
    ledger = PoolLedger()
    entered = threading.Event()
    release = threading.Event()
    order = []

    def holder() -> None:
        with ledger.locked(KEY):
            entered.set()
            release.wait(timeout=5)
            order.append("holder")

    def waiter() -> None:
        with ledger.locked(KEY):
            order.append("waiter")

    t1 = threading.Thread(target=holder)
    t1.start()
    assert entered.wait(timeout=5)
    t2 = threading.Thread(target=waiter)
    t2.start()
    t2.join(timeout=0.2)
    assert order == []
    release.set()
    t1.join(timeout=5)
    t2.join(timeout=5)
    assert order == ["holder", "waiter"]
    assert ledger._locks == {}
