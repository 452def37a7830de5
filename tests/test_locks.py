"""Tests for per-user serialization."""

from __future__ import annotations

import threading
from datetime import datetime
from decimal import Decimal

from famledger.models import Nature
from famledger.services import ledger_service
from famledger.services.locks import lock_for, user_lock


def test_one_lock_per_user():
    assert lock_for(1) is lock_for(1)
    assert lock_for(1) is not lock_for(2)


def test_lock_is_reentrant():
    with user_lock(7):
        with user_lock(7):
            assert True


def test_other_threads_wait_for_the_owner():
    acquired = threading.Event()
    release = threading.Event()
    attempts: dict[str, bool] = {}

    def holder():
        with user_lock(3):
            acquired.set()
            release.wait(timeout=5)

    thread = threading.Thread(target=holder)
    thread.start()
    acquired.wait(timeout=5)

    attempts["same_user"] = lock_for(3).acquire(blocking=False)
    attempts["other_user"] = lock_for(4).acquire(blocking=False)
    lock_for(4).release()
    release.set()
    thread.join(timeout=5)

    assert attempts == {"same_user": False, "other_user": True}


def test_concurrent_writers_leave_a_consistent_chain(
    transaction_repo, balance_cascade, opening_balances, user
):
    def write(day: int):
        ledger_service.create_transaction(
            transaction_repo,
            balance_cascade,
            user_id=user.id,
            data={
                "description": f"expense {day}",
                "amount": "100",
                "nature": Nature.EXPENSE,
                "occurred_at": datetime(2026, 1, day),
            },
        )

    threads = [threading.Thread(target=write, args=(day,)) for day in (3, 4, 5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    balances = opening_balances()
    assert balances[(2026, 2)] == Decimal("-300.00")
    assert balances[(2030, 12)] == Decimal("-300.00")
