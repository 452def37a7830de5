"""Tests for transaction entry points and their cascade triggers."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from famledger.errors import ForbiddenError, NotFoundError, ValidationError
from famledger.models import EntryKind, Nature
from famledger.services import ledger_service


def _groceries(**overrides):
    data = {
        "description": "Groceries",
        "amount": "1000",
        "nature": "expense",
        "occurred_at": "2026-01-10",
    }
    data.update(overrides)
    return data


def test_create_transaction_cascades(transaction_repo, balance_cascade, opening_balances, user):
    txn = ledger_service.create_transaction(
        transaction_repo, balance_cascade, user_id=user.id, data=_groceries()
    )

    assert txn.id is not None
    assert txn.kind == EntryKind.REGULAR
    assert txn.is_system_generated is False
    balances = opening_balances()
    assert balances[(2026, 2)] == Decimal("-1000.00")
    assert balances[(2026, 3)] == Decimal("-1000.00")


def test_create_transaction_normalizes_aware_instants(transaction_repo, balance_cascade, user):
    txn = ledger_service.create_transaction(
        transaction_repo,
        balance_cascade,
        user_id=user.id,
        data=_groceries(occurred_at=datetime(2026, 3, 1, 2, 0, tzinfo=timezone.utc)),
    )

    assert txn.occurred_at == datetime(2026, 3, 1, 2, 0)


def test_create_transaction_validates(transaction_repo, balance_cascade, opening_balances, user):
    with pytest.raises(ValidationError) as excinfo:
        ledger_service.create_transaction(
            transaction_repo,
            balance_cascade,
            user_id=user.id,
            data=_groceries(amount="12.345", nature="transfer"),
        )

    assert set(excinfo.value.errors) == {"amount", "nature"}
    assert opening_balances() == {}


def test_update_moving_between_months_refreshes_both(
    transaction_repo, balance_cascade, opening_balances, user
):
    txn = ledger_service.create_transaction(
        transaction_repo, balance_cascade, user_id=user.id, data=_groceries()
    )

    ledger_service.update_transaction(
        transaction_repo,
        balance_cascade,
        user_id=user.id,
        transaction_id=txn.id,
        data={"occurred_at": "2026-03-05"},
    )

    balances = opening_balances()
    assert balances[(2026, 2)] == Decimal("0.00")
    assert balances[(2026, 3)] == Decimal("0.00")
    assert balances[(2026, 4)] == Decimal("-1000.00")


def test_update_amount_cascades(transaction_repo, balance_cascade, opening_balances, user):
    txn = ledger_service.create_transaction(
        transaction_repo, balance_cascade, user_id=user.id, data=_groceries()
    )

    updated = ledger_service.update_transaction(
        transaction_repo,
        balance_cascade,
        user_id=user.id,
        transaction_id=txn.id,
        data={"amount": "250.50"},
    )

    assert updated.amount == Decimal("250.50")
    assert updated.description == "Groceries"
    assert opening_balances()[(2027, 6)] == Decimal("-250.50")


def test_opening_balances_cannot_be_edited_or_deleted(
    transaction_repo, balance_cascade, user
):
    balance_cascade.initialize(user.id)
    opening = balance_cascade.list_opening_balances(user.id)[0]

    with pytest.raises(ForbiddenError):
        ledger_service.update_transaction(
            transaction_repo,
            balance_cascade,
            user_id=user.id,
            transaction_id=opening.id,
            data={"amount": "1.00"},
        )
    with pytest.raises(ForbiddenError):
        ledger_service.delete_transaction(
            transaction_repo, balance_cascade, user_id=user.id, transaction_id=opening.id
        )


def test_projection_rows_can_be_marked_paid_but_not_deleted(
    transaction_repo, balance_cascade, invoice_cascade, card_factory, opening_balances, user
):
    card = card_factory()
    invoice_cascade.regenerate_all(user.id, card, datetime(2026, 10, 20))
    row = transaction_repo.list_by_kind(
        EntryKind.INVOICE_PROJECTION, user_id=user.id, source_card_id=card.id
    )[0]

    ledger_service.update_transaction(
        transaction_repo,
        balance_cascade,
        user_id=user.id,
        transaction_id=row.id,
        data={"is_paid": True},
    )

    assert opening_balances()[(2026, 12)] == Decimal("-300.00")
    with pytest.raises(ForbiddenError):
        ledger_service.delete_transaction(
            transaction_repo, balance_cascade, user_id=user.id, transaction_id=row.id
        )


def test_projection_rows_cannot_be_moved_off_their_due_date(
    transaction_repo, balance_cascade, invoice_cascade, card_factory, user
):
    card = card_factory()
    invoice_cascade.regenerate_all(user.id, card, datetime(2026, 10, 20))
    row = transaction_repo.list_by_kind(
        EntryKind.INVOICE_PROJECTION, user_id=user.id, source_card_id=card.id
    )[0]

    with pytest.raises(ForbiddenError):
        ledger_service.update_transaction(
            transaction_repo,
            balance_cascade,
            user_id=user.id,
            transaction_id=row.id,
            data={"occurred_at": "2026-11-30"},
        )
    updated = ledger_service.update_transaction(
        transaction_repo,
        balance_cascade,
        user_id=user.id,
        transaction_id=row.id,
        data={"occurred_at": "2026-11-25", "notes": "checked against the app"},
    )

    assert updated.occurred_at == datetime(2026, 11, 25)
    result = invoice_cascade.regenerate_all(user.id, card, datetime(2026, 10, 20))
    assert result.created == 0


def test_delete_transaction_cascades(transaction_repo, balance_cascade, opening_balances, user):
    txn = ledger_service.create_transaction(
        transaction_repo, balance_cascade, user_id=user.id, data=_groceries()
    )

    ledger_service.delete_transaction(
        transaction_repo, balance_cascade, user_id=user.id, transaction_id=txn.id
    )

    assert transaction_repo.get_by_id(txn.id, user_id=user.id) is None
    assert opening_balances()[(2026, 2)] == Decimal("0.00")


def test_foreign_rows_are_not_found(
    transaction_repo, balance_cascade, transaction_factory, user, other_user
):
    foreign = transaction_factory("10.00", Nature.EXPENSE, owner=other_user)

    with pytest.raises(NotFoundError):
        ledger_service.update_transaction(
            transaction_repo,
            balance_cascade,
            user_id=user.id,
            transaction_id=foreign.id,
            data={"amount": "1.00"},
        )
    with pytest.raises(NotFoundError):
        ledger_service.delete_transaction(
            transaction_repo, balance_cascade, user_id=user.id, transaction_id=foreign.id
        )


def test_list_transactions_bounds_are_inclusive(transaction_repo, transaction_factory, user):
    transaction_factory("1.00", Nature.EXPENSE, datetime(2026, 4, 1))
    transaction_factory("2.00", Nature.EXPENSE, datetime(2026, 4, 15))
    transaction_factory("3.00", Nature.EXPENSE, datetime(2026, 4, 30))
    transaction_factory("4.00", Nature.EXPENSE, datetime(2026, 5, 1))

    rows = ledger_service.list_transactions(
        transaction_repo,
        user_id=user.id,
        start_date=datetime(2026, 4, 1),
        end_date=datetime(2026, 4, 30),
    )

    assert [row.amount for row in rows] == [Decimal("1.00"), Decimal("2.00"), Decimal("3.00")]
