"""Tests for credit card entry points."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from famledger.errors import NotFoundError, ValidationError
from famledger.models import EntryKind
from famledger.services import card_service

NOW = datetime(2026, 10, 20, 9, 0)


def _card_data(**overrides):
    data = {
        "name": "Nubank",
        "brand": "Visa",
        "credit_limit": "5000",
        "closing_day": "15",
        "due_day": "25",
        "recurring_amount": "50",
        "expected_amount": "300",
    }
    data.update(overrides)
    return data


@pytest.fixture
def created_card(card_repo, invoice_cascade, user):
    card, _ = card_service.create_card(
        card_repo, invoice_cascade, user_id=user.id, data=_card_data(), now=NOW
    )
    return card


def _amounts(transaction_repo, user, card):
    rows = transaction_repo.list_by_kind(
        EntryKind.INVOICE_PROJECTION, user_id=user.id, source_card_id=card.id
    )
    return {row.amount for row in rows}


def test_create_card_seeds_projections(card_repo, invoice_cascade, transaction_repo, user):
    card, result = card_service.create_card(
        card_repo, invoice_cascade, user_id=user.id, data=_card_data(), now=NOW
    )

    assert card.id is not None
    assert card.current_total_amount == Decimal("0.00")
    assert result.created == 50
    assert _amounts(transaction_repo, user, card) == {Decimal("300.00")}


def test_create_card_validates(card_repo, invoice_cascade, user):
    with pytest.raises(ValidationError) as excinfo:
        card_service.create_card(
            card_repo,
            invoice_cascade,
            user_id=user.id,
            data=_card_data(closing_day="32", my_percentage="150"),
            now=NOW,
        )

    assert set(excinfo.value.errors) == {"closing_day", "my_percentage"}
    assert card_repo.list_all(user_id=user.id) == []


def test_update_expected_amount_regenerates(
    card_repo, invoice_cascade, transaction_repo, created_card, user
):
    card, result = card_service.update_card(
        card_repo,
        invoice_cascade,
        user_id=user.id,
        card_id=created_card.id,
        data={"expected_amount": "420.00"},
        now=NOW,
    )

    assert card.expected_amount == Decimal("420.00")
    assert result is not None and result.updated == 50
    assert _amounts(transaction_repo, user, card) == {Decimal("420.00")}


def test_update_sharing_regenerates(card_repo, invoice_cascade, transaction_repo, created_card, user):
    card, result = card_service.update_card(
        card_repo,
        invoice_cascade,
        user_id=user.id,
        card_id=created_card.id,
        data={"is_shared": "yes", "my_percentage": "50"},
        now=NOW,
    )

    assert result is not None
    assert _amounts(transaction_repo, user, card) == {Decimal("150.00")}


@pytest.mark.parametrize(
    "data",
    [{"name": "Roxinho"}, {"expected_amount": "300.00"}, {"credit_limit": "9000"}],
)
def test_update_without_expectation_change_keeps_projections(
    card_repo, invoice_cascade, created_card, user, data
):
    _, result = card_service.update_card(
        card_repo, invoice_cascade, user_id=user.id, card_id=created_card.id, data=data, now=NOW
    )

    assert result is None


def test_update_unknown_card(card_repo, invoice_cascade, user):
    with pytest.raises(NotFoundError):
        card_service.update_card(
            card_repo, invoice_cascade, user_id=user.id, card_id=999, data={"name": "x"}, now=NOW
        )


def test_update_current_total(card_repo, invoice_cascade, transaction_repo, created_card, user):
    projection = card_service.update_current_total(
        card_repo,
        invoice_cascade,
        user_id=user.id,
        card_id=created_card.id,
        current_total_amount="180.00",
        now=NOW,
    )

    assert projection.final_amount == Decimal("856")
    row = transaction_repo.find_synthetic(
        EntryKind.INVOICE_PROJECTION,
        datetime(2026, 11, 25),
        user_id=user.id,
        source_card_id=created_card.id,
    )
    assert row.amount == Decimal("856.00")


def test_update_current_total_rejects_bad_amount(card_repo, invoice_cascade, created_card, user):
    with pytest.raises(ValidationError) as excinfo:
        card_service.update_current_total(
            card_repo,
            invoice_cascade,
            user_id=user.id,
            card_id=created_card.id,
            current_total_amount="abc",
            now=NOW,
        )

    assert "current_total_amount" in excinfo.value.errors


def test_update_current_total_of_foreign_card(card_repo, invoice_cascade, created_card, other_user):
    with pytest.raises(NotFoundError):
        card_service.update_current_total(
            card_repo,
            invoice_cascade,
            user_id=other_user.id,
            card_id=created_card.id,
            current_total_amount="10",
            now=NOW,
        )


def test_delete_card_removes_open_projections(
    card_repo, invoice_cascade, transaction_repo, created_card, user
):
    removed = card_service.delete_card(
        card_repo, invoice_cascade, user_id=user.id, card_id=created_card.id, now=NOW
    )

    assert removed == 50
    assert card_repo.get_by_id(created_card.id, user_id=user.id) is None
    assert transaction_repo.list_by_kind(EntryKind.INVOICE_PROJECTION, user_id=user.id) == []
