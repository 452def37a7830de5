"""Credit card entry points and the invoice regeneration triggers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from ..domain.repositories.credit_card import CreditCardRepository
from ..errors import NotFoundError, ValidationError
from ..forms import CreditCardForm, parse_amount
from ..models.credit_card import CreditCard
from .invoice_cascade import InvoiceCascade, InvoiceCascadeResult
from .invoice_projection import InvoiceProjection
from .locks import user_lock

logger = logging.getLogger(__name__)

# Changing any of these invalidates every future projection of the card.
REGENERATING_FIELDS = ("expected_amount", "is_shared", "my_percentage")


def _require(cards: CreditCardRepository, card_id: int, user_id: int) -> CreditCard:
    card = cards.get_by_id(card_id, user_id=user_id)
    if card is None:
        raise NotFoundError("credit card", card_id)
    return card


def create_card(
    cards: CreditCardRepository,
    invoices: InvoiceCascade,
    *,
    user_id: int,
    data: Mapping[str, Any],
    now: datetime,
) -> tuple[CreditCard, InvoiceCascadeResult]:
    """Store a new card and seed its projections through the horizon."""

    fields = CreditCardForm.from_mapping(data).require_valid()
    fields["current_total_amount"] = Decimal("0.00")
    with user_lock(user_id):
        card = cards.create(CreditCard(user_id=user_id, **fields), user_id=user_id)
        logger.info("Credit card created", extra={"user_id": user_id, "card_id": card.id})
        result = invoices.regenerate_all(user_id, card, now)
    return card, result


def update_card(
    cards: CreditCardRepository,
    invoices: InvoiceCascade,
    *,
    user_id: int,
    card_id: int,
    data: Mapping[str, Any],
    now: datetime,
) -> tuple[CreditCard, InvoiceCascadeResult | None]:
    """Apply a partial update; regenerate projections when the expectation changed."""

    fields = CreditCardForm.from_mapping(data, partial=True).require_valid()
    with user_lock(user_id):
        before = _require(cards, card_id, user_id)
        updated = cards.update_fields(card_id, fields, user_id=user_id)
        if updated is None:
            raise NotFoundError("credit card", card_id)

        changed = [
            name
            for name in REGENERATING_FIELDS
            if name in fields and fields[name] != getattr(before, name)
        ]
        result = None
        if changed:
            logger.info(
                "Card expectation changed; regenerating projections",
                extra={"user_id": user_id, "card_id": card_id, "changed": changed},
            )
            result = invoices.regenerate_all(user_id, updated, now)
    return updated, result


def delete_card(
    cards: CreditCardRepository,
    invoices: InvoiceCascade,
    *,
    user_id: int,
    card_id: int,
    now: datetime,
) -> int:
    """Delete a card and its still-open, unpaid projections."""

    with user_lock(user_id):
        card = _require(cards, card_id, user_id)
        removed = invoices.remove_projections(user_id, card, now)
        cards.delete(card_id, user_id=user_id)
    logger.info("Credit card deleted", extra={"user_id": user_id, "card_id": card_id})
    return removed


def update_current_total(
    cards: CreditCardRepository,
    invoices: InvoiceCascade,
    *,
    user_id: int,
    card_id: int,
    current_total_amount: Any,
    now: datetime,
) -> InvoiceProjection:
    """Save the live running total and refresh only the active cycle."""

    try:
        total = parse_amount(current_total_amount)
    except ValueError as exc:
        raise ValidationError({"current_total_amount": [str(exc)]}) from exc
    card = _require(cards, card_id, user_id)
    return invoices.update_active_cycle(user_id, card, total, now)
