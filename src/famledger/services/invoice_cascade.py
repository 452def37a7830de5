"""Synthetic "Previsão CC" rows: one projected invoice per card and due date.

Full regeneration seeds every cycle from the active one through the horizon
with the card's expected amount (owner's share when shared). The live update
rewrites only the active cycle from the user's running total.

Rows are found by ``(source_card_id, kind, due date)``; the description is
display text and is rewritten along with the amount.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..clock import previous_month, to_utc_naive
from ..config import BaseConfig
from ..domain.repositories.credit_card import CreditCardRepository
from ..domain.repositories.transaction import TransactionRepository
from ..errors import NotFoundError
from ..models.credit_card import CreditCard
from ..models.enums import EntryKind, Nature
from ..models.transaction import Transaction
from .balance_cascade import BalanceCascade
from .billing_cycle import BillingCycle, active_cycle, cycles_through, due_date, is_cycle_open
from .invoice_projection import InvoiceProjection, owner_share, project
from .locks import user_lock
from .month_balance import CENT

logger = logging.getLogger(__name__)

PROJECTION_PREFIX = "Previsão CC"


def _cents(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def projection_description(card: CreditCard) -> str:
    """Display text of a card's projection rows."""

    base = f"{PROJECTION_PREFIX} {card.label}"
    if card.is_shared:
        return f"{base} (Fatura Total: R$ {_cents(card.expected_amount)})"
    return base


def expected_note(card: CreditCard) -> str:
    if card.is_shared:
        return (
            f"Automatic projection - expected invoice of {card.label} "
            f"({float(card.my_percentage):g}% of R$ {_cents(card.expected_amount)})"
        )
    return f"Automatic projection - expected invoice of {card.label}"


def live_note(current_total: Decimal) -> str:
    return f"Automatic projection based on current spend of R$ {_cents(current_total)}"


def cycle_of_due_date(card: CreditCard, due: datetime) -> BillingCycle:
    """Inverse of :func:`due_date` for this card."""

    if card.due_day < card.closing_day:
        return BillingCycle(*previous_month(due.year, due.month))
    return BillingCycle(due.year, due.month)


@dataclass(slots=True)
class InvoiceCascadeResult:
    """What a regeneration pass touched."""

    card_id: int
    created: int = 0
    updated: int = 0
    protected: int = 0


class InvoiceCascade:
    """Writes and refreshes projected invoice rows for credit cards."""

    def __init__(
        self,
        transactions: TransactionRepository,
        cards: CreditCardRepository,
        *,
        horizon_year: int = 2030,
        balance_cascade: Optional[BalanceCascade] = None,
    ):
        self.transactions = transactions
        self.cards = cards
        self.horizon_year = horizon_year
        self.balance_cascade = balance_cascade

    @classmethod
    def from_config(
        cls,
        transactions: TransactionRepository,
        cards: CreditCardRepository,
        config: BaseConfig,
        *,
        balance_cascade: Optional[BalanceCascade] = None,
    ) -> "InvoiceCascade":
        return cls(
            transactions,
            cards,
            horizon_year=config.HORIZON_YEAR,
            balance_cascade=balance_cascade,
        )

    def regenerate_all(
        self,
        user_id: int,
        card: CreditCard,
        now: datetime,
        *,
        include_active: bool = True,
    ) -> InvoiceCascadeResult:
        """Seed every cycle from the active one through the horizon.

        Existing rows are rewritten only while their cycle is still open and
        they have not been marked paid; closed or paid invoices are final.
        With ``include_active=False`` the active cycle is left alone so a live
        projection from :meth:`update_active_cycle` survives.
        """
        now = to_utc_naive(now)
        result = InvoiceCascadeResult(card_id=card.id)
        description = projection_description(card)
        notes = expected_note(card)
        amount = _cents(
            owner_share(
                Decimal(card.expected_amount),
                is_shared=card.is_shared,
                my_percentage=card.my_percentage,
            )
        )

        with user_lock(user_id):
            start = active_cycle(card.closing_day, now)
            if not include_active:
                start = start.following()
            for cycle in cycles_through(start, self.horizon_year):
                due = due_date(card.closing_day, card.due_day, cycle.year, cycle.month)
                existing = self.transactions.find_synthetic(
                    EntryKind.INVOICE_PROJECTION, due, user_id=user_id, source_card_id=card.id
                )
                if existing is None:
                    self.transactions.create(
                        self._new_row(user_id, card, due, amount, description, notes),
                        user_id=user_id,
                    )
                    result.created += 1
                    continue

                if existing.is_paid or not is_cycle_open(
                    card.closing_day, cycle.year, cycle.month, now
                ):
                    result.protected += 1
                    continue

                self.transactions.update_fields(
                    existing.id,
                    {
                        "amount": amount,
                        "description": description,
                        "division": card.division,
                        "spend_type": card.spend_type,
                        "notes": notes,
                    },
                    user_id=user_id,
                )
                result.updated += 1

        logger.info(
            "Invoice projections regenerated",
            extra={
                "user_id": user_id,
                "card_id": card.id,
                "rows_created": result.created,
                "rows_updated": result.updated,
                "rows_protected": result.protected,
            },
        )
        return result

    def update_active_cycle(
        self, user_id: int, card: CreditCard, current_total_amount: Decimal, now: datetime
    ) -> InvoiceProjection:
        """Store the running total and rewrite only the active cycle's row."""

        now = to_utc_naive(now)
        current_total_amount = _cents(current_total_amount)
        with user_lock(user_id):
            stored = self.cards.update_fields(
                card.id, {"current_total_amount": current_total_amount}, user_id=user_id
            )
            if stored is None:
                raise NotFoundError("credit card", card.id)

            projection = project(stored, now)
            cycle = active_cycle(stored.closing_day, now)
            due = due_date(stored.closing_day, stored.due_day, cycle.year, cycle.month)
            amount = _cents(projection.my_amount)
            notes = live_note(current_total_amount)

            existing = self.transactions.find_synthetic(
                EntryKind.INVOICE_PROJECTION, due, user_id=user_id, source_card_id=stored.id
            )
            if existing is None:
                self.transactions.create(
                    self._new_row(
                        user_id, stored, due, amount, projection_description(stored), notes
                    ),
                    user_id=user_id,
                )
            else:
                self.transactions.update_fields(
                    existing.id,
                    {
                        "amount": amount,
                        "division": stored.division,
                        "spend_type": stored.spend_type,
                        "notes": notes,
                    },
                    user_id=user_id,
                )
                # Paid rows count towards balances, so the chain must follow.
                if existing.is_paid and self.balance_cascade is not None:
                    self.balance_cascade.recalculate_after(user_id, due)

        logger.info(
            "Active invoice cycle updated",
            extra={
                "user_id": user_id,
                "card_id": stored.id,
                "due_date": due.date().isoformat(),
                "amount": str(amount),
            },
        )
        return projection

    def remove_projections(self, user_id: int, card: CreditCard, now: datetime) -> int:
        """Delete unpaid projections of still-open cycles; unlink the rest."""

        now = to_utc_naive(now)
        removed = 0
        with user_lock(user_id):
            rows = self.transactions.list_by_kind(
                EntryKind.INVOICE_PROJECTION, user_id=user_id, source_card_id=card.id
            )
            for row in rows:
                cycle = cycle_of_due_date(card, row.occurred_at)
                if not row.is_paid and is_cycle_open(card.closing_day, cycle.year, cycle.month, now):
                    self.transactions.delete(row.id, user_id=user_id)
                    removed += 1
            self.transactions.detach_card(card.id, user_id=user_id)
        logger.info(
            "Invoice projections removed",
            extra={"user_id": user_id, "card_id": card.id, "removed": removed},
        )
        return removed

    @staticmethod
    def _new_row(
        user_id: int,
        card: CreditCard,
        due: datetime,
        amount: Decimal,
        description: str,
        notes: str,
    ) -> Transaction:
        return Transaction(
            user_id=user_id,
            description=description,
            amount=amount,
            nature=Nature.EXPENSE,
            occurred_at=due,
            division=card.division,
            spend_type=card.spend_type,
            is_paid=False,
            is_system_generated=True,
            kind=EntryKind.INVOICE_PROJECTION,
            source_card_id=card.id,
            notes=notes,
        )
