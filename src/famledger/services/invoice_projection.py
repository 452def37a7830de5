"""Month-end invoice projection from partial-cycle spend.

The variable part of the spend (current total minus the fixed recurring
charge) is extrapolated linearly over the cycle, the recurring charge is added
back, and the expected amount acts as a floor. For shared cards the owner's
percentage is taken from the floored total.

Arithmetic stays in :class:`~decimal.Decimal` and is not rounded here; callers
round to cents when writing a row.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol

from ..clock import next_month, previous_month, to_utc_naive
from .billing_cycle import closing_date, due_date

HUNDRED = Decimal("100")


class ProjectableCard(Protocol):
    """Card fields the projection reads."""

    closing_day: int
    due_day: int
    recurring_amount: Decimal
    expected_amount: Decimal
    current_total_amount: Decimal
    is_shared: bool
    my_percentage: Optional[Decimal]


@dataclass(frozen=True, slots=True)
class InvoiceProjection:
    """Result of projecting one card's open cycle."""

    raw_projection: Decimal
    final_amount: Decimal
    my_amount: Decimal
    variable_amount: Decimal
    projected_variable: Decimal
    days_since_closing: int
    total_days_in_cycle: int
    cycle_start: datetime
    next_closing: datetime
    next_due_date: datetime
    is_shared: bool
    my_percentage: Decimal


def _dec(value: object) -> Decimal:
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def owner_share(amount: Decimal, *, is_shared: bool, my_percentage: Optional[Decimal]) -> Decimal:
    """Portion of ``amount`` that belongs to the card owner."""

    if not is_shared:
        return amount
    percentage = HUNDRED if my_percentage is None else _dec(my_percentage)
    return amount * percentage / HUNDRED


def project(
    card: ProjectableCard, now: datetime, *, current_total: Optional[Decimal] = None
) -> InvoiceProjection:
    """Project the invoice of the cycle running at ``now``.

    ``current_total`` overrides the card's stored running total (used when a
    new total is being saved).
    """
    now = to_utc_naive(now)
    today = datetime(now.year, now.month, now.day)

    start_year, start_month = now.year, now.month
    if today < closing_date(card.closing_day, start_year, start_month):
        start_year, start_month = previous_month(start_year, start_month)
    cycle_start = closing_date(card.closing_day, start_year, start_month)
    closing_year, closing_month = next_month(start_year, start_month)
    next_closing = closing_date(card.closing_day, closing_year, closing_month)

    days_since_closing = (today - cycle_start).days
    total_days_in_cycle = (next_closing - cycle_start).days

    total = _dec(card.current_total_amount if current_total is None else current_total)
    recurring = _dec(card.recurring_amount)
    expected = _dec(card.expected_amount)

    variable_amount = total - recurring
    if days_since_closing > 0:
        projected_variable = variable_amount / days_since_closing * total_days_in_cycle
    else:
        projected_variable = variable_amount

    raw_projection = projected_variable + recurring
    final_amount = max(raw_projection, expected)
    is_shared = bool(card.is_shared)
    my_percentage = HUNDRED if card.my_percentage is None else _dec(card.my_percentage)
    my_amount = owner_share(final_amount, is_shared=is_shared, my_percentage=my_percentage)

    return InvoiceProjection(
        raw_projection=raw_projection,
        final_amount=final_amount,
        my_amount=my_amount,
        variable_amount=variable_amount,
        projected_variable=projected_variable,
        days_since_closing=days_since_closing,
        total_days_in_cycle=total_days_in_cycle,
        cycle_start=cycle_start,
        next_closing=next_closing,
        next_due_date=due_date(card.closing_day, card.due_day, closing_year, closing_month),
        is_shared=is_shared,
        my_percentage=my_percentage,
    )
