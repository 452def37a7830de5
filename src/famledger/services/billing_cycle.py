"""Billing-cycle calendar for credit cards.

A cycle is named after the (year, month) of its closing date. Days past the
end of a month are clamped, so a card closing on the 31st closes on the last
day of shorter months.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime

from ..clock import next_month, to_utc_naive


@dataclass(frozen=True, slots=True)
class BillingCycle:
    """A cycle identified by the month it closes in."""

    year: int
    month: int

    def following(self) -> "BillingCycle":
        return BillingCycle(*next_month(self.year, self.month))


def day_in_month(year: int, month: int, day: int) -> datetime:
    """Midnight UTC of ``day`` in the month, clamped to the month's length."""

    last_day = calendar.monthrange(year, month)[1]
    return datetime(year, month, min(day, last_day))


def closing_date(closing_day: int, year: int, month: int) -> datetime:
    return day_in_month(year, month, closing_day)


def due_date(closing_day: int, due_day: int, year: int, month: int) -> datetime:
    """Due date of the cycle closing in (year, month).

    A due day earlier than the closing day falls in the following month.
    """
    if due_day < closing_day:
        year, month = next_month(year, month)
    return day_in_month(year, month, due_day)


def active_cycle(closing_day: int, now: datetime) -> BillingCycle:
    """The cycle still accepting purchases at ``now``.

    Up to and including the closing day it is the current month's cycle,
    afterwards the next month's.
    """
    now = to_utc_naive(now)
    if now.day <= closing_day:
        return BillingCycle(now.year, now.month)
    return BillingCycle(*next_month(now.year, now.month))


def is_cycle_open(closing_day: int, year: int, month: int, now: datetime) -> bool:
    """Whether purchases can still land in the cycle closing in (year, month).

    Matches :func:`active_cycle`: the closing day itself still belongs to the
    open cycle.
    """
    now = to_utc_naive(now)
    return closing_date(closing_day, year, month).date() >= now.date()


def cycles_through(start: BillingCycle, horizon_year: int) -> list[BillingCycle]:
    """Cycles from ``start`` through December of ``horizon_year``."""

    cycles: list[BillingCycle] = []
    current = start
    while (current.year, current.month) <= (horizon_year, 12):
        cycles.append(current)
        current = current.following()
    return cycles
