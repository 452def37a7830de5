"""Month-level balance arithmetic over the ledger store."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from ..clock import to_utc_naive
from ..domain.repositories.transaction import TransactionRepository
from ..models.enums import Nature
from ..models.transaction import Transaction

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


@dataclass(slots=True)
class MonthSummary:
    """Income/expense totals for one calendar month."""

    year: int
    month: int
    income: Decimal
    expenses: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


def month_boundaries(year: int, month: int) -> tuple[datetime, datetime]:
    """Return the inclusive UTC bounds of a month.

    Start is day 1 at 00:00:00.000, end is the last day at 23:59:59.999.
    """
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, 0, 0, 0, 0)
    end = datetime(year, month, last_day, 23, 59, 59, 999000)
    return start, end


def net_of(transactions: Iterable[Transaction]) -> Decimal:
    """Income minus expense over the given rows."""

    total = ZERO
    for txn in transactions:
        total += txn.signed_amount
    return total


def month_end_delta(
    repo: TransactionRepository, user_id: int, year: int, month: int, *, paid_only: bool = True
) -> Decimal:
    """Net (income - expense) of every row dated inside the month.

    ``paid_only`` is the cascade's variant; reports pass ``False`` to include
    unpaid/future rows as well. A month with no rows yields zero.
    """
    start, end = month_boundaries(year, month)
    rows = repo.filter_by_date_range(start, end, user_id=user_id, paid_only=paid_only)
    return net_of(rows)


def monthly_summary(
    repo: TransactionRepository, user_id: int, year: int, month: int, *, paid_only: bool = False
) -> MonthSummary:
    """Income and expense totals for a month."""

    start, end = month_boundaries(year, month)
    rows = repo.filter_by_date_range(start, end, user_id=user_id, paid_only=paid_only)
    income = sum((Decimal(t.amount) for t in rows if t.nature == Nature.INCOME), ZERO)
    expenses = sum((Decimal(t.amount) for t in rows if t.nature == Nature.EXPENSE), ZERO)
    return MonthSummary(year=year, month=month, income=income, expenses=expenses)


def current_balance(repo: TransactionRepository, user_id: int, now: datetime) -> Decimal:
    """Balance as of the end of ``now``'s UTC day.

    The month's opening-balance row already carries everything before it, so
    only paid rows from the first of the month up to today are summed.
    """
    now = to_utc_naive(now)
    start, _ = month_boundaries(now.year, now.month)
    end_of_day = now.replace(hour=23, minute=59, second=59, microsecond=999000)
    rows = repo.filter_by_date_range(start, end_of_day, user_id=user_id, paid_only=True)
    return net_of(rows).quantize(CENT)
