"""Opening-balance cascade.

Every month after the ledger's first one carries a synthetic, paid income row
dated on the 1st at 00:00 UTC whose amount is the previous month's ending
balance. Because that row is itself part of its month's net, the chain is
cumulative: ``opening(M) == opening(M-1) + net(M-1 without its opening row)``.

Whenever a transaction changes, the chain is rewritten from the month after
the affected one through December of the horizon year. Each month's write is
idempotent, so a pass that dies half-way is repaired by the next one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterator, Optional

from ..clock import next_month, previous_month, to_utc_naive
from ..config import BaseConfig
from ..domain.repositories.transaction import TransactionRepository
from ..models.enums import Division, EntryKind, Nature, SpendType
from ..models.transaction import Transaction
from .locks import user_lock
from .month_balance import CENT, month_end_delta

logger = logging.getLogger(__name__)

OPENING_BALANCE_DESCRIPTION = "Opening Balance"
OPENING_BALANCE_NOTE = "Automatic opening balance generated by the system"


@dataclass(slots=True)
class CascadeResult:
    """What a single cascade pass touched."""

    user_id: int
    start: Optional[tuple[int, int]] = None
    months_visited: int = 0
    created: int = 0
    updated: int = 0


def opening_balance_date(year: int, month: int) -> datetime:
    """Instant of a month's opening-balance row (1st, 00:00:00.000 UTC)."""
    return datetime(year, month, 1)


class BalanceCascade:
    """Maintains the chain of monthly opening-balance rows for each user."""

    def __init__(
        self,
        repo: TransactionRepository,
        *,
        horizon_year: int = 2030,
        ledger_start: tuple[int, int] = (2026, 1),
    ):
        self.repo = repo
        self.horizon_year = horizon_year
        self.ledger_start = ledger_start

    @classmethod
    def from_config(cls, repo: TransactionRepository, config: BaseConfig) -> "BalanceCascade":
        return cls(repo, horizon_year=config.HORIZON_YEAR, ledger_start=config.ledger_start)

    @property
    def first_generated_month(self) -> tuple[int, int]:
        """The ledger's first month has an implicit zero prior balance."""
        return next_month(*self.ledger_start)

    def months_from(self, year: int, month: int) -> Iterator[tuple[int, int]]:
        """Yield (year, month) from the given month through the horizon."""
        current = (year, month)
        while current <= (self.horizon_year, 12):
            yield current
            current = next_month(*current)

    def recalculate_from(self, user_id: int, from_year: int, from_month: int) -> CascadeResult:
        """Rewrite opening balances from ``(from_year, from_month)`` onwards."""

        if not 1 <= from_month <= 12:
            raise ValueError(f"from_month must be 1-12, got {from_month}")

        start = max((from_year, from_month), self.first_generated_month)
        result = CascadeResult(user_id=user_id)
        if start > (self.horizon_year, 12):
            logger.debug("Cascade start past horizon; nothing to do", extra={"user_id": user_id})
            return result

        result.start = start
        with user_lock(user_id):
            logger.info(
                "Opening-balance cascade started",
                extra={"user_id": user_id, "from": f"{start[0]:04d}-{start[1]:02d}"},
            )
            previous_balance = month_end_delta(self.repo, user_id, *previous_month(*start))

            for year, month in self.months_from(*start):
                if self._write_opening_balance(user_id, year, month, previous_balance):
                    result.created += 1
                else:
                    result.updated += 1
                result.months_visited += 1
                # Includes the row just written, which carries the prior months.
                previous_balance = month_end_delta(self.repo, user_id, year, month)

        logger.info(
            "Opening-balance cascade finished",
            extra={
                "user_id": user_id,
                "months": result.months_visited,
                "rows_created": result.created,
                "rows_updated": result.updated,
            },
        )
        return result

    def recalculate_after(self, user_id: int, moment: datetime) -> CascadeResult:
        """Cascade seeded with the month after ``moment``'s month.

        A row dated in March changes April's opening balance onwards, never
        March's own.
        """
        moment = to_utc_naive(moment)
        return self.recalculate_from(user_id, *next_month(moment.year, moment.month))

    def initialize(self, user_id: int) -> CascadeResult:
        """Generate (or refresh) the full chain from the month after the ledger start."""
        return self.recalculate_from(user_id, *self.first_generated_month)

    full_recalculation = initialize

    def list_opening_balances(self, user_id: int) -> list[Transaction]:
        return self.repo.list_by_kind(EntryKind.OPENING_BALANCE, user_id=user_id)

    def _write_opening_balance(
        self, user_id: int, year: int, month: int, balance: Decimal
    ) -> bool:
        """Upsert the month's opening-balance row; returns True when created."""

        when = opening_balance_date(year, month)
        amount = Decimal(balance).quantize(CENT, rounding=ROUND_HALF_UP)
        existing = self.repo.find_synthetic(EntryKind.OPENING_BALANCE, when, user_id=user_id)
        if existing is not None:
            if Decimal(existing.amount) != amount:
                self.repo.update_fields(existing.id, {"amount": amount}, user_id=user_id)
            return False

        self.repo.create(
            Transaction(
                user_id=user_id,
                description=OPENING_BALANCE_DESCRIPTION,
                amount=amount,
                nature=Nature.INCOME,
                occurred_at=when,
                division=Division.PERSONAL,
                spend_type=SpendType.ESSENTIAL,
                is_paid=True,
                is_system_generated=True,
                kind=EntryKind.OPENING_BALANCE,
                notes=OPENING_BALANCE_NOTE,
            ),
            user_id=user_id,
        )
        return True
