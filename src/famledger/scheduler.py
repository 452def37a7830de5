"""Background task scheduler for the nightly ledger maintenance."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler as APScheduler
from apscheduler.triggers.cron import CronTrigger

from .clock import utcnow
from .errors import FamLedgerError

if TYPE_CHECKING:
    from .context import AppContext

logger = logging.getLogger("famledger.scheduler")

RECALCULATION_JOB_ID = "nightly_balance_recalculation"
INVOICE_JOB_ID = "nightly_invoice_regeneration"


class LedgerScheduler:
    """Runs the full opening-balance recalculation and invoice refresh every night."""

    def __init__(self, ctx: AppContext, *, clock: Callable = utcnow):
        self.ctx = ctx
        self.clock = clock
        self.scheduler: Optional[APScheduler] = None

    def start(self) -> None:
        """Start the background scheduler."""
        if self.scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self.scheduler = self.build()
        self.scheduler.start()
        logger.info("Background scheduler started")

    def build(self) -> APScheduler:
        """Create an APScheduler instance with the nightly jobs registered (not started)."""
        hour = self.ctx.config.RECALC_HOUR
        scheduler = APScheduler()
        scheduler.add_job(
            func=self.run_recalculation,
            trigger=CronTrigger(hour=hour, minute=0),
            id=RECALCULATION_JOB_ID,
            name="Nightly Opening Balance Recalculation",
            replace_existing=True,
        )
        # Runs after the balances so refreshed projections cascade onto fresh rows.
        scheduler.add_job(
            func=self.run_invoice_regeneration,
            trigger=CronTrigger(hour=hour, minute=30),
            id=INVOICE_JOB_ID,
            name="Nightly Invoice Projection Refresh",
            replace_existing=True,
        )
        logger.info("Scheduled nightly recalculation at %02d:00", hour)
        return scheduler

    def stop(self) -> None:
        """Stop the background scheduler gracefully."""
        if self.scheduler is not None:
            self.scheduler.shutdown(wait=True)
            self.scheduler = None
            logger.info("Background scheduler stopped")

    def run_recalculation(self) -> dict[int, int]:
        """Rebuild every user's opening-balance chain; returns months visited per user."""
        visited: dict[int, int] = {}
        for user_id in self.ctx.user_ids():
            try:
                result = self.ctx.balance_cascade.full_recalculation(user_id)
            except FamLedgerError as exc:
                # Next night's pass repairs whatever this one left behind.
                logger.error(
                    "Scheduled recalculation failed",
                    extra={"user_id": user_id, "error": str(exc)},
                    exc_info=True,
                )
                continue
            visited[user_id] = result.months_visited
        logger.info("Scheduled recalculation completed", extra={"users": len(visited)})
        return visited

    def run_invoice_regeneration(self) -> int:
        """Refresh every card's future projections; returns the number of cards refreshed.

        The active cycle is skipped: its row carries the live projection from
        the user's running total and only changes when that total does.
        """
        now = self.clock()
        refreshed = 0
        for user_id in self.ctx.user_ids():
            for card in self.ctx.card_repo.list_all(user_id=user_id):
                try:
                    self.ctx.invoice_cascade.regenerate_all(
                        user_id, card, now, include_active=False
                    )
                except FamLedgerError as exc:
                    logger.error(
                        "Scheduled invoice refresh failed",
                        extra={"user_id": user_id, "card_id": card.id, "error": str(exc)},
                        exc_info=True,
                    )
                    continue
                refreshed += 1
        logger.info("Scheduled invoice refresh completed", extra={"cards": refreshed})
        return refreshed


def create_scheduler(ctx: AppContext, *, auto_start: bool = False) -> LedgerScheduler:
    """Create and optionally start the ledger scheduler."""
    scheduler = LedgerScheduler(ctx)
    if auto_start:
        scheduler.start()
    return scheduler
