"""Command line entry points for famledger."""

from __future__ import annotations

import time
from datetime import datetime
from pathlib import Path
from typing import Optional

import click

from .clock import utcnow
from .config import BaseConfig, _parse_year_month
from .context import AppContext, create_app_context
from .errors import FamLedgerError
from .forms import parse_instant
from .logging_config import setup_logging
from .scheduler import LedgerScheduler, create_scheduler
from .services import card_service
from .services.invoice_projection import project
from .services.month_balance import current_balance


def _context(ctx: click.Context) -> AppContext:
    """Build the app context once per invocation."""

    if ctx.obj is None:
        ctx.obj = {}
    if "app" not in ctx.obj:
        config = BaseConfig(data_dir=ctx.obj.get("data_dir"))
        setup_logging(config)
        ctx.obj["app"] = create_app_context(config)
    return ctx.obj["app"]


def _instant(value: Optional[str]) -> datetime:
    if value is None:
        return utcnow()
    try:
        return parse_instant(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


def _year_month(_ctx, _param, value: Optional[str]) -> Optional[tuple[int, int]]:
    if value is None:
        return None
    try:
        return _parse_year_month(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the database and logs (overrides FAMLEDGER_DATA_DIR).",
)
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[Path]) -> None:
    """Opening balances and credit-card invoice projections."""

    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir


@cli.command("init-db")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create the database tables."""

    app = _context(ctx)
    click.echo(f"Database ready: {app.config.DATABASE_URL}")


@cli.command("recalculate")
@click.option("--user", "username", default=None, help="Only this user (default: everyone).")
@click.option(
    "--from",
    "from_month",
    callback=_year_month,
    default=None,
    metavar="YYYY-MM",
    help="First month to rewrite (default: the month after the ledger start).",
)
@click.pass_context
def recalculate(
    ctx: click.Context, username: Optional[str], from_month: Optional[tuple[int, int]]
) -> None:
    """Rewrite the opening-balance chain."""

    app = _context(ctx)
    user_ids = [app.ensure_user(username).id] if username else app.user_ids()
    if not user_ids:
        click.echo("No users with ledger data.")
        return
    for user_id in user_ids:
        try:
            if from_month is None:
                result = app.balance_cascade.full_recalculation(user_id)
            else:
                result = app.balance_cascade.recalculate_from(user_id, *from_month)
        except FamLedgerError as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(
            f"user {user_id}: {result.months_visited} months "
            f"({result.created} created, {result.updated} refreshed)"
        )


@cli.command("balance")
@click.option("--user", "username", required=True)
@click.option("--at", "at", default=None, help="Date to evaluate (YYYY-MM-DD, default today).")
@click.pass_context
def balance(ctx: click.Context, username: str, at: Optional[str]) -> None:
    """Show a user's balance at the end of a day."""

    app = _context(ctx)
    user = app.ensure_user(username)
    now = _instant(at)
    amount = current_balance(app.transaction_repo, user.id, now)
    click.echo(f"{now.date().isoformat()}: {amount}")


@cli.command("opening-balances")
@click.option("--user", "username", required=True)
@click.pass_context
def opening_balances(ctx: click.Context, username: str) -> None:
    """List the generated opening-balance rows."""

    app = _context(ctx)
    user = app.ensure_user(username)
    rows = app.balance_cascade.list_opening_balances(user.id)
    if not rows:
        click.echo("No opening balances yet. Run `famledger recalculate`.")
        return
    for row in rows:
        click.echo(f"{row.occurred_at:%Y-%m}  {row.amount:>12}")


@cli.command("project-invoice")
@click.option("--user", "username", required=True)
@click.option("--card", "card_id", type=int, required=True)
@click.option("--total", default=None, help="Save this running total before projecting.")
@click.option("--now", "at", default=None, help="Evaluation date (default today).")
@click.pass_context
def project_invoice(
    ctx: click.Context, username: str, card_id: int, total: Optional[str], at: Optional[str]
) -> None:
    """Project the open cycle of a card."""

    app = _context(ctx)
    user = app.ensure_user(username)
    now = _instant(at)
    try:
        if total is None:
            card = app.card_repo.get_by_id(card_id, user_id=user.id)
            if card is None:
                raise click.ClickException(f"Credit card {card_id} not found.")
            projection = project(card, now)
        else:
            projection = card_service.update_current_total(
                app.card_repo,
                app.invoice_cascade,
                user_id=user.id,
                card_id=card_id,
                current_total_amount=total,
                now=now,
            )
    except FamLedgerError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(
        f"cycle {projection.cycle_start:%Y-%m-%d} -> {projection.next_closing:%Y-%m-%d} "
        f"(day {projection.days_since_closing}/{projection.total_days_in_cycle})"
    )
    click.echo(f"projected: {projection.raw_projection:.2f}")
    click.echo(f"final:     {projection.final_amount:.2f}")
    if projection.is_shared:
        click.echo(f"my share:  {projection.my_amount:.2f}")
    click.echo(f"due:       {projection.next_due_date:%Y-%m-%d}")


@cli.command("regenerate-invoices")
@click.option("--user", "username", required=True)
@click.option("--card", "card_id", type=int, default=None, help="Only this card.")
@click.option("--now", "at", default=None, help="Evaluation date (default today).")
@click.pass_context
def regenerate_invoices(
    ctx: click.Context, username: str, card_id: Optional[int], at: Optional[str]
) -> None:
    """Re-seed projected invoices through the horizon."""

    app = _context(ctx)
    user = app.ensure_user(username)
    now = _instant(at)
    if card_id is None:
        cards = app.card_repo.list_all(user_id=user.id)
    else:
        card = app.card_repo.get_by_id(card_id, user_id=user.id)
        if card is None:
            raise click.ClickException(f"Credit card {card_id} not found.")
        cards = [card]

    for card in cards:
        result = app.invoice_cascade.regenerate_all(user.id, card, now)
        click.echo(
            f"{card.label}: {result.created} created, {result.updated} refreshed, "
            f"{result.protected} kept"
        )


def _wait_for_shutdown() -> None:
    while True:
        time.sleep(60)


@cli.command("scheduler")
@click.option("--once", is_flag=True, help="Run both nightly jobs now and exit.")
@click.pass_context
def run_scheduler(ctx: click.Context, once: bool) -> None:
    """Run the nightly recalculation and invoice refresh in the foreground."""

    app = _context(ctx)
    if once:
        scheduler = LedgerScheduler(app)
        visited = scheduler.run_recalculation()
        refreshed = scheduler.run_invoice_regeneration()
        click.echo(f"Recalculated {len(visited)} users, refreshed {refreshed} cards.")
        return

    scheduler = create_scheduler(app, auto_start=True)
    click.echo(
        f"Nightly jobs scheduled at {app.config.RECALC_HOUR:02d}:00. Press Ctrl+C to stop."
    )
    try:
        _wait_for_shutdown()
    except KeyboardInterrupt:
        click.echo("Shutting down scheduler.")
    finally:
        scheduler.stop()


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
