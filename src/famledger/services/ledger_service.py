"""Transaction entry points: validation, system-row guards, cascade triggers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional

from ..domain.repositories.transaction import TransactionRepository
from ..errors import ForbiddenError, NotFoundError
from ..forms import TransactionForm
from ..models.enums import EntryKind
from ..models.transaction import Transaction
from .balance_cascade import BalanceCascade
from .locks import user_lock

logger = logging.getLogger(__name__)


def _require(repo: TransactionRepository, transaction_id: int, user_id: int) -> Transaction:
    txn = repo.get_by_id(transaction_id, user_id=user_id)
    if txn is None:
        raise NotFoundError("transaction", transaction_id)
    return txn


def list_transactions(
    repo: TransactionRepository,
    *,
    user_id: int,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> list[Transaction]:
    """Transactions of a user, oldest first, optionally bounded (inclusive)."""

    return repo.filter_by_date_range(start_date, end_date, user_id=user_id)


def create_transaction(
    repo: TransactionRepository,
    cascade: BalanceCascade,
    *,
    user_id: int,
    data: Mapping[str, Any],
) -> Transaction:
    """Record a user transaction and cascade from the month after it."""

    fields = TransactionForm.from_mapping(data).require_valid()
    with user_lock(user_id):
        txn = repo.create(Transaction(user_id=user_id, kind=EntryKind.REGULAR, **fields), user_id=user_id)
        logger.info(
            "Transaction created",
            extra={"user_id": user_id, "transaction_id": txn.id, "occurred_at": txn.occurred_at},
        )
        cascade.recalculate_after(user_id, txn.occurred_at)
    return txn


def update_transaction(
    repo: TransactionRepository,
    cascade: BalanceCascade,
    *,
    user_id: int,
    transaction_id: int,
    data: Mapping[str, Any],
) -> Transaction:
    """Apply a partial update.

    A row moved between months cascades from the month after the earlier of
    its old and new dates, so both months' successors are refreshed.
    """
    fields = TransactionForm.from_mapping(data, partial=True).require_valid()
    with user_lock(user_id):
        original = _require(repo, transaction_id, user_id)
        if original.kind == EntryKind.OPENING_BALANCE:
            raise ForbiddenError("Opening balances are maintained by the system.")
        if (
            original.kind == EntryKind.INVOICE_PROJECTION
            and "occurred_at" in fields
            and fields["occurred_at"] != original.occurred_at
        ):
            # Projections are keyed by their card's due date.
            raise ForbiddenError("Projected invoices stay on their due date.")

        updated = repo.update_fields(transaction_id, fields, user_id=user_id)
        if updated is None:
            raise NotFoundError("transaction", transaction_id)
        logger.info(
            "Transaction updated",
            extra={"user_id": user_id, "transaction_id": transaction_id, "fields": sorted(fields)},
        )
        cascade.recalculate_after(user_id, min(original.occurred_at, updated.occurred_at))
    return updated


def delete_transaction(
    repo: TransactionRepository,
    cascade: BalanceCascade,
    *,
    user_id: int,
    transaction_id: int,
) -> None:
    """Delete a user transaction; system-generated rows cannot be deleted."""

    with user_lock(user_id):
        txn = _require(repo, transaction_id, user_id)
        if txn.is_system_generated:
            raise ForbiddenError("System-generated entries cannot be deleted.")
        repo.delete(transaction_id, user_id=user_id)
        logger.info(
            "Transaction deleted",
            extra={"user_id": user_id, "transaction_id": transaction_id},
        )
        cascade.recalculate_after(user_id, txn.occurred_at)
