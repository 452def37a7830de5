"""SQLModel implementation of the Transaction repository (the ledger store)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional

from sqlmodel import Session, select

from ...clock import utcnow
from ...models.enums import EntryKind
from ...models.transaction import Transaction


class SQLModelTransactionRepository:
    """SQLModel-based transaction repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, transaction_id: int, *, user_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Transaction)
                .where(Transaction.id == transaction_id)
                .where(Transaction.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def filter_by_date_range(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        *,
        user_id: int,
        paid_only: bool = False,
    ) -> list[Transaction]:
        """Transactions with start <= occurred_at <= end, oldest first."""
        with self.session_factory() as session:
            statement = select(Transaction).where(Transaction.user_id == user_id)
            if start_date is not None:
                statement = statement.where(Transaction.occurred_at >= start_date)
            if end_date is not None:
                statement = statement.where(Transaction.occurred_at <= end_date)
            if paid_only:
                statement = statement.where(Transaction.is_paid == True)  # noqa: E712
            statement = statement.order_by(Transaction.occurred_at, Transaction.id)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def find_synthetic(
        self,
        kind: EntryKind,
        occurred_at: datetime,
        *,
        user_id: int,
        source_card_id: Optional[int] = None,
    ) -> Optional[Transaction]:
        """Locate the generator-owned row for (kind, card, instant)."""
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .where(Transaction.kind == kind)
                .where(Transaction.occurred_at == occurred_at)
            )
            if source_card_id is not None:
                statement = statement.where(Transaction.source_card_id == source_card_id)
            obj = session.exec(statement.order_by(Transaction.id)).first()  # type: ignore
            if obj:
                session.expunge(obj)
            return obj

    def list_by_kind(
        self, kind: EntryKind, *, user_id: int, source_card_id: Optional[int] = None
    ) -> list[Transaction]:
        """All rows of one kind (optionally for one card), oldest first."""
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .where(Transaction.kind == kind)
            )
            if source_card_id is not None:
                statement = statement.where(Transaction.source_card_id == source_card_id)
            statement = statement.order_by(Transaction.occurred_at)  # type: ignore
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_user_ids(self) -> list[int]:
        """Distinct owners that have at least one row."""
        with self.session_factory() as session:
            return sorted(set(session.exec(select(Transaction.user_id)).all()))

    def create(self, transaction: Transaction, *, user_id: int) -> Transaction:
        """Create a new transaction."""
        with self.session_factory() as session:
            transaction.user_id = user_id
            session.add(transaction)
            session.commit()
            session.refresh(transaction)
            session.expunge(transaction)
            return transaction

    def update_fields(
        self, transaction_id: int, fields: dict[str, Any], *, user_id: int
    ) -> Optional[Transaction]:
        """Apply a partial update; returns None when the row is not the user's."""
        with self.session_factory() as session:
            obj = session.exec(
                select(Transaction)
                .where(Transaction.id == transaction_id)
                .where(Transaction.user_id == user_id)
            ).first()
            if obj is None:
                return None
            for key, value in fields.items():
                setattr(obj, key, value)
            obj.updated_at = utcnow()
            session.add(obj)
            session.commit()
            session.refresh(obj)
            session.expunge(obj)
            return obj

    def delete(self, transaction_id: int, *, user_id: int) -> None:
        """Delete a transaction by ID."""
        with self.session_factory() as session:
            transaction = session.exec(
                select(Transaction)
                .where(Transaction.id == transaction_id)
                .where(Transaction.user_id == user_id)
            ).first()
            if transaction:
                session.delete(transaction)
                session.commit()

    def detach_card(self, card_id: int, *, user_id: int) -> int:
        """Drop the card link from rows that outlive their card."""
        with self.session_factory() as session:
            rows = session.exec(
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .where(Transaction.source_card_id == card_id)
            ).all()
            for row in rows:
                row.source_card_id = None
                session.add(row)
            session.commit()
            return len(rows)
