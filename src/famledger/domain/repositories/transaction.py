"""Transaction repository protocol (the ledger store contract)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol

from ...models.enums import EntryKind
from ...models.transaction import Transaction


class TransactionRepository(Protocol):
    """Repository for managing transaction entities."""

    def get_by_id(self, transaction_id: int, *, user_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        ...

    def filter_by_date_range(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        *,
        user_id: int,
        paid_only: bool = False,
    ) -> list[Transaction]:
        """Get transactions within an inclusive date range, ordered by date."""
        ...

    def find_synthetic(
        self,
        kind: EntryKind,
        occurred_at: datetime,
        *,
        user_id: int,
        source_card_id: Optional[int] = None,
    ) -> Optional[Transaction]:
        """Locate a generator-owned row."""
        ...

    def list_by_kind(
        self, kind: EntryKind, *, user_id: int, source_card_id: Optional[int] = None
    ) -> list[Transaction]:
        """List rows of one kind."""
        ...

    def create(self, transaction: Transaction, *, user_id: int) -> Transaction:
        """Create a new transaction."""
        ...

    def update_fields(
        self, transaction_id: int, fields: dict[str, Any], *, user_id: int
    ) -> Optional[Transaction]:
        """Apply a partial update."""
        ...

    def delete(self, transaction_id: int, *, user_id: int) -> None:
        """Delete a transaction by ID."""
        ...

    def detach_card(self, card_id: int, *, user_id: int) -> int:
        """Drop the card link from rows that outlive their card."""
        ...
