"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import ClassVar, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from ..clock import utcnow
from .enums import Division, EntryKind, Nature, SpendType


class Transaction(SQLModel, table=True):
    """A single ledger entry, hand-entered or written by one of the generators."""

    __tablename__: ClassVar[str] = "transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    description: str = Field(nullable=False, max_length=255)
    amount: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=15,
        decimal_places=2,
        nullable=False,
        description="Magnitude; the sign comes from nature",
    )
    nature: Nature = Field(nullable=False)
    # Naive UTC throughout; plain DateTime keeps the column timezone-free.
    occurred_at: datetime = Field(
        nullable=False, index=True, sa_type=DateTime, description="Naive UTC instant"
    )
    division: Optional[Division] = Field(default=None)
    spend_type: Optional[SpendType] = Field(default=None)
    category_id: Optional[int] = Field(default=None, foreign_key="category.id")
    is_paid: bool = Field(default=True, nullable=False)
    is_system_generated: bool = Field(default=False, nullable=False)
    notes: str = Field(default="", max_length=500)

    # Synthetic rows are located by kind (+ card) and date, never by description.
    kind: EntryKind = Field(default=EntryKind.REGULAR, nullable=False, index=True)
    source_card_id: Optional[int] = Field(default=None, foreign_key="credit_card.id", index=True)

    created_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=DateTime)

    @property
    def signed_amount(self) -> Decimal:
        """Amount with income positive and expense negative."""
        amount = Decimal(self.amount)
        return amount if self.nature == Nature.INCOME else -amount
