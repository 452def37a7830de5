"""Credit card entities and their billing parameters."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import ClassVar, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from ..clock import utcnow
from .enums import Division, SpendType


class CreditCard(SQLModel, table=True):
    """Card whose monthly invoice is projected into the ledger."""

    __tablename__: ClassVar[str] = "credit_card"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=100)
    brand: str = Field(nullable=False, max_length=50)
    credit_limit: Decimal = Field(default=Decimal("0.00"), max_digits=15, decimal_places=2)
    closing_day: int = Field(nullable=False, ge=1, le=31)
    due_day: int = Field(nullable=False, ge=1, le=31)
    recurring_amount: Decimal = Field(default=Decimal("0.00"), max_digits=15, decimal_places=2)
    expected_amount: Decimal = Field(default=Decimal("0.00"), max_digits=15, decimal_places=2)
    current_total_amount: Decimal = Field(
        default=Decimal("0.00"),
        max_digits=15,
        decimal_places=2,
        description="User-entered running total of the active cycle",
    )
    division: Division = Field(default=Division.PERSONAL, nullable=False)
    spend_type: SpendType = Field(default=SpendType.ESSENTIAL, nullable=False)
    is_shared: bool = Field(default=False, nullable=False)
    my_percentage: Decimal = Field(default=Decimal("100.00"), max_digits=5, decimal_places=2)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=DateTime)

    @property
    def label(self) -> str:
        return f"{self.name} {self.brand}"
