"""Ledger category definitions."""

from __future__ import annotations

from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from .enums import Division, SpendType


class Category(SQLModel, table=True):
    """Leaf of the Division > Type > Category taxonomy."""

    __tablename__: ClassVar[str] = "category"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(index=True, nullable=False, max_length=100)
    division: Division = Field(nullable=False)
    spend_type: SpendType = Field(nullable=False)
    color: Optional[str] = Field(default=None, max_length=20)
