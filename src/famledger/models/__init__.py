"""SQLModel table exports."""

from .category import Category
from .credit_card import CreditCard
from .enums import Division, EntryKind, Nature, SpendType
from .transaction import Transaction
from .user import User

__all__ = [
    "Category",
    "CreditCard",
    "Division",
    "EntryKind",
    "Nature",
    "SpendType",
    "Transaction",
    "User",
]
