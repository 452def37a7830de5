"""Concrete repository implementations using SQLModel."""

from .credit_card import SQLModelCreditCardRepository
from .transaction import SQLModelTransactionRepository

__all__ = [
    "SQLModelCreditCardRepository",
    "SQLModelTransactionRepository",
]
