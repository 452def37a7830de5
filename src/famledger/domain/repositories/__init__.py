"""Repository protocol definitions for domain layer."""

from .credit_card import CreditCardRepository
from .transaction import TransactionRepository

__all__ = [
    "CreditCardRepository",
    "TransactionRepository",
]
