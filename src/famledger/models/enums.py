"""Taxonomy and bookkeeping enums shared by the ledger tables."""

from __future__ import annotations

from enum import Enum


class Nature(str, Enum):
    """Direction of a transaction; amounts are stored as magnitudes."""

    INCOME = "income"
    EXPENSE = "expense"


class Division(str, Enum):
    """Top level of the Division > Type > Category taxonomy."""

    PERSONAL = "personal"
    FAMILY = "family"
    INVESTMENT = "investment"


class SpendType(str, Enum):
    ESSENTIAL = "essential"
    IMPORTANT = "important"
    COMFORT = "comfort"
    INVESTMENT = "investment"


class EntryKind(str, Enum):
    """Who owns a ledger row: the user, or one of the synthetic generators."""

    REGULAR = "regular"
    OPENING_BALANCE = "opening_balance"
    INVOICE_PROJECTION = "invoice_projection"
