"""Service module exports."""

from . import (
    balance_cascade,
    billing_cycle,
    card_service,
    invoice_cascade,
    invoice_projection,
    ledger_service,
    locks,
    month_balance,
)

__all__ = [
    "balance_cascade",
    "billing_cycle",
    "card_service",
    "invoice_cascade",
    "invoice_projection",
    "ledger_service",
    "locks",
    "month_balance",
]
