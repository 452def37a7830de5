"""Error types surfaced by the ledger core."""

from __future__ import annotations


class FamLedgerError(Exception):
    """Base class for errors raised by famledger."""


class NotFoundError(FamLedgerError, LookupError):
    """Transaction or card does not exist, or belongs to another user."""

    def __init__(self, entity: str, entity_id: object):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ForbiddenError(FamLedgerError, PermissionError):
    """Attempt to delete or edit a row the system maintains."""


class StoreUnavailableError(FamLedgerError, RuntimeError):
    """The database could not be reached; safe to retry."""


class ValidationError(FamLedgerError, ValueError):
    """Input rejected at the boundary, with per-field messages."""

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        summary = "; ".join(
            f"{field}: {', '.join(messages)}" for field, messages in sorted(errors.items())
        )
        super().__init__(summary or "invalid input")
