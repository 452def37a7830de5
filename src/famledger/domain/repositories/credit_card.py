"""Credit card repository protocol."""

from __future__ import annotations

from typing import Any, Optional, Protocol

from ...models.credit_card import CreditCard


class CreditCardRepository(Protocol):
    """Repository for managing credit card entities."""

    def get_by_id(self, card_id: int, *, user_id: int) -> Optional[CreditCard]:
        """Retrieve a card by ID."""
        ...

    def list_all(self, *, user_id: int) -> list[CreditCard]:
        """List all cards of a user."""
        ...

    def create(self, card: CreditCard, *, user_id: int) -> CreditCard:
        """Create a new card."""
        ...

    def update_fields(
        self, card_id: int, fields: dict[str, Any], *, user_id: int
    ) -> Optional[CreditCard]:
        """Apply a partial update."""
        ...

    def delete(self, card_id: int, *, user_id: int) -> None:
        """Delete a card by ID."""
        ...
