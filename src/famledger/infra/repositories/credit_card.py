"""SQLModel implementation of the CreditCard repository."""

from __future__ import annotations

from typing import Any, Callable, Optional

from sqlmodel import Session, select

from ...models.credit_card import CreditCard


class SQLModelCreditCardRepository:
    """SQLModel-based credit card repository implementation."""

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, card_id: int, *, user_id: int) -> Optional[CreditCard]:
        """Retrieve a card by ID, scoped to its owner."""
        with self.session_factory() as session:
            obj = session.exec(
                select(CreditCard).where(CreditCard.id == card_id, CreditCard.user_id == user_id)
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int) -> list[CreditCard]:
        """List all cards of a user."""
        with self.session_factory() as session:
            statement = (
                select(CreditCard)
                .where(CreditCard.user_id == user_id)
                .order_by(CreditCard.name)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def list_user_ids(self) -> list[int]:
        """Distinct owners that have at least one card."""
        with self.session_factory() as session:
            return sorted(set(session.exec(select(CreditCard.user_id)).all()))

    def create(self, card: CreditCard, *, user_id: int) -> CreditCard:
        """Create a new card."""
        with self.session_factory() as session:
            card.user_id = user_id
            session.add(card)
            session.commit()
            session.refresh(card)
            session.expunge(card)
            return card

    def update_fields(
        self, card_id: int, fields: dict[str, Any], *, user_id: int
    ) -> Optional[CreditCard]:
        """Apply a partial update; returns None when the card is not the user's."""
        with self.session_factory() as session:
            card = session.exec(
                select(CreditCard).where(CreditCard.id == card_id, CreditCard.user_id == user_id)
            ).first()
            if card is None:
                return None
            for key, value in fields.items():
                setattr(card, key, value)
            session.add(card)
            session.commit()
            session.refresh(card)
            session.expunge(card)
            return card

    def delete(self, card_id: int, *, user_id: int) -> None:
        """Delete a card by ID."""
        with self.session_factory() as session:
            card = session.exec(
                select(CreditCard).where(CreditCard.id == card_id, CreditCard.user_id == user_id)
            ).first()
            if card:
                session.delete(card)
                session.commit()
