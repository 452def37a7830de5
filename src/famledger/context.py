"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from sqlmodel import Session, select

from .config import BaseConfig
from .infra.database import create_db_engine, create_session_factory, init_database
from .infra.repositories import SQLModelCreditCardRepository, SQLModelTransactionRepository
from .models.user import User
from .services.balance_cascade import BalanceCascade
from .services.invoice_cascade import InvoiceCascade


@dataclass
class AppContext:
    """Centralized application context with repositories and engines."""

    config: BaseConfig
    engine: Any
    session_factory: Callable[[], Session]

    transaction_repo: SQLModelTransactionRepository
    card_repo: SQLModelCreditCardRepository

    balance_cascade: BalanceCascade
    invoice_cascade: InvoiceCascade

    def ensure_user(self, username: str) -> User:
        """Return the user with ``username``, creating it on first use."""

        with self.session_factory() as session:
            user = session.exec(select(User).where(User.username == username)).first()
            if user is None:
                user = User(username=username)
                session.add(user)
                session.commit()
                session.refresh(user)
            session.expunge(user)
            return user

    def user_ids(self) -> list[int]:
        """Every user that owns ledger rows or cards."""

        return sorted(
            set(self.transaction_repo.list_user_ids()) | set(self.card_repo.list_user_ids())
        )


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    transaction_repo = SQLModelTransactionRepository(session_factory)
    card_repo = SQLModelCreditCardRepository(session_factory)
    balance_cascade = BalanceCascade.from_config(transaction_repo, config)
    invoice_cascade = InvoiceCascade.from_config(
        transaction_repo, card_repo, config, balance_cascade=balance_cascade
    )

    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        transaction_repo=transaction_repo,
        card_repo=card_repo,
        balance_cascade=balance_cascade,
        invoice_cascade=invoice_cascade,
    )
