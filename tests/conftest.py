"""Pytest configuration and shared fixtures for famledger tests.

Every test gets a throwaway SQLite file under ``tmp_path`` with the schema
created, a session factory matching the production one, a default user and
row factories for transactions and credit cards.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest
from sqlmodel import select

from famledger.config import TestingConfig
from famledger.infra.database import create_db_engine, create_session_factory, init_database
from famledger.infra.repositories import (
    SQLModelCreditCardRepository,
    SQLModelTransactionRepository,
)
from famledger.models import CreditCard, Nature, Transaction, User
from famledger.models.enums import EntryKind
from famledger.services.balance_cascade import BalanceCascade
from famledger.services.invoice_cascade import InvoiceCascade
from famledger.services.locks import clear_locks

_ENV_VARS = (
    "FAMLEDGER_DATA_DIR",
    "FAMLEDGER_DATABASE_URL",
    "FAMLEDGER_DEV_MODE",
    "FAMLEDGER_HORIZON_YEAR",
    "FAMLEDGER_LEDGER_START",
    "FAMLEDGER_RECALC_HOUR",
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch):
    """Keep developer environment variables out of the tests."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_locks()
    yield
    clear_locks()


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def config(tmp_path):
    """Testing configuration rooted in the test's temp dir."""

    return TestingConfig(tmp_path)


@pytest.fixture
def db_engine(config):
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine with all tables created
    """
    engine = create_db_engine(config)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory for repositories that expect Callable[[], Session]."""

    return create_session_factory(db_engine)


@pytest.fixture
def user_factory(session_factory):
    """Factory for owners."""

    def _create_user(username: str = "tester") -> User:
        with session_factory() as session:
            existing = session.exec(select(User).where(User.username == username)).first()
            if existing is None:
                existing = User(username=username)
                session.add(existing)
                session.commit()
                session.refresh(existing)
            session.expunge(existing)
            return existing

    return _create_user


@pytest.fixture
def user(user_factory) -> User:
    """Default user for scoping data."""

    return user_factory("tester")


@pytest.fixture
def other_user(user_factory) -> User:
    return user_factory("someone-else")


# =============================================================================
# Repositories and services
# =============================================================================


@pytest.fixture
def transaction_repo(session_factory):
    return SQLModelTransactionRepository(session_factory)


@pytest.fixture
def card_repo(session_factory):
    return SQLModelCreditCardRepository(session_factory)


@pytest.fixture
def balance_cascade(transaction_repo):
    return BalanceCascade(transaction_repo, horizon_year=2030, ledger_start=(2026, 1))


@pytest.fixture
def invoice_cascade(transaction_repo, card_repo, balance_cascade):
    return InvoiceCascade(
        transaction_repo, card_repo, horizon_year=2030, balance_cascade=balance_cascade
    )


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def transaction_factory(transaction_repo, user):
    """Factory for regular ledger rows.

    Returns:
        Callable: Function that creates and persists Transaction instances
    """

    def _create_transaction(
        amount: str | Decimal,
        nature: Nature | str = Nature.EXPENSE,
        occurred_at: datetime | None = None,
        description: str = "Test transaction",
        is_paid: bool = True,
        owner: User | None = None,
    ) -> Transaction:
        owner = owner or user
        transaction = Transaction(
            user_id=owner.id,
            description=description,
            amount=Decimal(str(amount)),
            nature=Nature(nature),
            occurred_at=occurred_at or datetime(2026, 1, 10, 12, 0),
            is_paid=is_paid,
            kind=EntryKind.REGULAR,
        )
        return transaction_repo.create(transaction, user_id=owner.id)

    return _create_transaction


@pytest.fixture
def card_factory(card_repo, user):
    """Factory for credit cards with sensible defaults."""

    def _create_card(
        name: str = "Nubank",
        brand: str = "Visa",
        closing_day: int = 15,
        due_day: int = 25,
        recurring_amount: str = "50.00",
        expected_amount: str = "300.00",
        current_total_amount: str = "0.00",
        is_shared: bool = False,
        my_percentage: str = "100.00",
        owner: User | None = None,
    ) -> CreditCard:
        owner = owner or user
        card = CreditCard(
            user_id=owner.id,
            name=name,
            brand=brand,
            credit_limit=Decimal("5000.00"),
            closing_day=closing_day,
            due_day=due_day,
            recurring_amount=Decimal(recurring_amount),
            expected_amount=Decimal(expected_amount),
            current_total_amount=Decimal(current_total_amount),
            is_shared=is_shared,
            my_percentage=Decimal(my_percentage),
        )
        return card_repo.create(card, user_id=owner.id)

    return _create_card


@pytest.fixture
def opening_balances(transaction_repo, user):
    """Return ``{(year, month): amount}`` of the user's opening-balance rows."""

    def _collect(owner: User | None = None) -> dict[tuple[int, int], Decimal]:
        owner = owner or user
        rows = transaction_repo.list_by_kind(EntryKind.OPENING_BALANCE, user_id=owner.id)
        return {(row.occurred_at.year, row.occurred_at.month): Decimal(row.amount) for row in rows}

    return _collect
