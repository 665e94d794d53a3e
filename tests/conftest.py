"""Pytest configuration and shared fixtures for Tallybook tests.

Every test gets its own temporary SQLite database with foreign keys enforced,
built through the same bootstrap path the application uses.
"""

from __future__ import annotations

import logging
from decimal import Decimal

import pytest
from sqlmodel import select

from tallybook.config import TestConfig
from tallybook.infra.database import bootstrap_database
from tallybook.models import Account, Transaction, TransferLink, User
from tallybook.services.accounts import AccountService
from tallybook.services.categories import CategoryService
from tallybook.services.ledger_service import LedgerService
from tallybook.services.payees import PayeeService
from tallybook.services.transfers import TransferCoordinator

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers installed by the app factory so they never outlive a test."""

    yield
    logger = logging.getLogger("tallybook")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def config(tmp_path, monkeypatch) -> TestConfig:
    """Test configuration pointing every file at ``tmp_path``."""

    monkeypatch.setenv("TALLYBOOK_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("TALLYBOOK_DEV_MODE", "true")
    monkeypatch.delenv("TALLYBOOK_DATABASE_URL", raising=False)
    monkeypatch.delenv("TALLYBOOK_PAGE_SIZE", raising=False)
    monkeypatch.delenv("TALLYBOOK_DEFAULT_CURRENCY", raising=False)
    return TestConfig()


@pytest.fixture
def db_engine(config):
    engine, _ = bootstrap_database(config)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Transactional session factory bound to the test engine."""

    from tallybook.infra.database import create_session_factory

    return create_session_factory(db_engine)


# =============================================================================
# Users and services
# =============================================================================


def _make_user(session_factory, username: str) -> User:
    with session_factory() as session:
        user = User(username=username, password_hash="dummy-hash")
        session.add(user)
        session.flush()
        session.refresh(user)
        session.expunge(user)
        return user


@pytest.fixture
def user(session_factory) -> User:
    """Default owner for scoping data."""

    return _make_user(session_factory, "tester")


@pytest.fixture
def other_user(session_factory) -> User:
    return _make_user(session_factory, "intruder")


@pytest.fixture
def transfers(session_factory) -> TransferCoordinator:
    return TransferCoordinator(session_factory)


@pytest.fixture
def ledger(session_factory, transfers) -> LedgerService:
    return LedgerService(session_factory, transfers=transfers)


@pytest.fixture
def accounts(session_factory) -> AccountService:
    return AccountService(session_factory)


@pytest.fixture
def categories(session_factory) -> CategoryService:
    return CategoryService(session_factory)


@pytest.fixture
def payees(session_factory) -> PayeeService:
    return PayeeService(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def account_factory(accounts, user):
    """Factory for creating accounts through the service.

    Returns:
        Callable: Function that creates and persists Account instances
    """

    counter = {"n": 0}

    def _create_account(name: str | None = None, balance: str = "0.00", owner: User | None = None, **kwargs) -> Account:
        counter["n"] += 1
        owner = owner or user
        return accounts.create_account(
            user_id=owner.id,
            name=name or f"Account {counter['n']}",
            balance=balance,
            **kwargs,
        )

    return _create_account


# =============================================================================
# Helpers
# =============================================================================


@pytest.fixture
def balance_of(session_factory):
    """Read an account's stored balance straight from the database."""

    def _balance(account_id: int) -> Decimal:
        with session_factory() as session:
            account = session.get(Account, account_id)
            assert account is not None
            return Decimal(account.balance)

    return _balance


@pytest.fixture
def ledger_sum(session_factory):
    """Opening balance plus the signed sum of the account's transactions."""

    def _sum(account_id: int) -> Decimal:
        with session_factory() as session:
            account = session.get(Account, account_id)
            rows = session.exec(select(Transaction).where(Transaction.account_id == account_id)).all()
            return Decimal(account.opening_balance) + sum((Decimal(t.amount) for t in rows), Decimal("0.00"))

    return _sum


@pytest.fixture
def row_counts(session_factory):
    """Return ``(transactions, links)`` row counts across all owners."""

    def _counts() -> tuple[int, int]:
        with session_factory() as session:
            return (
                len(session.exec(select(Transaction)).all()),
                len(session.exec(select(TransferLink)).all()),
            )

    return _counts
