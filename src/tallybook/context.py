"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import current_app
from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import SessionFactory, bootstrap_database
from .models.user import User
from .services.accounts import AccountService
from .services.categories import CategoryService
from .services.ledger_service import LedgerService
from .services.payees import PayeeService
from .services.transfers import TransferCoordinator

EXTENSION_KEY = "tallybook"


@dataclass
class AppContext:
    """Centralized application context with services and the acting owner."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory

    accounts: AccountService
    categories: CategoryService
    payees: PayeeService
    ledger: LedgerService
    transfers: TransferCoordinator

    current_user: Optional[User] = None

    def require_user_id(self) -> int:
        """Return the current user id or raise if not set."""

        if self.current_user is None or self.current_user.id is None:
            raise RuntimeError("User is not resolved")
        return self.current_user.id


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create the engine, schema, services and local profile."""

    if config is None:
        config = BaseConfig()

    engine, session_factory = bootstrap_database(config)

    from .services import users

    local_user = users.ensure_local_user(session_factory)

    transfers = TransferCoordinator(session_factory)
    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        accounts=AccountService(session_factory, default_currency=config.DEFAULT_CURRENCY),
        categories=CategoryService(session_factory),
        payees=PayeeService(session_factory),
        ledger=LedgerService(session_factory, transfers=transfers),
        transfers=transfers,
        current_user=local_user,
    )


def current_context() -> AppContext:
    """Return the context the running Flask app was built with."""

    return current_app.extensions[EXTENSION_KEY]
