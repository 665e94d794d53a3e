"""SQLModel implementation of Transaction repository (read side).

Writes go through the ledger service so balances move in the same unit of
work as the rows.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func
from sqlmodel import select

from ...models.transaction import Transaction
from ..database import SessionFactory
from .scoped import get_owned


class SQLModelTransactionRepository:
    """SQLModel-based transaction repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def get_by_id(self, transaction_id: int, *, user_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID."""
        with self.session_factory() as session:
            obj = get_owned(session, Transaction, transaction_id, user_id=user_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int, limit: int = 50, offset: int = 0) -> list[Transaction]:
        """List transactions newest first with pagination."""
        with self.session_factory() as session:
            statement = (
                select(Transaction)
                .where(Transaction.user_id == user_id)
                .order_by(
                    Transaction.occurred_on.desc(),  # type: ignore
                    Transaction.created_at.desc(),  # type: ignore
                    Transaction.id.desc(),  # type: ignore
                )
                .offset(offset)
                .limit(limit)
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def count(self, *, user_id: int) -> int:
        with self.session_factory() as session:
            return int(
                session.exec(
                    select(func.count(Transaction.id)).where(Transaction.user_id == user_id)
                ).one()
            )
