"""SQLModel implementation of Payee repository."""

from __future__ import annotations

from typing import Optional

from sqlmodel import select

from ...models.payee import Payee
from ..database import SessionFactory
from .scoped import get_owned


class SQLModelPayeeRepository:
    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_id(self, payee_id: int, *, user_id: int) -> Optional[Payee]:
        with self.session_factory() as session:
            obj = get_owned(session, Payee, payee_id, user_id=user_id)
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int) -> list[Payee]:
        """List all payees alphabetically."""
        with self.session_factory() as session:
            statement = (
                select(Payee)
                .where(Payee.user_id == user_id)
                .order_by(Payee.name)  # type: ignore
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows
