"""Owner-scoped query helpers usable inside an open unit of work."""

from __future__ import annotations

from typing import Any, Optional, Type, TypeVar

from sqlmodel import Session, SQLModel, select

from ...models.transaction import Transaction

M = TypeVar("M", bound=SQLModel)


def get_owned(session: Session, model: Type[M], row_id: Any, *, user_id: int) -> Optional[M]:
    """Return the row with ``row_id`` only when it belongs to ``user_id``."""

    if row_id is None:
        return None
    return session.exec(
        select(model).where(model.id == row_id).where(model.user_id == user_id)  # type: ignore[attr-defined]
    ).first()


def name_taken(
    session: Session,
    model: Type[M],
    name: str,
    *,
    user_id: int,
    exclude_id: Optional[int] = None,
) -> bool:
    """True when another row of ``model`` already uses ``name`` for this owner."""

    statement = (
        select(model.id)  # type: ignore[attr-defined]
        .where(model.user_id == user_id)  # type: ignore[attr-defined]
        .where(model.name == name)  # type: ignore[attr-defined]
    )
    if exclude_id is not None:
        statement = statement.where(model.id != exclude_id)  # type: ignore[attr-defined]
    return session.exec(statement).first() is not None


def transaction_references(session: Session, column: Any, value: int, *, user_id: int) -> bool:
    """True when any of the owner's transactions has ``column == value``."""

    return (
        session.exec(
            select(Transaction.id)
            .where(Transaction.user_id == user_id)
            .where(column == value)
            .limit(1)
        ).first()
        is not None
    )
