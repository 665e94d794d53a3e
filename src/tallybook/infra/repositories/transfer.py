"""SQLModel implementation of the transfer link repository."""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import or_
from sqlmodel import select

from ...models.transfer import TransferLink
from ..database import SessionFactory


class SQLModelTransferRepository:
    """Read access to transfer link rows."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    def get_by_transaction_id(self, transaction_id: int, *, user_id: int) -> Optional[TransferLink]:
        """Return the link that has ``transaction_id`` as either side."""
        with self.session_factory() as session:
            obj = session.exec(
                select(TransferLink)
                .where(TransferLink.user_id == user_id)
                .where(
                    or_(
                        TransferLink.from_transaction_id == transaction_id,
                        TransferLink.to_transaction_id == transaction_id,
                    )
                )
            ).first()
            if obj:
                session.expunge(obj)
            return obj

    def list_all(self, *, user_id: int) -> list[TransferLink]:
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(TransferLink)
                    .where(TransferLink.user_id == user_id)
                    .order_by(TransferLink.occurred_on.desc(), TransferLink.id.desc())  # type: ignore
                ).all()
            )
            session.expunge_all()
            return rows

    def list_for_transactions(
        self, transaction_ids: Iterable[int], *, user_id: int
    ) -> list[TransferLink]:
        """Links touching any of ``transaction_ids`` (either side)."""
        ids = [tid for tid in transaction_ids if tid is not None]
        if not ids:
            return []
        with self.session_factory() as session:
            rows = list(
                session.exec(
                    select(TransferLink)
                    .where(TransferLink.user_id == user_id)
                    .where(
                        or_(
                            TransferLink.from_transaction_id.in_(ids),  # type: ignore[attr-defined]
                            TransferLink.to_transaction_id.in_(ids),  # type: ignore[attr-defined]
                        )
                    )
                ).all()
            )
            session.expunge_all()
            return rows
