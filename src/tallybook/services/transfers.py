"""Transfer coordinator: moves money between two of an owner's accounts.

A transfer is stored as an outgoing transaction (``-amount`` on the source), an
incoming transaction (``+amount`` on the destination) and a ``TransferLink``
row referencing both. All three rows and both balance adjustments are written
and removed inside one unit of work.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import or_
from sqlmodel import Session, select

from ..domain.values import (
    TransactionKind,
    clean_text,
    parse_date,
    to_id,
    to_positive_magnitude,
)
from ..errors import ConsistencyFault, NotFound, ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories.scoped import get_owned
from ..infra.repositories.transfer import SQLModelTransferRepository
from ..logging_config import get_logger
from ..models.account import Account
from ..models.transaction import Transaction
from ..models.transfer import TransferLink
from .balances import adjust_balance

logger = get_logger(__name__)

DEFAULT_OUT_DESCRIPTION = "Transfer out"
DEFAULT_IN_DESCRIPTION = "Transfer in"


@dataclass(frozen=True)
class TransferResult:
    """The three rows written for one transfer."""

    outgoing: Transaction
    incoming: Transaction
    link: TransferLink


def find_link(session: Session, *, user_id: int, transaction_id: int) -> Optional[TransferLink]:
    """Return the link that has ``transaction_id`` as either side, if any."""

    return session.exec(
        select(TransferLink)
        .where(TransferLink.user_id == user_id)
        .where(
            or_(
                TransferLink.from_transaction_id == transaction_id,
                TransferLink.to_transaction_id == transaction_id,
            )
        )
    ).first()


def links_by_transaction(links: Iterable[TransferLink]) -> dict[int, TransferLink]:
    """Index links by both of their transaction ids."""

    index: dict[int, TransferLink] = {}
    for link in links:
        index[link.from_transaction_id] = link
        index[link.to_transaction_id] = link
    return index


class TransferCoordinator:
    """Creates and destroys transfers as single units of work."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory
        self.links = SQLModelTransferRepository(session_factory)

    def create_transfer(
        self,
        *,
        user_id: int,
        from_account_id: int,
        to_account_id: int,
        amount: Any,
        date: Any,
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> TransferResult:
        """Move ``amount`` from one account to another.

        Raises:
            ValidationError: an account id is malformed, accounts are equal, amount is not positive, or the
                date is malformed.
            NotFound: either account does not belong to ``user_id``.
        """
        from_account_id = to_id(from_account_id, field="account_id")
        to_account_id = to_id(to_account_id, field="to_account_id")
        if from_account_id == to_account_id:
            raise ValidationError(
                "Source and destination accounts must be different", field="to_account_id"
            )
        magnitude = to_positive_magnitude(amount)
        occurred_on = parse_date(date)
        description = clean_text(description, max_length=255, field="description")
        notes = clean_text(notes, max_length=1000, field="notes")

        with self.session_factory() as session:
            found = session.exec(
                select(Account.id)
                .where(Account.user_id == user_id)
                .where(Account.id.in_([from_account_id, to_account_id]))  # type: ignore[union-attr]
            ).all()
            if len(found) != 2:
                raise NotFound("One or both accounts not found", field="account_id")

            outgoing = Transaction(
                user_id=user_id,
                account_id=from_account_id,
                amount=-magnitude,
                kind=TransactionKind.EXPENSE.value,
                description=description or DEFAULT_OUT_DESCRIPTION,
                notes=notes,
                occurred_on=occurred_on,
            )
            incoming = Transaction(
                user_id=user_id,
                account_id=to_account_id,
                amount=magnitude,
                kind=TransactionKind.INCOME.value,
                description=description or DEFAULT_IN_DESCRIPTION,
                notes=notes,
                occurred_on=occurred_on,
            )
            session.add(outgoing)
            session.add(incoming)
            session.flush()

            link = TransferLink(
                user_id=user_id,
                from_account_id=from_account_id,
                to_account_id=to_account_id,
                from_transaction_id=outgoing.id,
                to_transaction_id=incoming.id,
                amount=magnitude,
                description=description,
                occurred_on=occurred_on,
            )
            session.add(link)
            session.flush()

            adjust_balance(session, user_id=user_id, account_id=from_account_id, delta=-magnitude)
            adjust_balance(session, user_id=user_id, account_id=to_account_id, delta=magnitude)

            logger.info(
                "Transfer created",
                extra={
                    "user_id": user_id,
                    "transfer_id": link.id,
                    "from_account_id": from_account_id,
                    "to_account_id": to_account_id,
                    "amount": str(magnitude),
                },
            )
            return TransferResult(outgoing=outgoing, incoming=incoming, link=link)

    def delete_transfer(self, *, user_id: int, transaction_id: int) -> None:
        """Delete the transfer that ``transaction_id`` (either side) belongs to."""
        with self.session_factory() as session:
            link = find_link(session, user_id=user_id, transaction_id=transaction_id)
            if link is None:
                raise NotFound("Transfer not found", field="transaction_id")
            self.remove_link(session, user_id=user_id, link=link)

    def remove_link(self, session: Session, *, user_id: int, link: TransferLink) -> None:
        """Reverse and delete ``link`` and both of its transactions in ``session``.

        The caller owns the unit of work; any failure here rolls back with it.
        """
        outgoing = get_owned(session, Transaction, link.from_transaction_id, user_id=user_id)
        incoming = get_owned(session, Transaction, link.to_transaction_id, user_id=user_id)
        if outgoing is None or incoming is None:
            raise ConsistencyFault(f"Transfer {link.id} is missing one of its transactions")

        magnitude = Decimal(link.amount)
        adjust_balance(session, user_id=user_id, account_id=link.to_account_id, delta=-magnitude)
        adjust_balance(session, user_id=user_id, account_id=link.from_account_id, delta=magnitude)

        # Link first: it holds the foreign keys to both transactions.
        session.delete(link)
        session.flush()
        session.delete(outgoing)
        session.delete(incoming)
        session.flush()

        logger.info(
            "Transfer deleted",
            extra={
                "user_id": user_id,
                "transfer_id": link.id,
                "from_transaction_id": link.from_transaction_id,
                "to_transaction_id": link.to_transaction_id,
                "amount": str(magnitude),
            },
        )

    def get_transfer(self, *, user_id: int, transaction_id: int) -> Optional[TransferLink]:
        return self.links.get_by_transaction_id(transaction_id, user_id=user_id)

    def list_transfers(self, *, user_id: int) -> list[TransferLink]:
        return self.links.list_all(user_id=user_id)
