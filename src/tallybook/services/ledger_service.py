"""Transaction ledger engine.

Creates, updates and deletes simple transactions while keeping the owning
account's balance equal to its opening balance plus the signed amounts of its
transactions. Every mutation and its balance adjustment share one unit of work.
Transfer-linked transactions are read-only here; deleting one hands over to the
transfer coordinator inside the same unit of work.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from sqlmodel import Session

from ..domain.patches import TransactionPatch
from ..domain.values import (
    Direction,
    clean_text,
    direction_for,
    kind_for,
    parse_date,
    parse_enum,
    signed_amount,
    to_id,
    to_nonzero_magnitude,
    to_optional_id,
)
from ..errors import InvalidOperation, NotFound, ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories.scoped import get_owned
from ..infra.repositories.transaction import SQLModelTransactionRepository
from ..infra.repositories.transfer import SQLModelTransferRepository
from ..logging_config import get_logger
from ..models._common import utcnow
from ..models.account import Account
from ..models.category import Category
from ..models.payee import Payee
from ..models.transaction import Transaction
from ..models.transfer import TransferLink
from .balances import adjust_balance
from .transfers import TransferCoordinator, find_link, links_by_transaction

logger = get_logger(__name__)


@dataclass(frozen=True)
class LedgerEntry:
    """A transaction plus the transfer link it belongs to, if any."""

    transaction: Transaction
    transfer: Optional[TransferLink] = None

    @property
    def is_transfer(self) -> bool:
        return self.transfer is not None

    @property
    def counterpart_transaction_id(self) -> Optional[int]:
        if self.transfer is None:
            return None
        if self.transfer.from_transaction_id == self.transaction.id:
            return self.transfer.to_transaction_id
        return self.transfer.from_transaction_id

    @property
    def counterpart_account_id(self) -> Optional[int]:
        if self.transfer is None:
            return None
        if self.transfer.from_transaction_id == self.transaction.id:
            return self.transfer.to_account_id
        return self.transfer.from_account_id


@dataclass
class LedgerPage:
    entries: list[LedgerEntry]
    page: int
    per_page: int
    total: int
    pages: int = field(init=False)

    def __post_init__(self) -> None:
        self.pages = (self.total + self.per_page - 1) // self.per_page if self.total else 0


def _require(session: Session, model: Any, row_id: Any, *, user_id: int, label: str, field: str):
    row = get_owned(session, model, row_id, user_id=user_id)
    if row is None:
        raise NotFound(f"{label} not found", field=field)
    return row


class LedgerService:
    """Owner-scoped create/update/delete of simple transactions."""

    def __init__(
        self,
        session_factory: SessionFactory,
        transfers: Optional[TransferCoordinator] = None,
    ):
        self.session_factory = session_factory
        self.transfers = transfers or TransferCoordinator(session_factory)
        self.transactions = SQLModelTransactionRepository(session_factory)
        self.links = SQLModelTransferRepository(session_factory)

    # ------------------------------------------------------------------ create

    def create_transaction(
        self,
        *,
        user_id: int,
        account_id: int,
        amount: Any,
        direction: Any,
        date: Any,
        category_id: Optional[int] = None,
        payee_id: Optional[int] = None,
        description: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Transaction:
        """Record a deposit or withdrawal and move the account balance with it."""

        account_id = to_id(account_id, field="account_id")
        category_id = to_optional_id(category_id, field="category_id")
        payee_id = to_optional_id(payee_id, field="payee_id")
        resolved_direction = parse_enum(Direction, direction, field="direction")
        stored_amount = signed_amount(to_nonzero_magnitude(amount), resolved_direction)
        occurred_on = parse_date(date)
        description = clean_text(description, max_length=255, field="description")
        notes = clean_text(notes, max_length=1000, field="notes")

        with self.session_factory() as session:
            _require(session, Account, account_id, user_id=user_id, label="Account", field="account_id")
            if category_id is not None:
                _require(session, Category, category_id, user_id=user_id, label="Category", field="category_id")
            if payee_id is not None:
                _require(session, Payee, payee_id, user_id=user_id, label="Payee", field="payee_id")

            txn = Transaction(
                user_id=user_id,
                account_id=account_id,
                category_id=category_id,
                payee_id=payee_id,
                amount=stored_amount,
                kind=kind_for(resolved_direction).value,
                description=description,
                notes=notes,
                occurred_on=occurred_on,
            )
            session.add(txn)
            session.flush()
            adjust_balance(session, user_id=user_id, account_id=account_id, delta=stored_amount)

            logger.info(
                "Transaction created",
                extra={
                    "user_id": user_id,
                    "transaction_id": txn.id,
                    "account_id": account_id,
                    "amount": str(stored_amount),
                },
            )
            return txn

    # ------------------------------------------------------------------ update

    def update_transaction(
        self, *, user_id: int, transaction_id: int, patch: TransactionPatch
    ) -> Transaction:
        """Apply ``patch`` and reconcile balances from one old → new amount delta.

        Transfer halves are immutable and raise ``InvalidOperation``. When the
        account changes, the old amount is reversed on the old account and the
        new amount applied to the new one.
        """

        changes = self._normalize_patch(patch)

        with self.session_factory() as session:
            txn = _require(
                session, Transaction, transaction_id, user_id=user_id,
                label="Transaction", field="transaction_id",
            )
            if find_link(session, user_id=user_id, transaction_id=transaction_id) is not None:
                raise InvalidOperation(
                    "Transfer transactions cannot be edited. Delete and create a new one."
                )

            if "account_id" in changes:
                _require(session, Account, changes["account_id"], user_id=user_id, label="Account", field="account_id")
            if changes.get("category_id") is not None:
                _require(session, Category, changes["category_id"], user_id=user_id, label="Category", field="category_id")
            if changes.get("payee_id") is not None:
                _require(session, Payee, changes["payee_id"], user_id=user_id, label="Payee", field="payee_id")

            old_account_id = txn.account_id
            old_amount = Decimal(txn.amount)
            direction = changes.get("direction") or direction_for(txn.kind)
            magnitude = changes.get("magnitude", abs(old_amount))
            new_amount = signed_amount(magnitude, direction)
            new_account_id = changes.get("account_id", old_account_id)

            if new_account_id != old_account_id:
                adjust_balance(session, user_id=user_id, account_id=old_account_id, delta=-old_amount)
                adjust_balance(session, user_id=user_id, account_id=new_account_id, delta=new_amount)
            elif new_amount != old_amount:
                adjust_balance(session, user_id=user_id, account_id=old_account_id, delta=new_amount - old_amount)

            txn.account_id = new_account_id
            txn.amount = new_amount
            txn.kind = kind_for(direction).value
            for name in ("category_id", "payee_id", "description", "notes", "occurred_on"):
                if name in changes:
                    setattr(txn, name, changes[name])
            txn.updated_at = utcnow()
            session.add(txn)
            session.flush()

            logger.info(
                "Transaction updated",
                extra={
                    "user_id": user_id,
                    "transaction_id": transaction_id,
                    "old_account_id": old_account_id,
                    "new_account_id": new_account_id,
                    "old_amount": str(old_amount),
                    "new_amount": str(new_amount),
                },
            )
            return txn

    @staticmethod
    def _normalize_patch(patch: TransactionPatch) -> dict[str, Any]:
        """Validate supplied patch fields before any write begins."""

        if patch.is_empty():
            raise ValidationError("No fields to update")
        changes: dict[str, Any] = {}
        if patch.is_set("account_id"):
            if patch.account_id is None:
                raise ValidationError("account_id cannot be cleared", field="account_id")
            changes["account_id"] = to_id(patch.account_id, field="account_id")
        if patch.is_set("category_id"):
            changes["category_id"] = to_optional_id(patch.category_id, field="category_id")
        if patch.is_set("payee_id"):
            changes["payee_id"] = to_optional_id(patch.payee_id, field="payee_id")
        if patch.is_set("amount"):
            changes["magnitude"] = to_nonzero_magnitude(patch.amount)
        if patch.is_set("direction"):
            changes["direction"] = parse_enum(Direction, patch.direction, field="direction")
        if patch.is_set("description"):
            changes["description"] = clean_text(patch.description, max_length=255, field="description")
        if patch.is_set("notes"):
            changes["notes"] = clean_text(patch.notes, max_length=1000, field="notes")
        if patch.is_set("date"):
            changes["occurred_on"] = parse_date(patch.date)
        return changes

    # ------------------------------------------------------------------ delete

    def delete_transaction(self, *, user_id: int, transaction_id: int) -> None:
        """Reverse a transaction's balance effect and remove it.

        Transfer halves take the whole transfer with them.
        """

        with self.session_factory() as session:
            txn = _require(
                session, Transaction, transaction_id, user_id=user_id,
                label="Transaction", field="transaction_id",
            )
            link = find_link(session, user_id=user_id, transaction_id=transaction_id)
            if link is not None:
                self.transfers.remove_link(session, user_id=user_id, link=link)
                return

            amount = Decimal(txn.amount)
            adjust_balance(session, user_id=user_id, account_id=txn.account_id, delta=-amount)
            session.delete(txn)
            session.flush()

            logger.info(
                "Transaction deleted",
                extra={
                    "user_id": user_id,
                    "transaction_id": transaction_id,
                    "account_id": txn.account_id,
                    "amount": str(amount),
                },
            )

    # ------------------------------------------------------------------- reads

    def get_transaction(self, *, user_id: int, transaction_id: int) -> LedgerEntry:
        txn = self.transactions.get_by_id(transaction_id, user_id=user_id)
        if txn is None:
            raise NotFound("Transaction not found", field="transaction_id")
        link = self.links.get_by_transaction_id(transaction_id, user_id=user_id)
        return LedgerEntry(transaction=txn, transfer=link)

    def list_transactions(self, *, user_id: int, page: int = 1, per_page: int = 50) -> LedgerPage:
        """Newest-first page of entries, each annotated with its transfer link."""

        page = max(1, page)
        per_page = max(1, per_page)
        rows = self.transactions.list_all(
            user_id=user_id, limit=per_page, offset=(page - 1) * per_page
        )
        index = links_by_transaction(
            self.links.list_for_transactions((t.id for t in rows), user_id=user_id)
        )
        entries = [LedgerEntry(transaction=t, transfer=index.get(t.id)) for t in rows]
        return LedgerPage(
            entries=entries,
            page=page,
            per_page=per_page,
            total=self.transactions.count(user_id=user_id),
        )
