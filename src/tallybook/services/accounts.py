"""Account management: create, edit and guarded delete."""

from __future__ import annotations

from datetime import date as date_type
from decimal import Decimal
from typing import Any, Optional

from ..domain.patches import AccountPatch
from ..domain.values import (
    ZERO,
    AccountStatus,
    AccountType,
    parse_date,
    parse_enum,
    require_name,
    to_money,
)
from ..errors import NotFound, ReferenceInUse, ValidationError
from ..infra.database import SessionFactory
from ..infra.repositories.account import SQLModelAccountRepository
from ..infra.repositories.scoped import get_owned, name_taken, transaction_references
from ..logging_config import get_logger
from ..models._common import utcnow
from ..models.account import Account
from ..models.transaction import Transaction

logger = get_logger(__name__)


def _day_of_month(raw: Any, *, field: str) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a day of month between 1 and 31", field=field)
    try:
        day = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a day of month between 1 and 31", field=field) from None
    if not 1 <= day <= 31 or str(day) != str(raw).strip():
        raise ValidationError(f"{field} must be a day of month between 1 and 31", field=field)
    return day


def _credit_limit(raw: Any) -> Optional[Decimal]:
    if raw is None:
        return None
    value = to_money(raw, field="credit_limit")
    if value < ZERO:
        raise ValidationError("credit_limit cannot be negative", field="credit_limit")
    return value


def _currency(raw: Any) -> str:
    if not isinstance(raw, str) or len(raw.strip()) != 3 or not raw.strip().isalpha():
        raise ValidationError("currency must be a 3-letter ISO code", field="currency")
    return raw.strip().upper()


class AccountService:
    """Owner-scoped account CRUD.

    ``balance`` is only written here for the opening balance and for explicit
    manual corrections; the latter shift ``opening_balance`` by the same
    difference so the ledger invariant keeps holding.
    """

    def __init__(self, session_factory: SessionFactory, *, default_currency: str = "USD"):
        self.session_factory = session_factory
        self.repo = SQLModelAccountRepository(session_factory)
        self.default_currency = default_currency

    def create_account(
        self,
        *,
        user_id: int,
        name: str,
        account_type: Any = AccountType.CHECKING,
        balance: Any = 0,
        credit_limit: Any = None,
        bill_generation_date: Any = None,
        payment_due_date: Any = None,
        status: Any = AccountStatus.ACTIVE,
        opening_date: Any = None,
        currency: Optional[str] = None,
    ) -> Account:
        name = require_name(name)
        opening_balance = to_money(balance, field="balance")
        account = Account(
            user_id=user_id,
            name=name,
            account_type=parse_enum(AccountType, account_type, field="type").value,
            balance=opening_balance,
            opening_balance=opening_balance,
            credit_limit=_credit_limit(credit_limit),
            bill_generation_date=_day_of_month(bill_generation_date, field="bill_generation_date"),
            payment_due_date=_day_of_month(payment_due_date, field="payment_due_date"),
            status=parse_enum(AccountStatus, status, field="status").value,
            opening_date=parse_date(opening_date, field="opening_date") if opening_date else date_type.today(),
            currency=_currency(currency or self.default_currency),
        )
        with self.session_factory() as session:
            if name_taken(session, Account, name, user_id=user_id):
                raise ValidationError("Account with this name already exists", field="name")
            session.add(account)
            session.flush()
            logger.info(
                "Account created",
                extra={"user_id": user_id, "account_id": account.id, "balance": str(opening_balance)},
            )
            return account

    def update_account(self, *, user_id: int, account_id: int, patch: AccountPatch) -> Account:
        if patch.is_empty():
            raise ValidationError("No fields to update")
        with self.session_factory() as session:
            account = get_owned(session, Account, account_id, user_id=user_id)
            if account is None:
                raise NotFound("Account not found", field="account_id")

            if patch.is_set("name"):
                name = require_name(patch.name)
                if name_taken(session, Account, name, user_id=user_id, exclude_id=account_id):
                    raise ValidationError("Account with this name already exists", field="name")
                account.name = name
            if patch.is_set("account_type"):
                account.account_type = parse_enum(AccountType, patch.account_type, field="type").value
            if patch.is_set("credit_limit"):
                account.credit_limit = _credit_limit(patch.credit_limit)
            if patch.is_set("bill_generation_date"):
                account.bill_generation_date = _day_of_month(
                    patch.bill_generation_date, field="bill_generation_date"
                )
            if patch.is_set("payment_due_date"):
                account.payment_due_date = _day_of_month(patch.payment_due_date, field="payment_due_date")
            if patch.is_set("status"):
                account.status = parse_enum(AccountStatus, patch.status, field="status").value
            if patch.is_set("opening_date"):
                account.opening_date = parse_date(patch.opening_date, field="opening_date")
            if patch.is_set("currency"):
                account.currency = _currency(patch.currency)
            if patch.is_set("balance"):
                target = to_money(patch.balance, field="balance")
                correction = target - Decimal(account.balance)
                if correction != ZERO:
                    account.opening_balance = Decimal(account.opening_balance) + correction
                    account.balance = target
                    logger.info(
                        "Manual balance correction",
                        extra={"user_id": user_id, "account_id": account_id, "correction": str(correction)},
                    )

            account.updated_at = utcnow()
            session.add(account)
            session.flush()
            return account

    def delete_account(self, *, user_id: int, account_id: int) -> None:
        with self.session_factory() as session:
            account = get_owned(session, Account, account_id, user_id=user_id)
            if account is None:
                raise NotFound("Account not found", field="account_id")
            if transaction_references(session, Transaction.account_id, account_id, user_id=user_id):
                raise ReferenceInUse("Cannot delete account with existing transactions")
            session.delete(account)
            logger.info("Account deleted", extra={"user_id": user_id, "account_id": account_id})

    def get_account(self, *, user_id: int, account_id: int) -> Account:
        account = self.repo.get_by_id(account_id, user_id=user_id)
        if account is None:
            raise NotFound("Account not found", field="account_id")
        return account

    def list_accounts(self, *, user_id: int) -> list[Account]:
        return self.repo.list_all(user_id=user_id)
