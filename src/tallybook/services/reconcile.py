"""Balance reconciliation: compare stored balances with the ledger."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import func
from sqlmodel import select

from ..domain.values import CENT
from ..infra.database import SessionFactory
from ..logging_config import get_logger
from ..models._common import utcnow
from ..models.account import Account
from ..models.transaction import Transaction

logger = get_logger(__name__)


@dataclass(frozen=True)
class BalanceDrift:
    """An account whose stored balance disagrees with its transactions."""

    account_id: int
    name: str
    stored: Decimal
    expected: Decimal

    @property
    def difference(self) -> Decimal:
        return self.stored - self.expected


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT)


def _expected_balances(session, user_id: int) -> list[tuple[Account, Decimal]]:
    totals = dict(
        session.exec(
            select(Transaction.account_id, func.sum(Transaction.amount))
            .where(Transaction.user_id == user_id)
            .group_by(Transaction.account_id)
        ).all()
    )
    accounts = session.exec(
        select(Account).where(Account.user_id == user_id).order_by(Account.id)
    ).all()
    return [
        (account, _money(account.opening_balance) + _money(totals.get(account.id)))
        for account in accounts
    ]


def reconcile_balances(session_factory: SessionFactory, *, user_id: int) -> list[BalanceDrift]:
    """Return one record per drifted account; an empty list means consistent."""

    with session_factory() as session:
        drifts = [
            BalanceDrift(
                account_id=account.id,
                name=account.name,
                stored=_money(account.balance),
                expected=expected,
            )
            for account, expected in _expected_balances(session, user_id)
            if _money(account.balance) != expected
        ]
    if drifts:
        logger.warning(
            "Balance drift detected",
            extra={"user_id": user_id, "accounts": [d.account_id for d in drifts]},
        )
    return drifts


def recompute_balances(session_factory: SessionFactory, *, user_id: int) -> list[BalanceDrift]:
    """Rewrite drifted balances from the ledger; return what was repaired."""

    repaired: list[BalanceDrift] = []
    with session_factory() as session:
        for account, expected in _expected_balances(session, user_id):
            stored = _money(account.balance)
            if stored == expected:
                continue
            repaired.append(
                BalanceDrift(account_id=account.id, name=account.name, stored=stored, expected=expected)
            )
            account.balance = expected
            account.updated_at = utcnow()
            session.add(account)
    for drift in repaired:
        logger.warning(
            "Balance repaired",
            extra={
                "user_id": user_id,
                "account_id": drift.account_id,
                "from": str(drift.stored),
                "to": str(drift.expected),
            },
        )
    return repaired
