"""Balance mutator: the one place that writes ``account.balance``.

Callers pass the session of the unit of work they are already in; the
adjustment commits or rolls back with the rows it accompanies.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import update
from sqlmodel import Session

from ..errors import ConsistencyFault
from ..logging_config import get_logger
from ..models._common import utcnow
from ..models.account import Account

logger = get_logger(__name__)


def adjust_balance(session: Session, *, user_id: int, account_id: int, delta: Decimal) -> None:
    """Add ``delta`` to the owner's account balance as ``balance = balance + delta``.

    The arithmetic runs in the database so concurrent adjustments to the same
    account never overwrite each other. Existence is not pre-checked: an update
    that touches anything other than exactly one row raises ``ConsistencyFault``.
    """

    if delta == 0:
        return

    statement = (
        update(Account)
        .where(Account.id == account_id)
        .where(Account.user_id == user_id)
        .values(balance=Account.balance + delta, updated_at=utcnow())
        .execution_options(synchronize_session="evaluate")
    )
    result = session.exec(statement)  # type: ignore[call-overload]
    if result.rowcount != 1:
        logger.error(
            "Balance adjustment affected %s rows",
            result.rowcount,
            extra={"account_id": account_id, "user_id": user_id, "delta": str(delta)},
        )
        raise ConsistencyFault(
            f"Balance adjustment for account {account_id} affected {result.rowcount} rows"
        )
    logger.debug(
        "Adjusted balance",
        extra={"account_id": account_id, "user_id": user_id, "delta": str(delta)},
    )
