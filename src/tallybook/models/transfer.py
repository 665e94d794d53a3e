"""Link row tying the two halves of a transfer together."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ._common import timestamp_field


class TransferLink(SQLModel, table=True):
    """One transfer = this row + an outgoing and an incoming transaction.

    The outgoing transaction holds ``-amount`` on ``from_account_id`` and the
    incoming one ``+amount`` on ``to_account_id``. The three rows are written
    and removed together.
    """

    __tablename__: ClassVar[str] = "transfer_transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    from_account_id: int = Field(foreign_key="account.id", nullable=False)
    to_account_id: int = Field(foreign_key="account.id", nullable=False)
    from_transaction_id: int = Field(
        foreign_key="transaction.id", nullable=False, unique=True, index=True
    )
    to_transaction_id: int = Field(
        foreign_key="transaction.id", nullable=False, unique=True, index=True
    )
    amount: Decimal = Field(max_digits=14, decimal_places=2, description="Unsigned magnitude")
    description: Optional[str] = Field(default=None, max_length=255)
    occurred_on: date = Field(nullable=False)
    created_at: datetime = timestamp_field()
