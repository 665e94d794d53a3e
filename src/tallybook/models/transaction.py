"""SQLModel definitions for ledger transactions."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel

from ._common import timestamp_field


class Transaction(SQLModel, table=True):
    """A single signed ledger entry against one account.

    ``amount`` is positive for money in and negative for money out; ``kind``
    mirrors the sign (income/expense).
    """

    __tablename__: ClassVar[str] = "transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    account_id: int = Field(foreign_key="account.id", nullable=False, index=True)
    category_id: Optional[int] = Field(default=None, foreign_key="category.id", index=True)
    payee_id: Optional[int] = Field(default=None, foreign_key="payee.id", index=True)
    amount: Decimal = Field(max_digits=14, decimal_places=2)
    kind: str = Field(nullable=False, max_length=16)
    description: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=1000)
    occurred_on: date = Field(nullable=False, index=True)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
