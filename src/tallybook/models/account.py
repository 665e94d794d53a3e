"""Account model holding the running balance."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from ._common import timestamp_field


class Account(SQLModel, table=True):
    """A money container owned by one user.

    ``balance`` always equals ``opening_balance`` plus the signed amounts of every
    transaction on the account; only the balance mutator and direct edits
    write it.
    """

    __tablename__: ClassVar[str] = "account"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_account_user_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=128)
    account_type: str = Field(default="checking", nullable=False, max_length=16)
    balance: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    opening_balance: Decimal = Field(default=Decimal("0.00"), max_digits=14, decimal_places=2)
    credit_limit: Optional[Decimal] = Field(default=None, max_digits=14, decimal_places=2)
    bill_generation_date: Optional[int] = Field(default=None, description="Day of month 1-31")
    payment_due_date: Optional[int] = Field(default=None, description="Day of month 1-31")
    status: str = Field(default="active", nullable=False, max_length=16)
    opening_date: date = Field(default_factory=date.today, nullable=False)
    currency: str = Field(default="USD", max_length=3, description="ISO-4217 currency code")
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
