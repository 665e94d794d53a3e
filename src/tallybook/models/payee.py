"""Payee model: who money went to or came from."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from ._common import timestamp_field


class Payee(SQLModel, table=True):
    __tablename__: ClassVar[str] = "payee"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_payee_user_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=128)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)
    address: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
