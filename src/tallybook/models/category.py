"""Ledger category definitions."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from ._common import timestamp_field

DEFAULT_COLOR = "#6366f1"


class Category(SQLModel, table=True):
    """Transaction category used for classification and reports."""

    __tablename__: ClassVar[str] = "category"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_category_user_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=64)
    color: str = Field(default=DEFAULT_COLOR, max_length=7)
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()
