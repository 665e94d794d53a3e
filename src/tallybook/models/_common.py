"""Column helpers shared by the table models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime
from sqlmodel import Field


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp."""

    return datetime.now(timezone.utc)


def timestamp_field() -> Any:
    """``created_at``/``updated_at`` column stored with timezone information."""

    return Field(default_factory=utcnow, nullable=False, sa_type=DateTime(timezone=True))
