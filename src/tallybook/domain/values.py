"""Value types and input normalisation shared by the ledger services."""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# NUMERIC(14, 2) leaves twelve integer digits
MONEY_LIMIT = Decimal("1e12")

E = TypeVar("E", bound=Enum)


class Direction(str, Enum):
    """Caller-facing money direction for simple transactions."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class TransactionKind(str, Enum):
    """Stored kind tag; its sign rule is income > 0, expense < 0."""

    INCOME = "income"
    EXPENSE = "expense"


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    CASH = "cash"
    INVESTMENT = "investment"


class AccountStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CLOSED = "closed"


def parse_enum(enum_cls: Type[E], raw: Any, *, field: str) -> E:
    """Coerce *raw* (member or value string) into ``enum_cls``."""

    if isinstance(raw, enum_cls):
        return raw
    if isinstance(raw, str):
        try:
            return enum_cls(raw.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(member.value for member in enum_cls)
    raise ValidationError(f"{field} must be one of: {allowed}", field=field)


def to_money(raw: Any, *, field: str = "amount") -> Decimal:
    """Return *raw* as a cent-quantised Decimal or raise ``ValidationError``.

    Floats go through ``str`` so 0.1 stays 0.10 instead of its binary expansion.
    """

    if isinstance(raw, bool) or raw is None:
        raise ValidationError(f"{field} is required and must be numeric", field=field)
    if isinstance(raw, float):
        raw = str(raw)
    try:
        value = Decimal(raw.strip() if isinstance(raw, str) else raw)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a valid number", field=field) from None
    if not value.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    too_large = f"{field} must be less than {MONEY_LIMIT:,.0f} in magnitude"
    try:
        value = value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(too_large, field=field) from None
    if abs(value) >= MONEY_LIMIT:
        raise ValidationError(too_large, field=field)
    return value


def to_nonzero_magnitude(raw: Any, *, field: str = "amount") -> Decimal:
    """Return ``|raw|`` quantised to cents; zero is rejected."""

    value = abs(to_money(raw, field=field))
    if value == ZERO:
        raise ValidationError(f"{field} must be non-zero", field=field)
    return value


def to_positive_magnitude(raw: Any, *, field: str = "amount") -> Decimal:
    """Return *raw* when strictly positive; the sign is significant here."""

    value = to_money(raw, field=field)
    if value <= ZERO:
        raise ValidationError(f"{field} must be greater than zero", field=field)
    return value


def to_id(raw: Any, *, field: str) -> int:
    """Return *raw* as a positive integer row id."""

    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be an integer id", field=field)
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().isdecimal():
        value = int(raw.strip())
    else:
        if raw is None:
            raise ValidationError(f"{field} is required", field=field)
        raise ValidationError(f"{field} must be an integer id", field=field)
    if value < 1:
        raise ValidationError(f"{field} must be an integer id", field=field)
    return value


def to_optional_id(raw: Any, *, field: str) -> Optional[int]:
    return None if raw is None else to_id(raw, field=field)


def parse_date(raw: Any, *, field: str = "date") -> date:
    """Accept a ``date``, ``datetime`` or ISO-8601 string; return a calendar date."""

    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, str) and raw.strip():
        text = raw.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            pass
    raise ValidationError(f"{field} must be a valid calendar date (YYYY-MM-DD)", field=field)


def kind_for(direction: Direction) -> TransactionKind:
    return TransactionKind.INCOME if direction is Direction.DEPOSIT else TransactionKind.EXPENSE


def direction_for(kind: str) -> Direction:
    return Direction.DEPOSIT if kind == TransactionKind.INCOME.value else Direction.WITHDRAWAL


def signed_amount(magnitude: Decimal, direction: Direction) -> Decimal:
    """Apply the sign rule: deposits are +|m|, withdrawals -|m|."""

    magnitude = abs(magnitude)
    return magnitude if direction is Direction.DEPOSIT else -magnitude


def clean_text(raw: Optional[str], *, max_length: int, field: str) -> Optional[str]:
    """Strip *raw*; empty strings collapse to ``None``."""

    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValidationError(f"{field} must be text", field=field)
    text = raw.strip()
    if not text:
        return None
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters", field=field)
    return text


def require_name(raw: Any, *, field: str = "name", max_length: int = 128) -> str:
    name = clean_text(raw, max_length=max_length, field=field) if raw is not None else None
    if not name:
        raise ValidationError(f"{field} is required", field=field)
    return name
