"""Typed partial-update structures.

Each field defaults to ``UNSET`` so "not supplied" stays distinct from an
explicit ``None`` (which clears a nullable column). Update routines map the
present fields onto model attributes one by one; no query text is assembled.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from typing import Any, Iterator, Mapping, Optional, TypeVar, Union


class _Unset:
    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()

P = TypeVar("P", bound="_Patch")


class _Patch:
    """Shared helpers for patch dataclasses."""

    def present(self) -> Iterator[tuple[str, Any]]:
        """Yield ``(name, value)`` for every supplied field."""
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if value is not UNSET:
                yield f.name, value

    def is_set(self, name: str) -> bool:
        return getattr(self, name) is not UNSET

    def is_empty(self) -> bool:
        return next(self.present(), None) is None

    @classmethod
    def from_mapping(cls: type[P], data: Mapping[str, Any]) -> P:
        """Build a patch from a JSON-like mapping, ignoring unknown keys."""
        names = {f.name for f in fields(cls)}  # type: ignore[arg-type]
        return cls(**{key: value for key, value in data.items() if key in names})


@dataclass(frozen=True)
class TransactionPatch(_Patch):
    """Fields a caller may change on a simple (non-transfer) transaction."""

    account_id: Union[int, Any] = UNSET
    category_id: Union[int, None, Any] = UNSET
    payee_id: Union[int, None, Any] = UNSET
    amount: Union[Decimal, str, int, float, Any] = UNSET
    direction: Union[str, Any] = UNSET
    description: Union[str, None, Any] = UNSET
    notes: Union[str, None, Any] = UNSET
    date: Union[date, str, Any] = UNSET


@dataclass(frozen=True)
class AccountPatch(_Patch):
    name: Union[str, Any] = UNSET
    account_type: Union[str, Any] = UNSET
    balance: Union[Decimal, str, int, float, Any] = UNSET
    credit_limit: Union[Decimal, str, int, float, None, Any] = UNSET
    bill_generation_date: Union[int, None, Any] = UNSET
    payment_due_date: Union[int, None, Any] = UNSET
    status: Union[str, Any] = UNSET
    opening_date: Union[date, str, Any] = UNSET
    currency: Union[str, Any] = UNSET


@dataclass(frozen=True)
class CategoryPatch(_Patch):
    name: Union[str, Any] = UNSET
    color: Union[str, Any] = UNSET


@dataclass(frozen=True)
class PayeePatch(_Patch):
    name: Union[str, Any] = UNSET
    email: Union[str, None, Any] = UNSET
    phone: Union[str, None, Any] = UNSET
    address: Union[str, None, Any] = UNSET
