"""Pure domain helpers: value normalisation and typed patches."""

from .patches import UNSET, AccountPatch, CategoryPatch, PayeePatch, TransactionPatch
from .values import AccountStatus, AccountType, Direction, TransactionKind

__all__ = [
    "UNSET",
    "AccountPatch",
    "AccountStatus",
    "AccountType",
    "CategoryPatch",
    "Direction",
    "PayeePatch",
    "TransactionKind",
    "TransactionPatch",
]
