"""SQLModel table exports."""

from .account import Account
from .category import Category
from .payee import Payee
from .transaction import Transaction
from .transfer import TransferLink
from .user import User

__all__ = [
    "Account",
    "Category",
    "Payee",
    "Transaction",
    "TransferLink",
    "User",
]
