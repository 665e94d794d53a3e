"""Concrete repository implementations using SQLModel."""

from .account import SQLModelAccountRepository
from .category import SQLModelCategoryRepository
from .payee import SQLModelPayeeRepository
from .transaction import SQLModelTransactionRepository
from .transfer import SQLModelTransferRepository

__all__ = [
    "SQLModelAccountRepository",
    "SQLModelCategoryRepository",
    "SQLModelPayeeRepository",
    "SQLModelTransactionRepository",
    "SQLModelTransferRepository",
]
