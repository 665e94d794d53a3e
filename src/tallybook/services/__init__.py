"""Service module exports."""

from . import accounts, balances, categories, ledger_service, payees, reconcile, transfers, users
from .accounts import AccountService
from .categories import CategoryService
from .ledger_service import LedgerEntry, LedgerPage, LedgerService
from .payees import PayeeService
from .transfers import TransferCoordinator, TransferResult

__all__ = [
    "AccountService",
    "CategoryService",
    "LedgerEntry",
    "LedgerPage",
    "LedgerService",
    "PayeeService",
    "TransferCoordinator",
    "TransferResult",
    "accounts",
    "balances",
    "categories",
    "ledger_service",
    "payees",
    "reconcile",
    "transfers",
    "users",
]
