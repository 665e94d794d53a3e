"""JSON routes over the ledger services.

Every route acts as the local profile resolved when the app was created.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional

from flask import jsonify, request

from ...context import current_context
from ...domain.patches import AccountPatch, CategoryPatch, PayeePatch, TransactionPatch
from ...errors import ConsistencyFault, InvalidOperation, LedgerError, NotFound, ReferenceInUse, ValidationError
from ...logging_config import get_logger
from ...models import Account, Category, Payee, TransferLink
from ...services.ledger_service import LedgerEntry
from . import bp

logger = get_logger(__name__)

TRANSFER_TYPE = "transfer"


def _status_for(error: LedgerError) -> int:
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, NotFound):
        return 404
    if isinstance(error, ReferenceInUse):
        return 409
    if isinstance(error, InvalidOperation):
        return 400
    return 500


@bp.errorhandler(LedgerError)
def handle_ledger_error(error: LedgerError):
    status = _status_for(error)
    if isinstance(error, ConsistencyFault) or status == 500:
        logger.error("Request failed: %s", error.message, extra={"path": request.path})
        return jsonify({"error": error.code, "message": "Internal consistency error"}), 500
    return jsonify(error.to_dict()), status


# ------------------------------------------------------------------ helpers


def _json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _money(value: Optional[Decimal]) -> Optional[str]:
    return None if value is None else str(Decimal(value).quantize(Decimal("0.01")))


def _iso(value: Optional[date | datetime]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime) and value.tzinfo is None:
        # SQLite hands timestamps back without their UTC offset
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _user_id() -> int:
    return current_context().require_user_id()


def _renamed(data: Mapping[str, Any], **renames: str) -> dict[str, Any]:
    """Copy ``data`` with API keys mapped to service argument names."""
    out = dict(data)
    for api_key, name in renames.items():
        if api_key in out:
            out[name] = out.pop(api_key)
    return out


def account_to_dict(account: Account) -> dict[str, Any]:
    return {
        "id": account.id,
        "name": account.name,
        "type": account.account_type,
        "balance": _money(account.balance),
        "opening_balance": _money(account.opening_balance),
        "credit_limit": _money(account.credit_limit),
        "bill_generation_date": account.bill_generation_date,
        "payment_due_date": account.payment_due_date,
        "status": account.status,
        "opening_date": _iso(account.opening_date),
        "currency": account.currency,
        "created_at": _iso(account.created_at),
        "updated_at": _iso(account.updated_at),
    }


def category_to_dict(category: Category) -> dict[str, Any]:
    return {
        "id": category.id,
        "name": category.name,
        "color": category.color,
        "created_at": _iso(category.created_at),
    }


def payee_to_dict(payee: Payee) -> dict[str, Any]:
    return {
        "id": payee.id,
        "name": payee.name,
        "email": payee.email,
        "phone": payee.phone,
        "address": payee.address,
        "created_at": _iso(payee.created_at),
    }


def entry_to_dict(entry: LedgerEntry) -> dict[str, Any]:
    txn = entry.transaction
    return {
        "id": txn.id,
        "account_id": txn.account_id,
        "category_id": txn.category_id,
        "payee_id": txn.payee_id,
        "amount": _money(txn.amount),
        "type": txn.kind,
        "description": txn.description,
        "notes": txn.notes,
        "date": _iso(txn.occurred_on),
        "is_transfer": entry.is_transfer,
        "transfer_account_id": entry.counterpart_account_id,
        "transfer_transaction_id": entry.counterpart_transaction_id,
        "created_at": _iso(txn.created_at),
        "updated_at": _iso(txn.updated_at),
    }


def transfer_to_dict(link: TransferLink) -> dict[str, Any]:
    return {
        "id": link.id,
        "from_account_id": link.from_account_id,
        "to_account_id": link.to_account_id,
        "from_transaction_id": link.from_transaction_id,
        "to_transaction_id": link.to_transaction_id,
        "amount": _money(link.amount),
        "description": link.description,
        "date": _iso(link.occurred_on),
        "created_at": _iso(link.created_at),
    }


# ----------------------------------------------------------------- accounts


@bp.get("/accounts")
def list_accounts():
    accounts = current_context().accounts.list_accounts(user_id=_user_id())
    return jsonify([account_to_dict(a) for a in accounts])


@bp.post("/accounts")
def create_account():
    data = _renamed(_json_body(), type="account_type")
    allowed = {
        "name", "account_type", "balance", "credit_limit", "bill_generation_date",
        "payment_due_date", "status", "opening_date", "currency",
    }
    kwargs = {key: value for key, value in data.items() if key in allowed and value is not None}
    account = current_context().accounts.create_account(user_id=_user_id(), **kwargs)
    return jsonify(account_to_dict(account)), 201


@bp.get("/accounts/<int:account_id>")
def get_account(account_id: int):
    account = current_context().accounts.get_account(user_id=_user_id(), account_id=account_id)
    return jsonify(account_to_dict(account))


@bp.put("/accounts/<int:account_id>")
def update_account(account_id: int):
    patch = AccountPatch.from_mapping(_renamed(_json_body(), type="account_type"))
    account = current_context().accounts.update_account(
        user_id=_user_id(), account_id=account_id, patch=patch
    )
    return jsonify(account_to_dict(account))


@bp.delete("/accounts/<int:account_id>")
def delete_account(account_id: int):
    current_context().accounts.delete_account(user_id=_user_id(), account_id=account_id)
    return jsonify({"message": "Account deleted successfully"})


# --------------------------------------------------------------- categories


@bp.get("/categories")
def list_categories():
    categories = current_context().categories.list_categories(user_id=_user_id())
    return jsonify([category_to_dict(c) for c in categories])


@bp.post("/categories")
def create_category():
    data = _json_body()
    category = current_context().categories.create_category(
        user_id=_user_id(), name=data.get("name"), color=data.get("color")
    )
    return jsonify(category_to_dict(category)), 201


@bp.get("/categories/<int:category_id>")
def get_category(category_id: int):
    category = current_context().categories.get_category(user_id=_user_id(), category_id=category_id)
    return jsonify(category_to_dict(category))


@bp.put("/categories/<int:category_id>")
def update_category(category_id: int):
    category = current_context().categories.update_category(
        user_id=_user_id(), category_id=category_id, patch=CategoryPatch.from_mapping(_json_body())
    )
    return jsonify(category_to_dict(category))


@bp.delete("/categories/<int:category_id>")
def delete_category(category_id: int):
    current_context().categories.delete_category(user_id=_user_id(), category_id=category_id)
    return jsonify({"message": "Category deleted successfully"})


# ------------------------------------------------------------------- payees


@bp.get("/payees")
def list_payees():
    payees = current_context().payees.list_payees(user_id=_user_id())
    return jsonify([payee_to_dict(p) for p in payees])


@bp.post("/payees")
def create_payee():
    data = _json_body()
    payee = current_context().payees.create_payee(
        user_id=_user_id(),
        name=data.get("name"),
        email=data.get("email"),
        phone=data.get("phone"),
        address=data.get("address"),
    )
    return jsonify(payee_to_dict(payee)), 201


@bp.get("/payees/<int:payee_id>")
def get_payee(payee_id: int):
    payee = current_context().payees.get_payee(user_id=_user_id(), payee_id=payee_id)
    return jsonify(payee_to_dict(payee))


@bp.put("/payees/<int:payee_id>")
def update_payee(payee_id: int):
    payee = current_context().payees.update_payee(
        user_id=_user_id(), payee_id=payee_id, patch=PayeePatch.from_mapping(_json_body())
    )
    return jsonify(payee_to_dict(payee))


@bp.delete("/payees/<int:payee_id>")
def delete_payee(payee_id: int):
    current_context().payees.delete_payee(user_id=_user_id(), payee_id=payee_id)
    return jsonify({"message": "Payee deleted successfully"})


# ------------------------------------------------------------- transactions


@bp.get("/transactions")
def list_transactions():
    ctx = current_context()
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get("per_page", ctx.config.PAGE_SIZE, type=int)
    result = ctx.ledger.list_transactions(user_id=_user_id(), page=page, per_page=per_page)
    return jsonify(
        {
            "transactions": [entry_to_dict(e) for e in result.entries],
            "pagination": {
                "page": result.page,
                "per_page": result.per_page,
                "total": result.total,
                "pages": result.pages,
            },
        }
    )


@bp.post("/transactions")
def create_transaction():
    ctx = current_context()
    user_id = _user_id()
    data = _json_body()

    if data.get("type") == TRANSFER_TYPE:
        if data.get("to_account_id") is None:
            raise ValidationError("to_account_id is required for transfers", field="to_account_id")
        result = ctx.transfers.create_transfer(
            user_id=user_id,
            from_account_id=data.get("account_id"),
            to_account_id=data.get("to_account_id"),
            amount=data.get("amount"),
            date=data.get("date"),
            description=data.get("description"),
            notes=data.get("notes"),
        )
        return (
            jsonify(
                {
                    "transfer": transfer_to_dict(result.link),
                    "transactions": [
                        entry_to_dict(LedgerEntry(result.outgoing, result.link)),
                        entry_to_dict(LedgerEntry(result.incoming, result.link)),
                    ],
                }
            ),
            201,
        )

    txn = ctx.ledger.create_transaction(
        user_id=user_id,
        account_id=data.get("account_id"),
        amount=data.get("amount"),
        direction=data.get("type"),
        date=data.get("date"),
        category_id=data.get("category_id"),
        payee_id=data.get("payee_id"),
        description=data.get("description"),
        notes=data.get("notes"),
    )
    return jsonify(entry_to_dict(LedgerEntry(txn))), 201


@bp.get("/transactions/<int:transaction_id>")
def get_transaction(transaction_id: int):
    entry = current_context().ledger.get_transaction(user_id=_user_id(), transaction_id=transaction_id)
    return jsonify(entry_to_dict(entry))


@bp.put("/transactions/<int:transaction_id>")
def update_transaction(transaction_id: int):
    patch = TransactionPatch.from_mapping(_renamed(_json_body(), type="direction"))
    txn = current_context().ledger.update_transaction(
        user_id=_user_id(), transaction_id=transaction_id, patch=patch
    )
    return jsonify(entry_to_dict(LedgerEntry(txn)))


@bp.delete("/transactions/<int:transaction_id>")
def delete_transaction(transaction_id: int):
    current_context().ledger.delete_transaction(user_id=_user_id(), transaction_id=transaction_id)
    return jsonify({"message": "Transaction deleted successfully"})


# ---------------------------------------------------------------- transfers


@bp.get("/transfers")
def list_transfers():
    links = current_context().transfers.list_transfers(user_id=_user_id())
    return jsonify([transfer_to_dict(link) for link in links])


@bp.delete("/transfers/<int:transaction_id>")
def delete_transfer(transaction_id: int):
    current_context().transfers.delete_transfer(user_id=_user_id(), transaction_id=transaction_id)
    return jsonify({"message": "Transfer deleted successfully"})
