"""Tests for creating, editing and deleting simple transactions."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from tallybook.domain import TransactionPatch
from tallybook.errors import InvalidOperation, NotFound, ValidationError


def _deposit(ledger, user, account, amount="50.00", **kwargs):
    return ledger.create_transaction(
        user_id=user.id,
        account_id=account.id,
        amount=amount,
        direction=kwargs.pop("direction", "deposit"),
        date=kwargs.pop("date", "2024-03-01"),
        **kwargs,
    )


def test_deposit_then_amount_edit_applies_net_delta(ledger, user, account_factory, balance_of):
    account = account_factory(balance="1000.00")

    txn = _deposit(ledger, user, account, amount="50")
    assert txn.amount == Decimal("50.00")
    assert txn.kind == "income"
    assert balance_of(account.id) == Decimal("1050.00")

    updated = ledger.update_transaction(
        user_id=user.id, transaction_id=txn.id, patch=TransactionPatch(amount="80")
    )
    assert updated.amount == Decimal("80.00")
    assert balance_of(account.id) == Decimal("1080.00")


def test_withdrawal_is_stored_negative(ledger, user, account_factory, balance_of):
    account = account_factory(balance="100.00")

    txn = _deposit(ledger, user, account, amount="-30.00", direction="withdrawal")

    assert txn.amount == Decimal("-30.00")
    assert txn.kind == "expense"
    assert balance_of(account.id) == Decimal("70.00")


def test_create_then_delete_restores_balance(ledger, user, account_factory, balance_of, row_counts):
    account = account_factory(balance="12.34")

    txn = _deposit(ledger, user, account, amount="0.1", direction="withdrawal")
    ledger.delete_transaction(user_id=user.id, transaction_id=txn.id)

    assert balance_of(account.id) == Decimal("12.34")
    assert row_counts() == (0, 0)


@pytest.mark.parametrize("amount", [0, "0", "0.00", "0.001"])
def test_zero_amount_is_rejected(ledger, user, account_factory, amount, row_counts):
    account = account_factory()

    with pytest.raises(ValidationError):
        _deposit(ledger, user, account, amount=amount)

    assert row_counts() == (0, 0)


@pytest.mark.parametrize("amount", ["abc", None, True, "NaN"])
def test_malformed_amount_is_rejected(ledger, user, account_factory, amount):
    account = account_factory()
    with pytest.raises(ValidationError):
        _deposit(ledger, user, account, amount=amount)


@pytest.mark.parametrize("raw", ["2024-02-30", "yesterday", "", None])
def test_invalid_date_is_rejected(ledger, user, account_factory, raw):
    account = account_factory()
    with pytest.raises(ValidationError):
        _deposit(ledger, user, account, date=raw)


def test_unknown_direction_is_rejected(ledger, user, account_factory):
    account = account_factory()
    with pytest.raises(ValidationError):
        _deposit(ledger, user, account, direction="refund")


def test_references_must_resolve_to_owner(ledger, user, other_user, account_factory, categories):
    account = account_factory()
    foreign_account = account_factory(owner=other_user)
    foreign_category = categories.create_category(user_id=other_user.id, name="Theirs")

    with pytest.raises(NotFound):
        _deposit(ledger, user, foreign_account)
    with pytest.raises(NotFound):
        _deposit(ledger, user, account, category_id=foreign_category.id)
    with pytest.raises(NotFound):
        _deposit(ledger, user, account, payee_id=12345)


def test_direction_change_flips_sign_and_balance(ledger, user, account_factory, balance_of):
    account = account_factory(balance="100.00")
    txn = _deposit(ledger, user, account, amount="20.00")

    updated = ledger.update_transaction(
        user_id=user.id, transaction_id=txn.id, patch=TransactionPatch(direction="withdrawal")
    )

    assert updated.amount == Decimal("-20.00")
    assert updated.kind == "expense"
    assert balance_of(account.id) == Decimal("80.00")


def test_amount_and_direction_change_together_apply_once(ledger, user, account_factory, balance_of, ledger_sum):
    account = account_factory(balance="100.00")
    txn = _deposit(ledger, user, account, amount="20.00")

    ledger.update_transaction(
        user_id=user.id,
        transaction_id=txn.id,
        patch=TransactionPatch(amount="35.00", direction="withdrawal"),
    )

    assert balance_of(account.id) == Decimal("65.00")
    assert balance_of(account.id) == ledger_sum(account.id)


def test_account_reassignment_moves_the_amount(ledger, user, account_factory, balance_of, ledger_sum):
    old = account_factory(balance="100.00")
    new = account_factory(balance="10.00")
    txn = _deposit(ledger, user, old, amount="25.00")

    ledger.update_transaction(
        user_id=user.id,
        transaction_id=txn.id,
        patch=TransactionPatch(account_id=new.id, amount="30.00"),
    )

    assert balance_of(old.id) == Decimal("100.00")
    assert balance_of(new.id) == Decimal("40.00")
    assert balance_of(old.id) == ledger_sum(old.id)
    assert balance_of(new.id) == ledger_sum(new.id)


def test_metadata_only_update_leaves_balance(ledger, user, account_factory, balance_of, categories):
    account = account_factory(balance="5.00")
    category = categories.create_category(user_id=user.id, name="Food")
    txn = _deposit(ledger, user, account, amount="1.00", description="old")

    updated = ledger.update_transaction(
        user_id=user.id,
        transaction_id=txn.id,
        patch=TransactionPatch(description="new", category_id=category.id, date=date(2024, 4, 2)),
    )

    assert updated.description == "new"
    assert updated.category_id == category.id
    assert updated.occurred_on == date(2024, 4, 2)
    assert balance_of(account.id) == Decimal("6.00")


def test_update_with_bad_account_changes_nothing(ledger, user, account_factory, balance_of):
    account = account_factory(balance="5.00")
    txn = _deposit(ledger, user, account, amount="1.00")

    with pytest.raises(NotFound):
        ledger.update_transaction(
            user_id=user.id,
            transaction_id=txn.id,
            patch=TransactionPatch(account_id=9999, amount="3.00"),
        )

    assert balance_of(account.id) == Decimal("6.00")
    assert ledger.get_transaction(user_id=user.id, transaction_id=txn.id).transaction.amount == Decimal("1.00")


def test_clearing_account_is_rejected(ledger, user, account_factory):
    account = account_factory()
    txn = _deposit(ledger, user, account)
    with pytest.raises(ValidationError):
        ledger.update_transaction(
            user_id=user.id, transaction_id=txn.id, patch=TransactionPatch(account_id=None)
        )


def test_missing_transaction_raises_not_found(ledger, user, other_user, account_factory):
    account = account_factory()
    txn = _deposit(ledger, user, account)

    with pytest.raises(NotFound):
        ledger.update_transaction(user_id=user.id, transaction_id=9999, patch=TransactionPatch(amount=1))
    with pytest.raises(NotFound):
        ledger.delete_transaction(user_id=other_user.id, transaction_id=txn.id)
    with pytest.raises(NotFound):
        ledger.get_transaction(user_id=other_user.id, transaction_id=txn.id)


def test_transfer_halves_cannot_be_edited(ledger, transfers, user, account_factory, balance_of):
    a = account_factory(balance="100.00")
    b = account_factory(balance="0.00")
    result = transfers.create_transfer(
        user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount="40", date="2024-05-01"
    )

    for txn in (result.outgoing, result.incoming):
        with pytest.raises(InvalidOperation):
            ledger.update_transaction(
                user_id=user.id, transaction_id=txn.id, patch=TransactionPatch(description="edited")
            )

    assert balance_of(a.id) == Decimal("60.00")
    assert balance_of(b.id) == Decimal("40.00")


def test_deleting_a_transfer_half_removes_the_transfer(ledger, transfers, user, account_factory, balance_of, row_counts):
    a = account_factory(balance="100.00")
    b = account_factory(balance="0.00")
    result = transfers.create_transfer(
        user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount="40", date="2024-05-01"
    )

    ledger.delete_transaction(user_id=user.id, transaction_id=result.incoming.id)

    assert row_counts() == (0, 0)
    assert balance_of(a.id) == Decimal("100.00")
    assert balance_of(b.id) == Decimal("0.00")


def test_list_transactions_marks_transfers(ledger, transfers, user, account_factory):
    a = account_factory(balance="100.00")
    b = account_factory()
    plain = _deposit(ledger, user, a, amount="5.00", date="2024-01-01")
    result = transfers.create_transfer(
        user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount="10", date="2024-02-01"
    )

    page = ledger.list_transactions(user_id=user.id, page=1, per_page=10)

    assert page.total == 3
    assert page.pages == 1
    by_id = {entry.transaction.id: entry for entry in page.entries}
    assert not by_id[plain.id].is_transfer
    assert by_id[result.outgoing.id].counterpart_account_id == b.id
    assert by_id[result.incoming.id].counterpart_transaction_id == result.outgoing.id
    assert page.entries[-1].transaction.id == plain.id


def test_list_transactions_paginates(ledger, user, account_factory):
    account = account_factory()
    for day in range(1, 6):
        _deposit(ledger, user, account, amount="1.00", date=f"2024-01-0{day}")

    page = ledger.list_transactions(user_id=user.id, page=2, per_page=2)

    assert page.total == 5
    assert page.pages == 3
    assert [e.transaction.occurred_on.day for e in page.entries] == [3, 2]


def test_repeated_reads_are_identical(ledger, user, account_factory):
    account = account_factory()
    txn = _deposit(ledger, user, account)

    first = ledger.get_transaction(user_id=user.id, transaction_id=txn.id)
    second = ledger.get_transaction(user_id=user.id, transaction_id=txn.id)

    assert first.transaction.model_dump() == second.transaction.model_dump()


def test_invariant_after_mixed_operations(ledger, transfers, user, account_factory, balance_of, ledger_sum):
    a = account_factory(balance="250.00")
    b = account_factory(balance="-20.00")
    t1 = _deposit(ledger, user, a, amount="19.99")
    t2 = _deposit(ledger, user, b, amount="5.01", direction="withdrawal")
    tr = transfers.create_transfer(
        user_id=user.id, from_account_id=b.id, to_account_id=a.id, amount="7.77", date="2024-06-01"
    )
    ledger.update_transaction(user_id=user.id, transaction_id=t1.id, patch=TransactionPatch(account_id=b.id))
    ledger.update_transaction(user_id=user.id, transaction_id=t2.id, patch=TransactionPatch(amount="6"))
    transfers.create_transfer(
        user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount="1.00", date="2024-06-02"
    )
    ledger.delete_transaction(user_id=user.id, transaction_id=tr.outgoing.id)

    for account in (a, b):
        assert balance_of(account.id) == ledger_sum(account.id)
    assert balance_of(a.id) == Decimal("249.00")
    assert balance_of(b.id) == Decimal("-5.01")


@pytest.mark.parametrize("amount", ["1e30", "100000000000000000000", "1000000000000"])
def test_oversized_amount_is_rejected_and_balance_untouched(amount, ledger, user, account_factory, balance_of, row_counts):
    account = account_factory(balance="0.01")

    with pytest.raises(ValidationError) as excinfo:
        _deposit(ledger, user, account, amount=amount)

    assert excinfo.value.field == "amount"
    assert balance_of(account.id) == Decimal("0.01")
    assert row_counts() == (0, 0)


def test_largest_amount_round_trips(ledger, user, account_factory, balance_of):
    account = account_factory(balance="0.01")

    txn = _deposit(ledger, user, account, amount="999999999999.98")
    ledger.delete_transaction(user_id=user.id, transaction_id=txn.id)

    assert balance_of(account.id) == Decimal("0.01")


def test_string_ids_are_coerced(ledger, user, account_factory, categories, balance_of):
    old = account_factory(balance="10.00")
    new = account_factory(balance="10.00")
    category = categories.create_category(user_id=user.id, name="Misc")
    txn = _deposit(ledger, user, old, amount="1.00")

    ledger.update_transaction(
        user_id=user.id,
        transaction_id=txn.id,
        patch=TransactionPatch(account_id=str(old.id), category_id=str(category.id)),
    )
    assert balance_of(old.id) == Decimal("11.00")

    updated = ledger.update_transaction(
        user_id=user.id, transaction_id=txn.id, patch=TransactionPatch(account_id=str(new.id))
    )
    assert updated.account_id == new.id
    assert balance_of(old.id) == Decimal("10.00")
    assert balance_of(new.id) == Decimal("11.00")


@pytest.mark.parametrize("field", ["account_id", "category_id", "payee_id"])
def test_malformed_ids_are_rejected(ledger, user, account_factory, field):
    account = account_factory()
    txn = _deposit(ledger, user, account)

    with pytest.raises(ValidationError) as excinfo:
        ledger.update_transaction(
            user_id=user.id, transaction_id=txn.id, patch=TransactionPatch(**{field: [1]})
        )
    assert excinfo.value.field == field

    kwargs = {"account_id": account.id, field: "abc"}
    with pytest.raises(ValidationError):
        ledger.create_transaction(
            user_id=user.id, amount="1", direction="deposit", date="2024-01-01", **kwargs
        )


def test_empty_patch_is_rejected(ledger, user, account_factory):
    account = account_factory()
    txn = _deposit(ledger, user, account)

    with pytest.raises(ValidationError):
        ledger.update_transaction(user_id=user.id, transaction_id=txn.id, patch=TransactionPatch())
