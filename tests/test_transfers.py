"""Tests for the transfer coordinator."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlmodel import select

from tallybook.errors import ConsistencyFault, NotFound, ValidationError
from tallybook.models import Transaction, TransferLink
from tallybook.services import transfers as transfers_module
from tallybook.services.transfers import links_by_transaction


@pytest.fixture
def pair(account_factory):
    return account_factory(name="A", balance="1000.00"), account_factory(name="B", balance="500.00")


def test_create_and_delete_transfer_round_trip(transfers, user, pair, balance_of, row_counts):
    a, b = pair

    result = transfers.create_transfer(
        user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount="200", date="2024-03-15"
    )

    assert balance_of(a.id) == Decimal("800.00")
    assert balance_of(b.id) == Decimal("700.00")
    assert row_counts() == (2, 1)
    assert result.outgoing.amount == Decimal("-200.00")
    assert result.outgoing.kind == "expense"
    assert result.outgoing.account_id == a.id
    assert result.incoming.amount == Decimal("200.00")
    assert result.incoming.kind == "income"
    assert result.incoming.account_id == b.id
    assert result.link.from_transaction_id == result.outgoing.id
    assert result.link.to_transaction_id == result.incoming.id
    assert result.link.amount == Decimal("200.00")
    assert result.link.occurred_on == date(2024, 3, 15)

    transfers.delete_transfer(user_id=user.id, transaction_id=result.outgoing.id)

    assert balance_of(a.id) == Decimal("1000.00")
    assert balance_of(b.id) == Decimal("500.00")
    assert row_counts() == (0, 0)


def test_delete_by_incoming_side(transfers, user, pair, balance_of, row_counts):
    a, b = pair
    result = transfers.create_transfer(
        user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount="12.50", date="2024-03-15"
    )

    transfers.delete_transfer(user_id=user.id, transaction_id=result.incoming.id)

    assert row_counts() == (0, 0)
    assert balance_of(a.id) == Decimal("1000.00")
    assert balance_of(b.id) == Decimal("500.00")


def test_default_descriptions(transfers, user, pair):
    a, b = pair
    result = transfers.create_transfer(
        user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount="1", date="2024-03-15"
    )
    assert result.outgoing.description == "Transfer out"
    assert result.incoming.description == "Transfer in"
    assert result.link.description is None

    named = transfers.create_transfer(
        user_id=user.id,
        from_account_id=a.id,
        to_account_id=b.id,
        amount="1",
        date="2024-03-15",
        description="Rent share",
        notes="March",
    )
    assert named.outgoing.description == named.incoming.description == "Rent share"
    assert named.outgoing.notes == named.incoming.notes == "March"


def test_same_account_is_rejected(transfers, user, pair, row_counts):
    a, _ = pair
    with pytest.raises(ValidationError) as excinfo:
        transfers.create_transfer(
            user_id=user.id, from_account_id=a.id, to_account_id=a.id, amount="5", date="2024-03-15"
        )
    assert excinfo.value.field == "to_account_id"
    assert row_counts() == (0, 0)


@pytest.mark.parametrize("amount", ["0", "-5", 0, "0.004"])
def test_non_positive_magnitude_is_rejected(transfers, user, pair, amount, balance_of):
    a, b = pair
    with pytest.raises(ValidationError):
        transfers.create_transfer(
            user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount=amount, date="2024-03-15"
        )
    assert balance_of(a.id) == Decimal("1000.00")


def test_accounts_must_belong_to_owner(transfers, user, other_user, pair, account_factory, row_counts):
    a, _ = pair
    theirs = account_factory(owner=other_user)

    with pytest.raises(NotFound):
        transfers.create_transfer(
            user_id=user.id, from_account_id=a.id, to_account_id=theirs.id, amount="5", date="2024-03-15"
        )
    with pytest.raises(NotFound):
        transfers.create_transfer(
            user_id=user.id, from_account_id=9998, to_account_id=9999, amount="5", date="2024-03-15"
        )
    assert row_counts() == (0, 0)


def test_delete_requires_a_transfer(transfers, ledger, user, pair, other_user):
    a, b = pair
    plain = ledger.create_transaction(
        user_id=user.id, account_id=a.id, amount="3", direction="deposit", date="2024-03-15"
    )
    result = transfers.create_transfer(
        user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount="5", date="2024-03-15"
    )

    with pytest.raises(NotFound):
        transfers.delete_transfer(user_id=user.id, transaction_id=plain.id)
    with pytest.raises(NotFound):
        transfers.delete_transfer(user_id=other_user.id, transaction_id=result.outgoing.id)


def test_failure_mid_create_rolls_back_everything(transfers, user, pair, balance_of, row_counts, monkeypatch):
    a, b = pair
    real_adjust = transfers_module.adjust_balance
    calls = []

    def failing_adjust(session, *, user_id, account_id, delta):
        calls.append(account_id)
        if account_id == b.id:
            raise ConsistencyFault("simulated")
        real_adjust(session, user_id=user_id, account_id=account_id, delta=delta)

    monkeypatch.setattr(transfers_module, "adjust_balance", failing_adjust)

    with pytest.raises(ConsistencyFault):
        transfers.create_transfer(
            user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount="100", date="2024-03-15"
        )

    assert calls == [a.id, b.id]
    assert row_counts() == (0, 0)
    assert balance_of(a.id) == Decimal("1000.00")
    assert balance_of(b.id) == Decimal("500.00")


def test_failure_mid_delete_rolls_back_everything(transfers, user, pair, balance_of, row_counts, monkeypatch):
    a, b = pair
    result = transfers.create_transfer(
        user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount="100", date="2024-03-15"
    )
    real_adjust = transfers_module.adjust_balance

    def failing_adjust(session, *, user_id, account_id, delta):
        if account_id == a.id:
            raise ConsistencyFault("simulated")
        real_adjust(session, user_id=user_id, account_id=account_id, delta=delta)

    monkeypatch.setattr(transfers_module, "adjust_balance", failing_adjust)

    with pytest.raises(ConsistencyFault):
        transfers.delete_transfer(user_id=user.id, transaction_id=result.outgoing.id)

    assert row_counts() == (2, 1)
    assert balance_of(a.id) == Decimal("900.00")
    assert balance_of(b.id) == Decimal("600.00")


def test_list_and_lookup(transfers, user, pair):
    a, b = pair
    first = transfers.create_transfer(
        user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount="1", date="2024-01-01"
    )
    second = transfers.create_transfer(
        user_id=user.id, from_account_id=b.id, to_account_id=a.id, amount="2", date="2024-02-01"
    )

    assert [link.id for link in transfers.list_transfers(user_id=user.id)] == [second.link.id, first.link.id]
    assert transfers.get_transfer(user_id=user.id, transaction_id=first.incoming.id).id == first.link.id


def test_links_by_transaction_indexes_both_sides(transfers, user, pair, session_factory):
    a, b = pair
    result = transfers.create_transfer(
        user_id=user.id, from_account_id=a.id, to_account_id=b.id, amount="1", date="2024-01-01"
    )
    with session_factory() as session:
        links = session.exec(select(TransferLink)).all()
        txn_ids = {t.id for t in session.exec(select(Transaction)).all()}

    index = links_by_transaction(links)

    assert set(index) == txn_ids == {result.outgoing.id, result.incoming.id}


def test_same_account_as_mixed_id_types_is_rejected(transfers, user, pair, row_counts):
    a, _ = pair
    with pytest.raises(ValidationError) as excinfo:
        transfers.create_transfer(
            user_id=user.id, from_account_id=a.id, to_account_id=str(a.id), amount="5", date="2024-03-15"
        )
    assert excinfo.value.field == "to_account_id"
    assert row_counts() == (0, 0)
