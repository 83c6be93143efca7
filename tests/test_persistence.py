from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest
from ledger_db.client import session_scope
from pydantic import ValidationError

from purchase_ledger.models import Transaction
from purchase_ledger.persistence import load_snapshot, merge_into_store, save_snapshot
from tests.helpers.db import bootstrap_sqlite_db

T0 = datetime(2024, 1, 3, 21, 35)


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "ledger.db")


def _tx(when: datetime, item: str, amount: str, text: str | None = None) -> Transaction:
    return Transaction(
        date=when, sender="monir", item=item, amount=Decimal(amount), original_message=text
    )


def test_snapshot_round_trip(db_url: str):
    txs = [
        _tx(T0 + timedelta(days=1), "bread", "45.50"),
        _tx(T0, "milk", "100", text="dudh 100"),
    ]
    with session_scope(database_url=db_url) as session:
        assert save_snapshot(session, txs) == 2

    with session_scope(database_url=db_url) as session:
        loaded = load_snapshot(session)

    # Oldest first.
    assert [t.id for t in loaded] == [txs[1].id, txs[0].id]
    assert [t.identity() for t in loaded] == [txs[1].identity(), txs[0].identity()]
    assert loaded[0].original_message == "dudh 100"
    assert loaded[1].original_message is None


def test_snapshot_replaces_previous_contents(db_url: str):
    with session_scope(database_url=db_url) as session:
        save_snapshot(session, [_tx(T0, "milk", "100")])
    with session_scope(database_url=db_url) as session:
        save_snapshot(session, [_tx(T0, "eggs", "45")])
    with session_scope(database_url=db_url) as session:
        assert [t.item for t in load_snapshot(session)] == ["eggs"]


def test_merge_into_store_skips_already_stored_purchases(db_url: str):
    first = [_tx(T0, "milk", "100", "milk 100"), _tx(T0, "bread", "50", "bread 50")]
    with session_scope(database_url=db_url) as session:
        assert merge_into_store(session, first) == (2, 0)

    # A re-export of the same chat parses into new records for the same purchases.
    second = [
        _tx(T0, "milk", "100", "milk 100"),
        _tx(T0 + timedelta(days=3), "milk", "100", "milk 100"),
    ]
    with session_scope(database_url=db_url) as session:
        assert merge_into_store(session, second) == (1, 1)

    with session_scope(database_url=db_url) as session:
        stored = load_snapshot(session)
    assert sorted((t.date, t.item) for t in stored) == [
        (T0, "bread"),
        (T0, "milk"),
        (T0 + timedelta(days=3), "milk"),
    ]


def test_stored_amounts_come_back_unchanged(db_url: str):
    txs = [
        _tx(T0, "milk", "45.55"),
        _tx(T0 + timedelta(minutes=1), "eggs", "0.01"),
        _tx(T0 + timedelta(minutes=2), "rice", "45.5000"),
    ]
    with session_scope(database_url=db_url) as session:
        save_snapshot(session, txs)
    with session_scope(database_url=db_url) as session:
        loaded = load_snapshot(session)
    assert [(t.item, t.amount) for t in loaded] == [
        ("milk", Decimal("45.55")),
        ("eggs", Decimal("0.01")),
        ("rice", Decimal("45.5")),
    ]


@pytest.mark.parametrize("amount", ["45.555", "0.004"])
def test_amounts_finer_than_a_cent_are_rejected(amount: str):
    with pytest.raises(ValidationError, match="2 decimal places"):
        _tx(T0, "milk", amount)
