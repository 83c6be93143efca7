from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from purchase_ledger.analytics import (
    ItemCount,
    MonthlyTotal,
    frequency_split,
    item_distribution,
    monthly_spending,
    statistics,
)
from purchase_ledger.filters import FilterConfig
from purchase_ledger.models import Transaction

D = Decimal


def _tx(day: tuple[int, int], item: str, amount: str, sender: str = "monir") -> Transaction:
    month, dom = day
    return Transaction(
        date=datetime(2024, month, dom, 9, 0), sender=sender, item=item, amount=Decimal(amount)
    )


LEDGER = [
    _tx((1, 3), "milk", "100"),
    _tx((1, 5), "milk", "100"),
    _tx((1, 14), "bread", "50"),
    _tx((1, 15), "eggs", "120"),
    _tx((1, 20), "milk", "110"),
    _tx((2, 2), "milk", "100"),
    _tx((2, 16), "bread", "55", sender="rahim"),
]


def test_item_distribution_orders_by_count_then_spend():
    assert item_distribution(LEDGER) == [
        ItemCount("milk", 4, D("410.00")),
        ItemCount("bread", 2, D("105.00")),
        ItemCount("eggs", 1, D("120.00")),
    ]


def test_monthly_spending_follows_billing_cycles():
    assert monthly_spending(LEDGER) == [
        MonthlyTotal("January", 2024, 1, D("250.00"), 3),
        MonthlyTotal("February", 2024, 2, D("330.00"), 3),
        MonthlyTotal("March", 2024, 3, D("55.00"), 1),
    ]


def test_statistics():
    stats = statistics(LEDGER, top=2)
    assert stats.transaction_count == 7
    assert stats.total_amount == D("635.00")
    assert stats.average_amount == D("90.71")
    assert stats.unique_items == 3
    assert stats.unique_senders == 2
    assert stats.first_date == datetime(2024, 1, 3, 9, 0)
    assert stats.last_date == datetime(2024, 2, 16, 9, 0)
    assert [c.item for c in stats.top_items] == ["milk", "bread"]


def test_statistics_with_filters():
    stats = statistics(LEDGER, FilterConfig(senders=("rahim",)))
    assert stats.transaction_count == 1
    assert stats.total_amount == D("55.00")


def test_statistics_on_empty_input():
    stats = statistics([])
    assert stats.transaction_count == 0
    assert stats.average_amount == D("0.00")
    assert stats.first_date is None
    assert stats.top_items == []


def test_frequency_split():
    split = frequency_split(LEDGER)
    assert [c.item for c in split.frequent] == ["milk"]
    assert [c.item for c in split.non_frequent] == ["bread", "eggs"]
    assert split.threshold == 3
