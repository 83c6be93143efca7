from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from purchase_ledger.billing import (
    BillingPeriodOverflowError,
    combine_items,
    create_custom_period,
    create_month_period,
    cycle_label,
    daily_bills,
    format_bill,
    generate_billing_summary,
    generate_periods,
    get_available_months,
    period_for_date,
)
from purchase_ledger.models import BillingPeriod, BillItem, Transaction

D = Decimal


def _tx(when: datetime, item: str, amount: str) -> Transaction:
    return Transaction(date=when, sender="monir", item=item, amount=Decimal(amount))


def _bounds(periods: list[BillingPeriod]) -> list[tuple[date, date]]:
    return [(p.start_date, p.end_date) for p in periods]


# ---- Periods -----------------------------------------------------------------


def test_periods_for_a_quarter():
    periods = generate_periods(date(2024, 1, 1), date(2024, 3, 31))
    assert _bounds(periods) == [
        (date(2023, 12, 15), date(2024, 1, 14)),
        (date(2024, 1, 15), date(2024, 2, 14)),
        (date(2024, 2, 15), date(2024, 3, 14)),
        (date(2024, 3, 15), date(2024, 3, 31)),
    ]
    assert {p.type for p in periods} == {"month"}


def test_periods_are_contiguous_and_cover_the_range():
    periods = generate_periods(datetime(2023, 6, 3, 10, 0), datetime(2024, 8, 29, 23, 59))
    for prev, nxt in zip(periods, periods[1:], strict=False):
        assert (nxt.start_date - prev.end_date).days == 1
    assert periods[0].start_date <= date(2023, 6, 3)
    assert periods[-1].end_date == date(2024, 8, 29)


def test_periods_roll_over_the_year():
    periods = generate_periods(date(2024, 12, 20), date(2025, 1, 20))
    assert _bounds(periods) == [
        (date(2024, 12, 15), date(2025, 1, 14)),
        (date(2025, 1, 15), date(2025, 1, 20)),
    ]


def test_single_day_on_a_cycle_boundary():
    assert _bounds(generate_periods(date(2024, 1, 15), date(2024, 1, 15))) == [
        (date(2024, 1, 15), date(2024, 1, 15))
    ]


def test_start_after_end_is_rejected():
    with pytest.raises(ValueError):
        generate_periods(date(2024, 3, 1), date(2024, 1, 1))


def test_runaway_ranges_are_capped():
    with pytest.raises(BillingPeriodOverflowError):
        generate_periods(date(1900, 1, 1), date(2100, 1, 1))


def test_cycle_label_is_the_following_month():
    assert cycle_label(date(2024, 1, 15)) == ("February", 2024, 2)
    assert cycle_label(date(2024, 12, 15)) == ("January", 2025, 1)


def test_create_month_period():
    period = create_month_period(2024, 1)
    assert (period.start_date, period.end_date) == (date(2023, 12, 15), date(2024, 1, 14))
    assert period.type == "month"
    with pytest.raises(ValueError):
        create_month_period(2024, 13)


def test_period_for_date():
    assert period_for_date(date(2024, 1, 14)) == create_month_period(2024, 1)
    assert period_for_date(datetime(2024, 1, 15, 8, 0)) == create_month_period(2024, 2)


def test_custom_period_validates_order():
    period = create_custom_period(datetime(2024, 1, 20, 9, 0), date(2024, 2, 10))
    assert period.contains(datetime(2024, 2, 10, 23, 59))
    assert not period.contains(date(2024, 1, 19))
    with pytest.raises(ValueError):
        create_custom_period(date(2024, 2, 10), date(2024, 1, 20))


# ---- Aggregation -------------------------------------------------------------


def test_combine_items_aggregates_by_name():
    txs = [
        _tx(datetime(2024, 1, 3, 9, 0), "bread", "50"),
        _tx(datetime(2024, 1, 3, 9, 0), "milk", "100"),
        _tx(datetime(2024, 1, 4, 9, 0), "Milk", "100"),
        _tx(datetime(2024, 1, 5, 9, 0), "milk ", "100"),
    ]
    assert combine_items(txs) == [
        BillItem("milk", 3, D("100.00"), D("300.00")),
        BillItem("bread", 1, D("50.00"), D("50.00")),
    ]


def test_combine_items_rounds_the_average_half_up():
    txs = [
        _tx(datetime(2024, 1, d, 9, 0), "eggs", a) for d, a in ((3, "10"), (4, "10"), (5, "11"))
    ]
    (item,) = combine_items(txs)
    assert item.unit_price == D("10.33")
    assert item.total_price == D("31.00")


def test_daily_bills_are_sorted_by_day():
    txs = [
        _tx(datetime(2024, 1, 4, 9, 0), "milk", "100"),
        _tx(datetime(2024, 1, 3, 21, 0), "bread", "50"),
        _tx(datetime(2024, 1, 3, 8, 0), "eggs", "45.5"),
    ]
    bills = daily_bills(txs)
    assert [b.date for b in bills] == [date(2024, 1, 3), date(2024, 1, 4)]
    assert bills[0].total_amount == D("95.50")


def test_available_months():
    txs = [
        _tx(datetime(2024, 2, 20, 9, 0), "milk", "100"),
        _tx(datetime(2024, 1, 1, 9, 0), "milk", "100"),
        _tx(datetime(2024, 1, 20, 9, 0), "milk", "100"),
    ]
    months = get_available_months(txs)
    assert [(m.label, m.year, m.month) for m in months] == [
        ("January", 2024, 1),
        ("February", 2024, 2),
        ("March", 2024, 3),
    ]
    assert months[-1].end_date == date(2024, 2, 20)
    assert get_available_months([]) == []


def test_billing_summary_for_a_custom_range():
    txs = [
        _tx(datetime(2024, 1, 1, 9, 0), "milk", "100"),
        _tx(datetime(2024, 1, 20, 9, 0), "milk", "100"),
        _tx(datetime(2024, 2, 5, 18, 30), "bread", "50"),
        _tx(datetime(2024, 2, 20, 9, 0), "milk", "100"),
    ]
    period = create_custom_period(date(2024, 1, 20), date(2024, 2, 10))
    summary = generate_billing_summary(txs, period)
    assert summary.grand_total == D("150.00")
    assert [b.date for b in summary.daily_bills] == [date(2024, 1, 20), date(2024, 2, 5)]
    (bill,) = summary.monthly_bills
    assert (bill.label, bill.year, bill.month) == ("February", 2024, 2)
    assert (bill.start_date, bill.end_date) == (date(2024, 1, 15), date(2024, 2, 10))
    assert bill.total_amount == D("150.00")
    assert [i.item for i in bill.item_summary] == ["milk", "bread"]


def test_cycles_without_purchases_are_omitted():
    txs = [
        _tx(datetime(2024, 1, 3, 9, 0), "milk", "100"),
        _tx(datetime(2024, 3, 20, 9, 0), "milk", "100"),
    ]
    period = create_custom_period(date(2024, 1, 1), date(2024, 3, 31))
    summary = generate_billing_summary(txs, period)
    assert [b.label for b in summary.monthly_bills] == ["January", "April"]


# ---- Rendering ---------------------------------------------------------------


def test_format_month_bill():
    txs = [
        _tx(datetime(2024, 1, 20, 9, 0), "milk", "100"),
        _tx(datetime(2024, 1, 21, 9, 0), "milk", "1200"),
    ]
    summary = generate_billing_summary(txs, create_month_period(2024, 2))
    text = format_bill(summary.monthly_bills[0])
    lines = text.splitlines()
    assert lines[0] == "February 2024 (2024-01-15 to 2024-02-14)"
    assert lines[1] == "-" * len(lines[0])
    assert "x2" in lines[2]
    assert lines[2].endswith("৳1,300.00")
    assert lines[-1].startswith("Total")
    assert lines[-1].endswith("৳1,300.00")


def test_format_day_bill():
    (bill,) = daily_bills([_tx(datetime(2024, 1, 20, 9, 0), "bread", "50")])
    text = format_bill(bill)
    assert text.splitlines()[0] == "20 January 2024"
    assert "৳50.00" in text
