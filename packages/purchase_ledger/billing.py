"""Billing cycles running from the 15th of one month to the 14th of the next.

A cycle that starts on the 15th of month ``M`` is labeled with month ``M + 1``
(the month it mostly pays for), whether or not it was clipped to the caller's
range. Only the last generated cycle is clipped; the first one always starts on
a 15th, so the cycles of a range are the same cycles its months would show on
their own.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from .logging_setup import get_logger
from .models import (
    AvailableMonth,
    BillingPeriod,
    BillingSummary,
    BillItem,
    DayBill,
    MonthBill,
    Transaction,
)

_logger = get_logger("purchase_ledger.billing")

CYCLE_START_DAY = 15
CYCLE_END_DAY = 14
MAX_PERIODS = 1000
_CENT = Decimal("0.01")
CURRENCY_SYMBOL = "৳"


class BillingPeriodOverflowError(RuntimeError):
    """Raised when period generation exceeds :data:`MAX_PERIODS` iterations."""


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def _next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def _previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def cycle_start(day: date | datetime) -> date:
    """The 15th that opens the cycle containing ``day``."""

    d = _as_date(day)
    if d.day >= CYCLE_START_DAY:
        return date(d.year, d.month, CYCLE_START_DAY)
    y, m = _previous_month(d.year, d.month)
    return date(y, m, CYCLE_START_DAY)


def cycle_label(start: date) -> tuple[str, int, int]:
    """Return ``(label, year, month)`` for the cycle opening on ``start``."""

    y, m = _next_month(start.year, start.month)
    return calendar.month_name[m], y, m


def quantize(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------------
# Periods
# ---------------------------------------------------------------------------


def generate_periods(start: date | datetime, end: date | datetime) -> list[BillingPeriod]:
    """Partition ``[start, end]`` into consecutive 15th-to-14th cycles.

    The first period starts on the 15th on or before ``start``; the last one
    ends on ``end``. Periods are contiguous and never overlap.

    Raises ``ValueError`` when ``start > end`` and
    :class:`BillingPeriodOverflowError` past :data:`MAX_PERIODS` cycles.
    """

    start_d, end_d = _as_date(start), _as_date(end)
    if start_d > end_d:
        raise ValueError(f"generate_periods: start {start_d} is after end {end_d}")

    periods: list[BillingPeriod] = []
    current = cycle_start(start_d)
    iterations = 0
    while current <= end_d:
        iterations += 1
        if iterations > MAX_PERIODS:
            _logger.error(
                "billing:overflow start=%s end=%s cap=%d", start_d, end_d, MAX_PERIODS
            )
            raise BillingPeriodOverflowError(
                f"more than {MAX_PERIODS} billing periods between {start_d} and {end_d}"
            )
        y, m = _next_month(current.year, current.month)
        period_end = min(date(y, m, CYCLE_END_DAY), end_d)
        periods.append(BillingPeriod(current, period_end, "month"))
        current = date(y, m, CYCLE_START_DAY)

    _logger.debug("billing:periods start=%s end=%s count=%d", start_d, end_d, len(periods))
    return periods


def create_month_period(year: int, month: int) -> BillingPeriod:
    """The full cycle labeled ``month``/``year`` (15th of the previous month to the 14th)."""

    if not 1 <= month <= 12:
        raise ValueError(f"month must be within 1..12, got {month}")
    py, pm = _previous_month(year, month)
    return BillingPeriod(
        date(py, pm, CYCLE_START_DAY), date(year, month, CYCLE_END_DAY), "month"
    )


def create_custom_period(start: date | datetime, end: date | datetime) -> BillingPeriod:
    return BillingPeriod(_as_date(start), _as_date(end), "custom")


def period_for_date(day: date | datetime) -> BillingPeriod:
    """The full cycle that contains ``day``."""

    _, y, m = cycle_label(cycle_start(day))
    return create_month_period(y, m)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def combine_items(transactions: Iterable[Transaction]) -> list[BillItem]:
    """Aggregate transactions by lowercased, trimmed item name.

    ``unit_price`` is the average price paid. Sorted by ``total_price``
    descending; ties keep first-seen order.
    """

    counts: dict[str, int] = {}
    totals: dict[str, Decimal] = {}
    for tx in transactions:
        key = tx.item.strip().lower()
        counts[key] = counts.get(key, 0) + 1
        totals[key] = totals.get(key, Decimal("0")) + tx.amount

    items = [
        BillItem(
            item=key,
            quantity=qty,
            unit_price=quantize(totals[key] / qty),
            total_price=quantize(totals[key]),
        )
        for key, qty in counts.items()
    ]
    items.sort(key=lambda b: b.total_price, reverse=True)
    return items


def _total(transactions: Iterable[Transaction]) -> Decimal:
    return quantize(sum((tx.amount for tx in transactions), Decimal("0")))


def daily_bills(transactions: Sequence[Transaction]) -> list[DayBill]:
    """One bill per calendar day that has transactions, oldest first."""

    by_day: dict[date, list[Transaction]] = {}
    for tx in sorted(transactions, key=lambda t: t.date):
        by_day.setdefault(tx.date.date(), []).append(tx)
    return [
        DayBill(date=day, items=combine_items(txs), total_amount=_total(txs))
        for day, txs in by_day.items()
    ]


def monthly_bills(
    transactions: Sequence[Transaction], periods: Sequence[BillingPeriod]
) -> list[MonthBill]:
    """One bill per cycle in ``periods``; cycles without transactions are omitted."""

    bills: list[MonthBill] = []
    for period in periods:
        txs = [tx for tx in transactions if period.contains(tx.date)]
        if not txs:
            continue
        label, year, month = cycle_label(cycle_start(period.start_date))
        bills.append(
            MonthBill(
                label=label,
                year=year,
                month=month,
                start_date=period.start_date,
                end_date=period.end_date,
                days=daily_bills(txs),
                total_amount=_total(txs),
                item_summary=combine_items(txs),
            )
        )
    return bills


def generate_billing_summary(
    transactions: Sequence[Transaction], period: BillingPeriod
) -> BillingSummary:
    """Daily and per-cycle bills for the transactions inside ``period``."""

    selected = [tx for tx in transactions if period.contains(tx.date)]
    cycles = generate_periods(period.start_date, period.end_date)
    summary = BillingSummary(
        period=period,
        monthly_bills=monthly_bills(selected, cycles),
        daily_bills=daily_bills(selected),
        grand_total=_total(selected),
    )
    _logger.info(
        "billing:summary start=%s end=%s transactions=%d months=%d total=%s",
        period.start_date,
        period.end_date,
        len(selected),
        len(summary.monthly_bills),
        summary.grand_total,
    )
    return summary


def get_available_months(transactions: Sequence[Transaction]) -> list[AvailableMonth]:
    """Cycles spanned by the earliest to the latest transaction date."""

    if not transactions:
        return []
    first = min(tx.date for tx in transactions).date()
    last = max(tx.date for tx in transactions).date()
    months: list[AvailableMonth] = []
    for period in generate_periods(first, last):
        label, year, month = cycle_label(period.start_date)
        months.append(
            AvailableMonth(
                label=label,
                year=year,
                month=month,
                start_date=period.start_date,
                end_date=period.end_date,
            )
        )
    return months


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _money(value: Decimal) -> str:
    return f"{CURRENCY_SYMBOL}{value:,.2f}"


def format_bill(bill: DayBill | MonthBill) -> str:
    """Render a day or month bill as a plain-text table."""

    if isinstance(bill, MonthBill):
        title = f"{bill.label} {bill.year} ({bill.start_date} to {bill.end_date})"
        items = bill.item_summary
    else:
        title = bill.date.strftime("%d %B %Y")
        items = bill.items

    width = max([len(i.item) for i in items] + [4])
    lines = [title, "-" * len(title)]
    for i in items:
        unit, total = _money(i.unit_price), _money(i.total_price)
        lines.append(f"{i.item:<{width}}  x{i.quantity:<3} {unit:>12} {total:>12}")
    lines.append(f"{'Total':<{width}}  {'':<4} {'':>12} {_money(bill.total_amount):>12}")
    return "\n".join(lines)


__all__ = [
    "BillingPeriodOverflowError",
    "MAX_PERIODS",
    "cycle_start",
    "cycle_label",
    "generate_periods",
    "create_month_period",
    "create_custom_period",
    "period_for_date",
    "combine_items",
    "daily_bills",
    "monthly_bills",
    "generate_billing_summary",
    "get_available_months",
    "format_bill",
]
