"""Summary figures over a transaction set.

Monthly spending follows the 15th-to-14th billing cycle so analytics and
bills agree on which month a purchase belongs to.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from .billing import cycle_label, cycle_start, quantize
from .filters import FilterConfig, apply_filters
from .models import Transaction

FREQUENT_ITEM_THRESHOLD = 3


@dataclass(frozen=True, slots=True)
class ItemCount:
    item: str
    count: int
    total_amount: Decimal


@dataclass(frozen=True, slots=True)
class MonthlyTotal:
    label: str
    year: int
    month: int
    total: Decimal
    transaction_count: int


@dataclass(frozen=True, slots=True)
class Statistics:
    transaction_count: int
    total_amount: Decimal
    average_amount: Decimal
    unique_items: int
    unique_senders: int
    first_date: datetime | None
    last_date: datetime | None
    top_items: list[ItemCount]


@dataclass(frozen=True, slots=True)
class FrequencySplit:
    frequent: list[ItemCount]
    non_frequent: list[ItemCount]
    threshold: int


def item_distribution(transactions: Sequence[Transaction]) -> list[ItemCount]:
    """Purchase count and spend per item, most purchased first."""

    counts: dict[str, int] = {}
    totals: dict[str, Decimal] = {}
    for tx in transactions:
        counts[tx.item] = counts.get(tx.item, 0) + 1
        totals[tx.item] = totals.get(tx.item, Decimal("0")) + tx.amount
    out = [ItemCount(item, n, quantize(totals[item])) for item, n in counts.items()]
    out.sort(key=lambda c: (-c.count, -c.total_amount, c.item))
    return out


def monthly_spending(transactions: Sequence[Transaction]) -> list[MonthlyTotal]:
    """Spend per billing cycle in chronological order."""

    buckets: dict[tuple[int, int], list[Transaction]] = {}
    labels: dict[tuple[int, int], str] = {}
    for tx in transactions:
        label, year, month = cycle_label(cycle_start(tx.date))
        buckets.setdefault((year, month), []).append(tx)
        labels[(year, month)] = label
    return [
        MonthlyTotal(
            label=labels[key],
            year=key[0],
            month=key[1],
            total=quantize(sum((t.amount for t in txs), Decimal("0"))),
            transaction_count=len(txs),
        )
        for key, txs in sorted(buckets.items())
    ]


def statistics(
    transactions: Sequence[Transaction],
    filters: FilterConfig | None = None,
    *,
    top: int = 5,
) -> Statistics:
    selected = apply_filters(transactions, filters)
    total = sum((tx.amount for tx in selected), Decimal("0"))
    average = total / len(selected) if selected else Decimal("0")
    return Statistics(
        transaction_count=len(selected),
        total_amount=quantize(total),
        average_amount=quantize(average),
        unique_items=len({tx.item for tx in selected}),
        unique_senders=len({tx.sender for tx in selected}),
        first_date=min((tx.date for tx in selected), default=None),
        last_date=max((tx.date for tx in selected), default=None),
        top_items=item_distribution(selected)[:top],
    )


def frequency_split(
    transactions: Sequence[Transaction], threshold: int = FREQUENT_ITEM_THRESHOLD
) -> FrequencySplit:
    """Items bought more than ``threshold`` times are frequent."""

    dist = item_distribution(transactions)
    return FrequencySplit(
        frequent=[c for c in dist if c.count > threshold],
        non_frequent=[c for c in dist if c.count <= threshold],
        threshold=threshold,
    )


__all__ = [
    "FREQUENT_ITEM_THRESHOLD",
    "ItemCount",
    "MonthlyTotal",
    "Statistics",
    "FrequencySplit",
    "item_distribution",
    "monthly_spending",
    "statistics",
    "frequency_split",
]
