"""Filtering and free-text search over a transaction set."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal

from .models import Transaction


@dataclass(frozen=True, slots=True)
class FilterConfig:
    """Criteria combined with AND; empty criteria match everything.

    Item and sender criteria match case-insensitive substrings, any of the
    given values. A date-only ``end`` includes the whole day.
    """

    start: date | datetime | None = None
    end: date | datetime | None = None
    senders: tuple[str, ...] = ()
    items: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None

    def __post_init__(self) -> None:
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount > self.max_amount
        ):
            raise ValueError("FilterConfig.min_amount is greater than max_amount")

    @property
    def is_active(self) -> bool:
        return any(
            (
                self.start is not None,
                self.end is not None,
                self.senders,
                self.items,
                self.categories,
                self.min_amount is not None,
                self.max_amount is not None,
            )
        )


def _lower_bound(value: date | datetime) -> datetime:
    return value if isinstance(value, datetime) else datetime.combine(value, time.min)


def _upper_bound(value: date | datetime) -> datetime:
    return value if isinstance(value, datetime) else datetime.combine(value, time.max)


def matches(tx: Transaction, filters: FilterConfig) -> bool:
    if filters.categories and (tx.category_id is None or tx.category_id not in filters.categories):
        return False
    if filters.items:
        item = tx.item.lower()
        if not any(q.lower() in item for q in filters.items):
            return False
    if filters.senders:
        sender = tx.sender.lower()
        if not any(q.lower() in sender for q in filters.senders):
            return False
    if filters.start is not None and tx.date < _lower_bound(filters.start):
        return False
    if filters.end is not None and tx.date > _upper_bound(filters.end):
        return False
    if filters.min_amount is not None and tx.amount < filters.min_amount:
        return False
    if filters.max_amount is not None and tx.amount > filters.max_amount:
        return False
    return True


def apply_filters(
    transactions: Iterable[Transaction], filters: FilterConfig | None
) -> list[Transaction]:
    if filters is None or not filters.is_active:
        return list(transactions)
    return [tx for tx in transactions if matches(tx, filters)]


def search_transactions(transactions: Iterable[Transaction], query: str) -> list[Transaction]:
    """Case-insensitive substring search over item, sender, amount and message."""

    needle = query.strip().lower()
    if not needle:
        return list(transactions)
    out: list[Transaction] = []
    for tx in transactions:
        haystack = (tx.item, tx.sender, str(tx.amount), tx.original_message or "")
        if any(needle in field.lower() for field in haystack):
            out.append(tx)
    return out


__all__ = ["FilterConfig", "matches", "apply_filters", "search_transactions"]
