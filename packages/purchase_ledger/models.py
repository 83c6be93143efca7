"""Data models for ``purchase_ledger``.

``Transaction`` is a validated pydantic model because it crosses trust
boundaries (parser output, JSON import, database rows). Everything derived
from transactions (parse diagnostics, extraction candidates, billing
aggregates) is a frozen ``dataclass``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Ledger record
# ---------------------------------------------------------------------------


def new_transaction_id() -> str:
    return uuid.uuid4().hex


def is_whole_cents(value: Decimal) -> bool:
    """Return True when ``value`` needs at most two decimal places."""

    return value.normalize().as_tuple().exponent >= -2


class Transaction(BaseModel):
    """A single purchase event.

    Field names are snake_case in Python and camelCase on the wire
    (``originalMessage``, ``categoryId``, ``createdAt``) so JSON exports stay
    compatible with earlier ledger files. ``date`` is a naive local timestamp;
    no timezone normalization is applied anywhere.
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str = Field(default_factory=new_transaction_id)
    date: datetime
    sender: str
    item: str
    amount: Decimal
    original_message: str | None = None
    category_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("id", "sender", "item")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must be non-empty")
        return v

    @field_validator("sender")
    @classmethod
    def _casefold_sender(cls, v: str) -> str:
        return " ".join(v.split()).casefold()

    @field_validator("amount")
    @classmethod
    def _positive_amount(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v <= 0:
            raise ValueError("amount must be a positive number")
        # The ledger stores NUMERIC(10, 2).
        if not is_whole_cents(v):
            raise ValueError("amount must not have more than 2 decimal places")
        return v

    def identity(self) -> tuple[str, str, Decimal, datetime]:
        """Return the ``(sender, item, amount, date)`` tuple used for equality checks."""

        return (self.sender, self.item, self.amount, self.date)


# ---------------------------------------------------------------------------
# Parse diagnostics
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParseError:
    """A line that could not be converted; accumulated, never raised."""

    line: int
    message: str
    original_text: str


@dataclass(frozen=True, slots=True)
class DiagnosticEntry:
    """A target-sender message with no extractable amount ("needs review")."""

    line: int
    sender: str
    date: datetime
    text: str
    reason: str = "no amount could be associated with this message"


@dataclass(frozen=True, slots=True)
class ParseSummary:
    """Aggregate counters for one parse.

    ``total_lines == contributing_lines + failed_lines + skipped_lines`` holds
    for every summary produced by :func:`purchase_ledger.api.parse`.
    """

    total_lines: int
    successful_transactions: int
    contributing_lines: int
    failed_lines: int
    skipped_lines: int
    duplicates_skipped: int
    processing_time_ms: float


@dataclass(frozen=True, slots=True)
class ParseResult:
    transactions: list[Transaction]
    errors: list[ParseError]
    summary: ParseSummary
    needs_review: list[DiagnosticEntry]


# ---------------------------------------------------------------------------
# Extraction candidates
# ---------------------------------------------------------------------------

PairKind: TypeAlias = Literal["structured_total", "spaced", "concatenated", "multiword", "reversed"]


@dataclass(frozen=True, slots=True)
class ExtractedPair:
    """A candidate ``(item, amount)`` pair tagged with the strategy that found it.

    ``span`` is the ``[start, end)`` position of the amount token within the
    text the strategy ran on; candidates sharing a span compete for the same
    number.
    """

    kind: PairKind
    item: str
    amount: Decimal
    span: tuple[int, int] = (0, 0)


# ---------------------------------------------------------------------------
# Billing
# ---------------------------------------------------------------------------

PeriodType: TypeAlias = Literal["month", "custom"]


@dataclass(frozen=True, slots=True)
class BillingPeriod:
    """An inclusive ``[start_date, end_date]`` range of calendar days."""

    start_date: date
    end_date: date
    type: PeriodType = "custom"

    def __post_init__(self) -> None:
        if self.start_date > self.end_date:
            raise ValueError(
                f"BillingPeriod start_date {self.start_date} is after end_date {self.end_date}"
            )

    def contains(self, when: date | datetime) -> bool:
        day = when.date() if isinstance(when, datetime) else when
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True, slots=True)
class BillItem:
    item: str
    quantity: int
    unit_price: Decimal
    total_price: Decimal


@dataclass(frozen=True, slots=True)
class DayBill:
    date: date
    items: list[BillItem]
    total_amount: Decimal


@dataclass(frozen=True, slots=True)
class MonthBill:
    """Items of one 15th-to-14th cycle, labeled by the month the cycle ends in."""

    label: str
    year: int
    month: int
    start_date: date
    end_date: date
    days: list[DayBill]
    total_amount: Decimal
    item_summary: list[BillItem]


@dataclass(frozen=True, slots=True)
class BillingSummary:
    period: BillingPeriod
    monthly_bills: list[MonthBill]
    daily_bills: list[DayBill]
    grand_total: Decimal


@dataclass(frozen=True, slots=True)
class AvailableMonth:
    label: str
    year: int
    month: int
    start_date: date
    end_date: date


@dataclass(frozen=True, slots=True)
class ImportReport:
    """Outcome of a tolerant import: accepted records plus per-row errors."""

    transactions: list[Transaction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


__all__ = [
    "Transaction",
    "new_transaction_id",
    "is_whole_cents",
    "ParseError",
    "DiagnosticEntry",
    "ParseSummary",
    "ParseResult",
    "PairKind",
    "ExtractedPair",
    "PeriodType",
    "BillingPeriod",
    "BillItem",
    "DayBill",
    "MonthBill",
    "BillingSummary",
    "AvailableMonth",
    "ImportReport",
]
