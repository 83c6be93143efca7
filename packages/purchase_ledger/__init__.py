"""Public interface for the ``purchase_ledger`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import (
    generate_billing_summary,
    generate_periods,
    get_available_months,
    parse,
    test_pattern,
)
from .config import ParserConfig
from .models import (
    AvailableMonth,
    BillingPeriod,
    BillingSummary,
    BillItem,
    DayBill,
    DiagnosticEntry,
    ExtractedPair,
    MonthBill,
    ParseError,
    ParseResult,
    ParseSummary,
    Transaction,
)

__all__ = [
    # API
    "parse",
    "test_pattern",
    "generate_periods",
    "generate_billing_summary",
    "get_available_months",
    "ParserConfig",
    # Models
    "Transaction",
    "ParseError",
    "DiagnosticEntry",
    "ParseSummary",
    "ParseResult",
    "ExtractedPair",
    "BillingPeriod",
    "BillItem",
    "DayBill",
    "MonthBill",
    "BillingSummary",
    "AvailableMonth",
]
