"""Public API for the ``purchase_ledger`` package.

:func:`parse` runs the whole pipeline on one chat export::

    raw text -> segmenter -> extractor -> synthesizer -> grouper -> deduplicator

Parsing never raises for bad input: unreadable lines come back as
``ParseError`` entries and target-sender messages without any amount as
``needs_review`` diagnostics. Billing helpers work on any transaction list,
parsed or loaded from storage, and are re-exported here together with
filtering, analytics and import/export so callers have one import surface.
"""

from __future__ import annotations

import time

from .analytics import (
    FrequencySplit,
    ItemCount,
    MonthlyTotal,
    Statistics,
    frequency_split,
    item_distribution,
    monthly_spending,
    statistics,
)
from .billing import (
    BillingPeriodOverflowError,
    combine_items,
    create_custom_period,
    create_month_period,
    format_bill,
    generate_billing_summary,
    generate_periods,
    get_available_months,
    period_for_date,
)
from .config import ParserConfig
from .duplicates import deduplicate, merge_batches
from .exports import export_csv, export_json, import_json
from .extraction import PairExtractor, test_pattern
from .filters import FilterConfig, apply_filters, search_transactions
from .grouping import group_similar_items
from .logging_setup import get_logger
from .models import ParseResult, ParseSummary
from .segmenter import segment
from .synthesis import synthesize

_logger = get_logger("purchase_ledger.api")


def split_lines(raw_text: str) -> list[str]:
    """Split on ``\\n`` (a trailing ``\\r`` is dropped from each line)."""

    if not raw_text:
        return []
    return [line.removesuffix("\r") for line in raw_text.split("\n")]


def parse(raw_text: str, *, config: ParserConfig | None = None) -> ParseResult:
    """Extract purchase transactions from a chat export.

    Every input line ends up contributing to a transaction, recorded as a
    failed line, or skipped, and ``summary.total_lines`` is their sum.
    """

    cfg = config or ParserConfig()
    started = time.perf_counter()
    lines = split_lines(raw_text)
    _logger.info("parse:start lines=%d sender=%s", len(lines), cfg.target_sender)

    segmentation = segment(lines, target_sender=cfg.target_sender)
    extractor = PairExtractor(cfg)
    synthesis = synthesize(segmentation, extractor)

    grouped = group_similar_items(
        synthesis.transactions,
        threshold=cfg.similarity_threshold,
        canonical_names=extractor.vocabulary.canonical_names,
    )
    transactions, dropped = deduplicate(grouped)

    contributing = len(synthesis.contributing_lines)
    failed = len(synthesis.failed_lines)
    summary = ParseSummary(
        total_lines=len(lines),
        successful_transactions=len(transactions),
        contributing_lines=contributing,
        failed_lines=failed,
        skipped_lines=len(lines) - contributing - failed,
        duplicates_skipped=dropped,
        processing_time_ms=(time.perf_counter() - started) * 1000.0,
    )
    _logger.info(
        "parse:done lines=%d transactions=%d errors=%d review=%d duplicates=%d ms=%.1f",
        summary.total_lines,
        summary.successful_transactions,
        len(synthesis.errors),
        len(synthesis.needs_review),
        summary.duplicates_skipped,
        summary.processing_time_ms,
    )
    return ParseResult(
        transactions=transactions,
        errors=synthesis.errors,
        summary=summary,
        needs_review=synthesis.needs_review,
    )


__all__ = [
    "parse",
    "split_lines",
    "test_pattern",
    "ParserConfig",
    # billing
    "BillingPeriodOverflowError",
    "generate_periods",
    "generate_billing_summary",
    "get_available_months",
    "combine_items",
    "create_month_period",
    "create_custom_period",
    "period_for_date",
    "format_bill",
    # ledger maintenance
    "deduplicate",
    "merge_batches",
    # filters and analytics
    "FilterConfig",
    "apply_filters",
    "search_transactions",
    "ItemCount",
    "MonthlyTotal",
    "Statistics",
    "FrequencySplit",
    "item_distribution",
    "monthly_spending",
    "statistics",
    "frequency_split",
    # import/export
    "export_json",
    "export_csv",
    "import_json",
]
