"""Drop transactions that are re-parses of the same purchase.

Two records are duplicates when sender, item and amount match and either:

- their timestamps are less than 5 minutes apart; or
- they are less than a day apart and their original messages are
  near-identical (Levenshtein distance below 10% of the longer message), or
  there is no text to compare and they are less than 30 minutes apart.

The day-wide text branch is what lets overlapping chat exports be uploaded
again without doubling the ledger.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import timedelta
from decimal import Decimal
from typing import TypeAlias

from rapidfuzz.distance import Levenshtein

from .logging_setup import get_logger
from .models import Transaction
from .normalizers import collapse_whitespace

_logger = get_logger("purchase_ledger.duplicates")

STRICT_WINDOW = timedelta(minutes=5)
TEXT_WINDOW = timedelta(days=1)
UNTEXTED_WINDOW = timedelta(minutes=30)
MAX_EDIT_RATIO = 0.10

_BucketKey: TypeAlias = tuple[str, str, Decimal]


def normalize_message(text: str | None) -> str:
    return collapse_whitespace(text or "").lower()


def messages_similar(a: str | None, b: str | None) -> bool | None:
    """Compare two original messages; ``None`` when either side is missing."""

    na, nb = normalize_message(a), normalize_message(b)
    if not na or not nb:
        return None
    longer = max(len(na), len(nb))
    return Levenshtein.distance(na, nb) < MAX_EDIT_RATIO * longer


def is_duplicate(a: Transaction, b: Transaction) -> bool:
    if (a.sender, a.item, a.amount) != (b.sender, b.item, b.amount):
        return False
    delta = abs(a.date - b.date)
    if delta < STRICT_WINDOW:
        return True
    if delta >= TEXT_WINDOW:
        return False
    similar = messages_similar(a.original_message, b.original_message)
    if similar is None:
        return delta < UNTEXTED_WINDOW
    return similar


def _bucket_key(tx: Transaction) -> _BucketKey:
    return (tx.sender, tx.item, tx.amount)


def deduplicate(transactions: Sequence[Transaction]) -> tuple[list[Transaction], int]:
    """Return ``(kept, dropped_count)``; kept records stay in input order.

    Within each (sender, item, amount) bucket records are visited in date
    order and compared against the ones already kept, so the earliest of a
    run of duplicates survives.
    """

    buckets: dict[_BucketKey, list[int]] = {}
    for idx, tx in enumerate(transactions):
        buckets.setdefault(_bucket_key(tx), []).append(idx)

    dropped: set[int] = set()
    for indices in buckets.values():
        kept: list[Transaction] = []
        for idx in sorted(indices, key=lambda i: (transactions[i].date, i)):
            tx = transactions[idx]
            if any(is_duplicate(k, tx) for k in kept):
                dropped.add(idx)
            else:
                kept.append(tx)

    out = [tx for i, tx in enumerate(transactions) if i not in dropped]
    _logger.debug(
        "dedupe:done in=%d kept=%d dropped=%d", len(transactions), len(out), len(dropped)
    )
    return out, len(dropped)


def merge_batches(
    existing: Sequence[Transaction], incoming: Iterable[Transaction]
) -> tuple[list[Transaction], int]:
    """Append the non-duplicate ``incoming`` records to ``existing``.

    Existing records are never dropped or rewritten. Returns
    ``(merged, skipped_count)``.
    """

    buckets: dict[_BucketKey, list[Transaction]] = {}
    for tx in existing:
        buckets.setdefault(_bucket_key(tx), []).append(tx)

    merged = list(existing)
    skipped = 0
    for tx in incoming:
        bucket = buckets.setdefault(_bucket_key(tx), [])
        if any(is_duplicate(k, tx) for k in bucket):
            skipped += 1
            continue
        bucket.append(tx)
        merged.append(tx)

    _logger.info(
        "merge:done existing=%d added=%d skipped=%d",
        len(existing),
        len(merged) - len(existing),
        skipped,
    )
    return merged, skipped


__all__ = [
    "STRICT_WINDOW",
    "TEXT_WINDOW",
    "UNTEXTED_WINDOW",
    "normalize_message",
    "messages_similar",
    "is_duplicate",
    "deduplicate",
    "merge_batches",
]
