"""Collapse near-duplicate item names into one display label.

Items are keyed by their letters only (lowercased, digits, punctuation and
spaces removed). Transactions sharing a key form a group; key groups whose
character sets overlap by more than the configured Jaccard threshold are then
unioned. Two keys that are both canonical vocabulary names are never merged,
so ``milk`` and ``oil`` stay apart at any threshold.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Sequence

from .config import DEFAULT_SIMILARITY_THRESHOLD
from .logging_setup import get_logger
from .models import Transaction
from .normalizers import LETTER_CLASS

_logger = get_logger("purchase_ledger.grouping")

_NON_LETTER_RE = re.compile(f"[^{LETTER_CLASS}]")


def item_key(item: str) -> str:
    """Return the grouping key for ``item``."""

    key = _NON_LETTER_RE.sub("", item.lower())
    return key or item.strip().lower()


def jaccard(a: str, b: str) -> float:
    """Character-set Jaccard similarity of two keys."""

    sa, sb = set(a), set(b)
    union = sa | sb
    if not union:
        return 0.0
    return len(sa & sb) / len(union)


def choose_display_name(names: Iterable[str]) -> str:
    """Most frequent name; ties go to the shortest one not starting with a digit."""

    counts = Counter(names)
    return min(
        counts,
        key=lambda n: (-counts[n], n[:1].isdigit(), len(n), n),
    )


class _DisjointSet:
    def __init__(self, size: int) -> None:
        self.parent = list(range(size))

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            # Lower index stays root so group order follows first appearance.
            self.parent[max(ra, rb)] = min(ra, rb)


def group_keys(
    keys: Sequence[str],
    *,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    protected: frozenset[str] = frozenset(),
) -> list[list[str]]:
    """Partition distinct ``keys`` into merge groups (order of first appearance).

    ``protected`` keys never merge with each other.
    """

    ds = _DisjointSet(len(keys))
    for i in range(len(keys)):
        for j in range(i + 1, len(keys)):
            if keys[i] in protected and keys[j] in protected:
                continue
            if jaccard(keys[i], keys[j]) > threshold:
                ds.union(i, j)
    groups: dict[int, list[str]] = {}
    for i, key in enumerate(keys):
        groups.setdefault(ds.find(i), []).append(key)
    return list(groups.values())


def group_similar_items(
    transactions: Sequence[Transaction],
    *,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    canonical_names: Iterable[str] = (),
) -> list[Transaction]:
    """Return transactions with each item rewritten to its group's display name.

    Input order is preserved and unchanged records are returned as-is.
    """

    if not transactions:
        return []

    by_key: dict[str, list[int]] = {}
    for idx, tx in enumerate(transactions):
        by_key.setdefault(item_key(tx.item), []).append(idx)

    protected = frozenset(item_key(n) for n in canonical_names)
    merged = group_keys(list(by_key), threshold=threshold, protected=protected)

    rename: dict[int, str] = {}
    for keys in merged:
        members = [i for k in keys for i in by_key[k]]
        name = choose_display_name(transactions[i].item for i in members)
        for i in members:
            rename[i] = name

    out: list[Transaction] = []
    changed = 0
    for idx, tx in enumerate(transactions):
        name = rename[idx]
        if name != tx.item:
            tx = tx.model_copy(update={"item": name})
            changed += 1
        out.append(tx)

    _logger.debug(
        "group:done keys=%d groups=%d renamed=%d",
        len(by_key),
        len(merged),
        changed,
    )
    return out


__all__ = [
    "item_key",
    "jaccard",
    "choose_display_name",
    "group_keys",
    "group_similar_items",
]
