"""Runtime configuration for the chat parser.

Configuration is a frozen dataclass so one instance can be shared by every
stage of a parse. ``ParserConfig.from_env`` reads ``PL_*`` variables; callers
that want ``.env`` support load it first (the CLI does).
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

DEFAULT_TARGET_SENDER = "monir"
DEFAULT_MAX_ITEM_AMOUNT = Decimal("1000")
# Character-set Jaccard cut-off for merging item groups. The historical value
# was 0.2; anything below ~0.5 merges unrelated short words ("milk"/"oil").
DEFAULT_SIMILARITY_THRESHOLD = 0.75


def normalize_sender(name: str) -> str:
    """Return the canonical (casefolded, single-spaced) form of a sender name."""

    return " ".join(name.split()).casefold()


@dataclass(frozen=True, slots=True)
class ParserConfig:
    """Tunables for segmentation, extraction and grouping.

    Attributes
    ----------
    target_sender:
        The only sender whose messages become transactions.
    max_item_amount:
        Upper bound for per-item amounts (structured totals are exempt).
    similarity_threshold:
        Jaccard threshold used by the similarity grouper; must be in ``[0, 1]``.
        The 0.75 default is stricter than the older 0.2 cut-off, which grouped
        unrelated short names (``milk`` and ``oil``).
    extra_aliases:
        Additional ``alias -> canonical`` entries for the vocabulary mapper.
    extra_rejected_words:
        Additional words that can never be item names.
    """

    target_sender: str = DEFAULT_TARGET_SENDER
    max_item_amount: Decimal = DEFAULT_MAX_ITEM_AMOUNT
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    extra_aliases: Mapping[str, str] = field(default_factory=dict)
    extra_rejected_words: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not normalize_sender(self.target_sender):
            raise ValueError("ParserConfig.target_sender must be non-empty")
        object.__setattr__(self, "target_sender", normalize_sender(self.target_sender))
        object.__setattr__(self, "max_item_amount", Decimal(str(self.max_item_amount)))
        if self.max_item_amount <= 0:
            raise ValueError("ParserConfig.max_item_amount must be positive")
        if not 0.0 <= float(self.similarity_threshold) <= 1.0:
            raise ValueError("ParserConfig.similarity_threshold must be within [0,1]")
        object.__setattr__(
            self,
            "extra_rejected_words",
            frozenset(w.strip().lower() for w in self.extra_rejected_words if w.strip()),
        )

    @classmethod
    def from_env(cls, **overrides: object) -> ParserConfig:
        """Build a config from ``PL_*`` environment variables.

        Explicit keyword ``overrides`` win over the environment; ``None``
        values are ignored so CLI options can be passed straight through.
        """

        values: dict[str, object] = {}
        sender = os.getenv("PL_TARGET_SENDER")
        if sender and sender.strip():
            values["target_sender"] = sender
        max_amount = os.getenv("PL_MAX_ITEM_AMOUNT")
        if max_amount and max_amount.strip():
            try:
                values["max_item_amount"] = Decimal(max_amount.strip())
            except InvalidOperation as exc:
                raise ValueError(f"invalid PL_MAX_ITEM_AMOUNT: {max_amount!r}") from exc
        threshold = os.getenv("PL_SIMILARITY_THRESHOLD")
        if threshold and threshold.strip():
            try:
                values["similarity_threshold"] = float(threshold)
            except ValueError as exc:
                raise ValueError(f"invalid PL_SIMILARITY_THRESHOLD: {threshold!r}") from exc
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)  # type: ignore[arg-type]


__all__ = ["ParserConfig", "normalize_sender"]
