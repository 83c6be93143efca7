"""Item/amount pair extraction from message bodies.

Strategies run independently over the same prepared text and every accepted
candidate is returned; overlapping candidates are settled afterwards by
:func:`resolve_pairs`.

``structured``
    A payment-app record: a total keyword (``কেনা``, ``মোট``, ``total
    purchase amount``) followed by a number, plus a ``বিবরণ``/``description``
    section naming the items.
``spaced``
    ``milk 100``
``concatenated``
    ``tel173``
``multiword``
    ``green chili: 30``, ``bread - 50``
``reversed``
    ``100 for rice``
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, InvalidOperation

from .config import ParserConfig
from .logging_setup import get_logger
from .models import ExtractedPair, PairKind, is_whole_cents
from .normalizers import (
    LETTER_CLASS,
    collapse_whitespace,
    convert_numerals,
    has_letter,
    normalize,
    strip_boilerplate,
)
from .segmenter import MONTH_NAMES
from .vocabulary import ItemVocabulary, default_vocabulary

_logger = get_logger("purchase_ledger.extraction")

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

L = LETTER_CLASS
_NUM = r"(?:[0-9]{1,3}(?:,[0-9]{3})+(?:\.[0-9]+)?|[0-9]+(?:\.[0-9]+)?)"
# A number glued to ":5", ".5" or ",500" is a time, a longer decimal or a
# grouped number, not an amount.
_AMOUNT_END = r"(?![0-9]|[.:][0-9]|,[0-9]{3}(?![0-9]))"
_START = rf"(?<![{L}0-9])"

_SPACED_RE = re.compile(rf"{_START}([{L}]+) ({_NUM}){_AMOUNT_END}")
_CONCAT_RE = re.compile(rf"{_START}([{L}]+)({_NUM}){_AMOUNT_END}")
_MULTIWORD_RE = re.compile(rf"{_START}([{L}][{L} ]{{0,19}})\s*[:=\-]?\s*({_NUM}){_AMOUNT_END}")
_REVERSED_RE = re.compile(
    rf"(?<![{L}0-9.:])({_NUM}){_AMOUNT_END} (?:for|of) ([{L}]+)", re.IGNORECASE
)
_ALIAS_TOKEN_RE = re.compile(rf"{_START}[{L}]+[0-9]+(?![0-9])")

_TOTAL_RE = re.compile(
    r"(?:মোট\s*)?(?:কেনা|মোট|total(?:\s+purchased?)?(?:\s+amount)?)"
    r"\s*[:=\-]?\s*(?:টাকা|৳|tk\.?|taka|bdt)?\s*"
    rf"({_NUM})(?![0-9])",
    re.IGNORECASE,
)
_DESCRIPTION_RE = re.compile(
    r"(?:বিবরণ|description|details)\s*[:\-]?\s*(.*?)\s*"
    r"(?=moriom|যেভাবে|পূর্বের বাকি|বর্তমান বাকি|লেনদেন|কেনা|মোট|total|https?://|www\.|$)",
    re.IGNORECASE | re.DOTALL,
)
_ITEM_SPLIT_RE = re.compile(r"\s*(?:[,;/+&]|\band\b)\s*", re.IGNORECASE)

# Lower index wins when two candidates claim the same amount token.
STRATEGY_PRIORITY: tuple[PairKind, ...] = (
    "structured_total",
    "spaced",
    "concatenated",
    "multiword",
    "reversed",
)
_RANK = {kind: i for i, kind in enumerate(STRATEGY_PRIORITY)}
_CENT = Decimal("0.01")

# Words that name no purchasable item.
SYSTEM_WORDS: frozenset[str] = frozenset(
    {
        # payment-app and ledger vocabulary
        "কেনা", "মোট", "বাকি", "পূর্বের", "বর্তমান", "লেনদেন", "রেকর্ড", "যেভাবে",
        "পেমেন্ট", "করবেন", "কাস্টমার", "মোবাইল", "বিবরণ", "টাকা", "জমা", "পরিশোধ",
        "moriom", "total", "taka", "tk", "bdt", "balance", "due", "paid", "payment",
        "amount", "purchase", "purchased", "price", "description", "details",
        # time and chat export fragments
        "am", "pm", "media", "omitted", "message", "deleted", "edited", "null",
        # URL fragments
        "http", "https", "www", "com",
        # stop words
        "for", "and", "the", "at", "of", "to", "is", "on", "in",
    }
)  # fmt: skip


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StructuredBlock:
    """A recognized "total + description" record.

    ``pairs`` are per-item candidates found inside the description section;
    ``item_names`` are the items the description names without an amount.
    """

    total: Decimal
    total_span: tuple[int, int]
    description: str
    item_names: tuple[str, ...]
    pairs: tuple[ExtractedPair, ...]

    @property
    def single_item(self) -> str | None:
        if len(self.item_names) == 1 and not self.pairs:
            return self.item_names[0]
        return None

    @property
    def remainder(self) -> Decimal:
        """What is left of the total after the priced items."""

        return self.total - sum((p.amount for p in self.pairs), Decimal("0"))

    def total_pair(self) -> ExtractedPair | None:
        """The whole total assigned to the single named item, if there is one."""

        item = self.single_item
        if item is None:
            return None
        return ExtractedPair("structured_total", item, self.total, self.total_span)

    def remainder_pairs(self) -> list[ExtractedPair]:
        """Split the remainder evenly over the unpriced items.

        Shares are whole cents; the last item absorbs the rounding so the
        shares add up to the remainder exactly. Returns ``[]`` when nothing
        is left to split.
        """

        n = len(self.item_names)
        remainder = self.remainder
        if n == 0 or remainder <= 0:
            return []
        share = (remainder / n).quantize(_CENT, rounding=ROUND_DOWN)
        if share <= 0:
            return []
        last = remainder - share * (n - 1)
        return [
            ExtractedPair(
                "structured_total", name, last if i == n - 1 else share, self.total_span
            )
            for i, name in enumerate(self.item_names)
        ]


def resolve_pairs(pairs: Iterable[ExtractedPair]) -> list[ExtractedPair]:
    """Keep one candidate per amount span, chosen by strategy priority.

    The result is ordered by span so items come out in message order.
    """

    best: dict[tuple[int, int], ExtractedPair] = {}
    for pair in pairs:
        current = best.get(pair.span)
        if current is None or _RANK[pair.kind] < _RANK[current.kind]:
            best[pair.span] = pair
    return [best[span] for span in sorted(best)]


def _to_amount(raw: str) -> Decimal | None:
    try:
        value = Decimal(raw.replace(",", ""))
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------


class PairExtractor:
    """Run every strategy over a message body and filter the candidates."""

    def __init__(
        self,
        config: ParserConfig | None = None,
        vocabulary: ItemVocabulary | None = None,
    ) -> None:
        self.config = config or ParserConfig()
        if vocabulary is None:
            vocabulary = (
                ItemVocabulary(self.config.extra_aliases)
                if self.config.extra_aliases
                else default_vocabulary()
            )
        self.vocabulary = vocabulary
        sender_words = set(self.config.target_sender.split())
        self.rejected_words: frozenset[str] = (
            SYSTEM_WORDS
            | frozenset(MONTH_NAMES)
            | frozenset(sender_words)
            | {self.config.target_sender}
            | self.config.extra_rejected_words
        )

    # -- text preparation --------------------------------------------------

    def prepare(self, text: str) -> str:
        """Normalize ``text`` and rewrite digit-bearing aliases to item names."""

        s = normalize(text)

        def _rewrite(m: re.Match[str]) -> str:
            token = m.group(0)
            if self.vocabulary.is_digit_alias(token):
                return self.vocabulary.map_to_canonical(token)
            return token

        return _ALIAS_TOKEN_RE.sub(_rewrite, s)

    # -- validity ------------------------------------------------------------

    def clean_item(self, raw: str, kind: PairKind) -> str | None:
        """Return the usable item name in ``raw`` or ``None`` when it is rejected.

        The word next to the amount must itself be acceptable; other rejected
        words are dropped from multi-word items.
        """

        words = collapse_whitespace(raw).split(" ")
        if not words or not words[0]:
            return None
        anchor = words[0] if kind == "reversed" else words[-1]
        if anchor.lower() in self.rejected_words:
            return None
        kept = [w for w in words if w.lower() not in self.rejected_words]
        item = " ".join(kept)
        if len(item) < 2 or not has_letter(item):
            return None
        return item

    def _accept(
        self, kind: PairKind, raw_item: str, raw_amount: str, span: tuple[int, int]
    ) -> ExtractedPair | None:
        amount = _to_amount(raw_amount)
        if amount is None or amount <= 0 or not is_whole_cents(amount):
            return None
        if kind != "structured_total" and amount > self.config.max_item_amount:
            return None
        item = self.clean_item(raw_item, kind)
        if item is None:
            return None
        return ExtractedPair(kind, item, amount, span)

    # -- strategies ----------------------------------------------------------

    def candidates(self, text: str) -> list[ExtractedPair]:
        """Every accepted candidate from the generic strategies, unresolved."""

        s = self.prepare(text)
        out: list[ExtractedPair] = []
        for kind, pattern, item_group, amount_group in (
            ("spaced", _SPACED_RE, 1, 2),
            ("concatenated", _CONCAT_RE, 1, 2),
            ("multiword", _MULTIWORD_RE, 1, 2),
            ("reversed", _REVERSED_RE, 2, 1),
        ):
            for m in pattern.finditer(s):
                pair = self._accept(
                    kind,  # type: ignore[arg-type]
                    m.group(item_group),
                    m.group(amount_group),
                    m.span(amount_group),
                )
                if pair is not None:
                    out.append(pair)
        return self._prefer_full_names(out)

    def _prefer_full_names(self, pairs: list[ExtractedPair]) -> list[ExtractedPair]:
        """Drop a one-word ``spaced`` candidate that a multi-word name extends.

        ``green chili 30`` keeps ``green chili``. The short name stays when it
        is a known item and the long one is not (``bought milk 100``).
        """

        spaced = {p.span: p for p in pairs if p.kind == "spaced"}
        displaced: set[tuple[int, int]] = set()
        for pair in pairs:
            short = spaced.get(pair.span)
            if pair.kind != "multiword" or short is None:
                continue
            words = pair.item.split(" ")
            if len(words) < 2 or words[-1] != short.item:
                continue
            if (
                self.vocabulary.lookup(short.item) is not None
                and self.vocabulary.lookup(pair.item) is None
            ):
                continue
            displaced.add(pair.span)
        return [p for p in pairs if not (p.kind == "spaced" and p.span in displaced)]

    def structured_block(self, text: str) -> StructuredBlock | None:
        """Detect a "total + description" record in ``text``.

        Runs on numeral-converted text so labels are still present.
        """

        s = convert_numerals(text)
        total_m = _TOTAL_RE.search(s)
        desc_m = _DESCRIPTION_RE.search(s)
        if total_m is None or desc_m is None:
            return None
        total = _to_amount(total_m.group(1))
        if total is None or total <= 0 or not is_whole_cents(total):
            return None
        description = strip_boilerplate(desc_m.group(1))
        pairs = tuple(resolve_pairs(self.candidates(description)))
        names = self._unpriced_names(self.prepare(description), pairs)
        block = StructuredBlock(
            total=total,
            total_span=total_m.span(1),
            description=description,
            item_names=tuple(names),
            pairs=pairs,
        )
        _logger.debug(
            "extract:structured total=%s items=%d pairs=%d",
            total,
            len(names),
            len(pairs),
        )
        return block

    def _unpriced_names(self, prepared: str, pairs: Iterable[ExtractedPair]) -> list[str]:
        """Item names left in ``prepared`` once every priced pair is cut out."""

        s = prepared
        # Right to left so earlier spans stay valid.
        for pair in sorted(pairs, key=lambda p: p.span, reverse=True):
            start, end = pair.span
            if pair.kind == "reversed":
                at = s.find(pair.item, end)
                if at != -1:
                    end = at + len(pair.item)
            else:
                at = s.rfind(pair.item, 0, start)
                if at != -1:
                    start = at
            s = f"{s[:start]},{s[end:]}"
        names: list[str] = []
        for chunk in _ITEM_SPLIT_RE.split(s):
            name = self.clean_item(re.sub(r"[0-9.]+", " ", chunk), "multiword")
            if name is not None:
                names.append(name)
        return names

    def extract(self, text: str) -> list[ExtractedPair]:
        """Return the reconciled pairs for one body of text.

        A structured record with a single named item yields exactly one
        ``structured_total`` pair. Otherwise its priced items come first and
        whatever the total leaves is split evenly over the unpriced ones.
        Text that is not a structured record goes through the generic
        strategies.
        """

        block = self.structured_block(text)
        if block is not None:
            total_pair = block.total_pair()
            if total_pair is not None:
                return [total_pair]
            pairs = list(block.pairs) + block.remainder_pairs()
            if block.item_names and block.remainder <= 0:
                _logger.warning(
                    "extract:structured unpriced=%d remainder=%s",
                    len(block.item_names),
                    block.remainder,
                )
            if pairs:
                return pairs
        return resolve_pairs(self.candidates(text))


def test_pattern(text: str, config: ParserConfig | None = None) -> list[tuple[str, Decimal]]:
    """Run extraction on a bare string and map items to canonical names.

    Handy for checking how a single message will be read.
    """

    extractor = PairExtractor(config)
    return [
        (extractor.vocabulary.map_to_canonical(p.item), p.amount) for p in extractor.extract(text)
    ]


# Keep pytest from collecting the helper above as a test.
test_pattern.__test__ = False  # type: ignore[attr-defined]


__all__ = [
    "STRATEGY_PRIORITY",
    "SYSTEM_WORDS",
    "StructuredBlock",
    "PairExtractor",
    "resolve_pairs",
    "test_pattern",
]
