"""Turn extracted pairs into ``Transaction`` records.

Each target-sender message is read either as one unit (when it is a
structured "total + description" record) or line by line. Every line of a
unit that yields a transaction counts as contributing; a message that yields
no pair at all becomes a "needs review" diagnostic instead of disappearing.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import ValidationError

from .extraction import PairExtractor
from .logging_setup import get_logger
from .models import DiagnosticEntry, ExtractedPair, ParseError, Transaction
from .segmenter import Message, Segmentation

_logger = get_logger("purchase_ledger.synthesis")


@dataclass(slots=True)
class Synthesis:
    """Transactions built from one segmentation plus line bookkeeping."""

    transactions: list[Transaction] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)
    needs_review: list[DiagnosticEntry] = field(default_factory=list)
    contributing_lines: set[int] = field(default_factory=set)
    failed_lines: set[int] = field(default_factory=set)


def _units(message: Message, extractor: PairExtractor) -> list[tuple[list[int], str]]:
    """Split a message into the pieces extraction runs on."""

    if extractor.structured_block(message.text) is not None:
        return [([n for n, _ in message.lines], message.text)]
    return [([n], text) for n, text in message.lines]


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}" if loc else err.get("msg", ""))
    return "invalid transaction: " + "; ".join(parts)


def build_transaction(
    message: Message, pair: ExtractedPair, text: str, extractor: PairExtractor
) -> Transaction:
    """Construct one record; raises pydantic ``ValidationError`` when invalid."""

    return Transaction(
        date=message.date,
        sender=message.sender,
        item=extractor.vocabulary.map_to_canonical(pair.item),
        amount=pair.amount,
        original_message=text,
    )


def synthesize(segmentation: Segmentation, extractor: PairExtractor) -> Synthesis:
    out = Synthesis()

    for event in segmentation.errors:
        out.errors.append(
            ParseError(
                line=event.line_no,
                message=event.error or "unparseable line",
                original_text=event.text,
            )
        )
        out.failed_lines.add(event.line_no)

    for message in segmentation.messages:
        found_any = False
        for line_nos, text in _units(message, extractor):
            pairs = extractor.extract(text)
            if not pairs:
                continue
            found_any = True
            built = 0
            for pair in pairs:
                try:
                    tx = build_transaction(message, pair, text, extractor)
                except ValidationError as exc:
                    out.errors.append(
                        ParseError(
                            line=line_nos[0],
                            message=_validation_message(exc),
                            original_text=text,
                        )
                    )
                    out.failed_lines.add(line_nos[0])
                    continue
                out.transactions.append(tx)
                built += 1
            if built:
                out.contributing_lines.update(line_nos)
        if not found_any:
            out.needs_review.append(
                DiagnosticEntry(
                    line=message.first_line,
                    sender=message.sender,
                    date=message.date,
                    text=message.text,
                )
            )

    # A line that produced any record counts as contributing even if another
    # pair on it was rejected.
    out.failed_lines -= out.contributing_lines
    _logger.debug(
        "synthesize:done transactions=%d errors=%d review=%d",
        len(out.transactions),
        len(out.errors),
        len(out.needs_review),
    )
    return out


__all__ = ["Synthesis", "build_transaction", "synthesize"]
