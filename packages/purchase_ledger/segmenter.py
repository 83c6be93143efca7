"""Split a chat export into messages.

The segmenter is a fold over input lines. Each step takes an immutable
:class:`MessageContext` plus one line and returns the next context together
with a :class:`LineEvent` describing what the line was. ``sender is None``
means no message is open (NoContext); otherwise continuation lines inherit the
open message's sender and date (InMessage).

Recognized line shapes::

    03/01/2024, 9:35 pm - Monir: milk 100     message header
    03/01/2024, 9:35 pm - Messages and calls   system header (no "Sender:")
    chapati 110                                continuation
    15 জানুয়ারি 2024                             bare date

Only messages from the configured target sender are forwarded to extraction.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, NamedTuple, TypeAlias

from .config import normalize_sender
from .logging_setup import get_logger
from .normalizers import collapse_whitespace, convert_numerals

_logger = get_logger("purchase_ledger.segmenter")

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_STAMP = r"(\d{1,2})/(\d{1,2})/(\d{2,4}),\s*(\d{1,2}):(\d{2})\s*([ap]\.?\s?m\.?)?\s*[-–]\s*"

_HEADER_RE = re.compile(rf"^{_STAMP}([^:]+?):\s?(.*)$", re.IGNORECASE)
_SYSTEM_RE = re.compile(rf"^{_STAMP}(.+)$", re.IGNORECASE)

_MONTHS: dict[str, int] = {
    "january": 1, "february": 2, "march": 3, "april": 4, "may": 5, "june": 6,
    "july": 7, "august": 8, "september": 9, "october": 10, "november": 11,
    "december": 12,
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "jun": 6, "jul": 7, "aug": 8,
    "sep": 9, "sept": 9, "oct": 10, "nov": 11, "dec": 12,
    "জানুয়ারি": 1, "জানুয়ারী": 1, "ফেব্রুয়ারি": 2, "ফেব্রুয়ারী": 2, "মার্চ": 3,
    "এপ্রিল": 4, "মে": 5, "জুন": 6, "জুলাই": 7, "আগস্ট": 8, "আগষ্ট": 8,
    "সেপ্টেম্বর": 9, "অক্টোবর": 10, "নভেম্বর": 11, "ডিসেম্বর": 12,
}  # fmt: skip

# Keys are NFC so they match text that went through convert_numerals.
MONTH_NAMES: dict[str, int] = {unicodedata.normalize("NFC", k): v for k, v in _MONTHS.items()}

_MONTH_ALT = "|".join(sorted((re.escape(m) for m in MONTH_NAMES), key=len, reverse=True))
_BARE_DATE_RE = re.compile(rf"^(\d{{1,2}})\s+({_MONTH_ALT}),?\s+(\d{{4}})$", re.IGNORECASE)

# Bodies WhatsApp writes on its own; they are never purchases nor review items.
IGNORED_BODIES: frozenset[str] = frozenset(
    {
        "<media omitted>",
        "this message was deleted",
        "you deleted this message",
        "null",
        "<this message was edited>",
    }
)


# ---------------------------------------------------------------------------
# Fold state and events
# ---------------------------------------------------------------------------


class MessageContext(NamedTuple):
    """Carried state; ``sender is None`` is the NoContext state."""

    sender: str | None = None
    date: datetime | None = None


NO_CONTEXT = MessageContext()

LineKind: TypeAlias = Literal[
    "header", "continuation", "system", "date", "blank", "ignored", "orphan", "invalid"
]


@dataclass(frozen=True, slots=True)
class LineEvent:
    line_no: int
    text: str
    kind: LineKind
    context: MessageContext
    error: str | None = None


@dataclass(slots=True)
class Message:
    """One chat message: header line plus its continuation lines."""

    sender: str
    date: datetime
    lines: list[tuple[int, str]] = field(default_factory=list)

    @property
    def first_line(self) -> int:
        return self.lines[0][0] if self.lines else 0

    @property
    def text(self) -> str:
        return "\n".join(t for _, t in self.lines)


@dataclass(slots=True)
class Segmentation:
    """Result of :func:`segment`.

    ``messages`` only contains target-sender messages. Every input line ends up
    in exactly one of: a message's ``lines``, ``errors``, or ``skipped``.
    """

    messages: list[Message] = field(default_factory=list)
    errors: list[LineEvent] = field(default_factory=list)
    skipped: list[LineEvent] = field(default_factory=list)
    total_lines: int = 0


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def parse_timestamp(
    day: str, month: str, year: str, hour: str, minute: str, meridiem: str | None
) -> datetime:
    """Build a naive datetime from the header fields.

    Two-digit years are 20YY. ``pm`` adds 12 hours unless the hour is 12;
    ``am`` maps 12 to 0. Raises ``ValueError`` for impossible dates.
    """

    y = int(year)
    if y < 100:
        y += 2000
    h = int(hour)
    if meridiem:
        marker = meridiem.replace(".", "").replace(" ", "").lower()
        if marker == "pm" and h != 12:
            h += 12
        elif marker == "am" and h == 12:
            h = 0
    return datetime(y, int(month), int(day), h, int(minute))


def _parse_bare_date(line: str) -> datetime | None:
    m = _BARE_DATE_RE.match(convert_numerals(line))
    if not m:
        return None
    month = MONTH_NAMES.get(m.group(2).lower())
    if month is None:
        return None
    try:
        return datetime(int(m.group(3)), month, int(m.group(1)))
    except ValueError:
        return None


def step(context: MessageContext, line_no: int, raw: str) -> tuple[MessageContext, LineEvent]:
    """Advance the fold by one line."""

    line = collapse_whitespace(raw.replace("\u200e", "").replace("\u200f", ""))
    if not line:
        return context, LineEvent(line_no, raw, "blank", context)

    m = _HEADER_RE.match(line)
    if m:
        day, month, year, hour, minute, meridiem, sender, body = m.groups()
        try:
            when = parse_timestamp(day, month, year, hour, minute, meridiem)
        except ValueError as exc:
            return NO_CONTEXT, LineEvent(
                line_no, raw, "invalid", NO_CONTEXT, error=f"invalid message timestamp: {exc}"
            )
        nxt = MessageContext(normalize_sender(sender), when)
        return nxt, LineEvent(line_no, body.strip(), "header", nxt)

    m = _SYSTEM_RE.match(line)
    if m:
        day, month, year, hour, minute, meridiem, _text = m.groups()
        try:
            when = parse_timestamp(day, month, year, hour, minute, meridiem)
        except ValueError as exc:
            return NO_CONTEXT, LineEvent(
                line_no, raw, "invalid", NO_CONTEXT, error=f"invalid message timestamp: {exc}"
            )
        nxt = MessageContext(None, when)
        return nxt, LineEvent(line_no, line, "system", nxt)

    bare = _parse_bare_date(line)
    if bare is not None:
        nxt = MessageContext(context.sender, bare)
        return nxt, LineEvent(line_no, line, "date", nxt)

    if context.sender is None or context.date is None:
        return context, LineEvent(
            line_no, raw, "orphan", context, error="line is not part of any message"
        )
    if line.lower() in IGNORED_BODIES:
        return context, LineEvent(line_no, line, "ignored", context)
    return context, LineEvent(line_no, line, "continuation", context)


def iter_events(lines: Iterable[str]) -> Iterator[LineEvent]:
    """Fold over ``lines`` (1-based numbering) yielding one event per line."""

    context = NO_CONTEXT
    for i, raw in enumerate(lines, start=1):
        context, event = step(context, i, raw)
        yield event


def segment(lines: Sequence[str], *, target_sender: str) -> Segmentation:
    """Group events into target-sender messages and account for every line."""

    target = normalize_sender(target_sender)
    out = Segmentation(total_lines=len(lines))
    current: Message | None = None

    def _add(event: LineEvent) -> None:
        assert current is not None
        if not current.lines:
            out.messages.append(current)
        current.lines.append((event.line_no, event.text))

    for event in iter_events(lines):
        kind = event.kind
        if kind in ("orphan", "invalid"):
            out.errors.append(event)
            current = None
        elif kind == "header":
            current = None
            if event.context.sender == target and event.context.date is not None:
                current = Message(sender=target, date=event.context.date)
                if event.text.lower() in IGNORED_BODIES:
                    out.skipped.append(event)
                else:
                    _add(event)
            else:
                out.skipped.append(event)
        elif kind == "continuation" and current is not None:
            # A bare date inside a message moves later lines to the new day.
            if event.context.date is not None and event.context.date != current.date:
                current = Message(sender=target, date=event.context.date)
            _add(event)
        else:
            if kind == "system":
                current = None
            out.skipped.append(event)

    _logger.debug(
        "segment:done lines=%d messages=%d errors=%d skipped=%d",
        out.total_lines,
        len(out.messages),
        len(out.errors),
        len(out.skipped),
    )
    return out


__all__ = [
    "MONTH_NAMES",
    "IGNORED_BODIES",
    "MessageContext",
    "NO_CONTEXT",
    "LineEvent",
    "Message",
    "Segmentation",
    "parse_timestamp",
    "step",
    "iter_events",
    "segment",
]
