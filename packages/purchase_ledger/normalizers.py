"""Text normalization for chat export bodies.

Chat messages mix Bengali and Latin script, Bengali and Western digits, and
payment-app boilerplate. Everything downstream (segmentation, extraction)
works on text that went through one of the two helpers here:

- :func:`convert_numerals` keeps every word and only rewrites numbers;
- :func:`normalize` additionally strips labels, currency words and URLs.

Both are pure and idempotent. Unknown characters pass through untouched.
"""

from __future__ import annotations

import re
import unicodedata

# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

_BENGALI_DIGITS = str.maketrans("০১২৩৪৫৬৭৮৯", "0123456789")

# Best-effort only; longer words first so "একশ" is not split by a shorter key.
_NUMBER_WORDS: tuple[tuple[str, str], ...] = (
    ("পাঁচশ", "500"),
    ("চারশ", "400"),
    ("তিনশ", "300"),
    ("দুইশ", "200"),
    ("একশ", "100"),
    ("নব্বই", "90"),
    ("পঞ্চাশ", "50"),
    ("সত্তর", "70"),
    ("আশি", "80"),
    ("ষাট", "60"),
)

# Labels and payment-system phrases that never carry item information.
BOILERPLATE_PHRASES: tuple[str, ...] = (
    "যেভাবে পেমেন্ট করবেন",
    "যেভাবে পেমেন্ট",
    "লেনদেন রেকর্ড",
    "বিবরণ",
    "টাকা",
    "৳",
)

_LATIN_BOILERPLATE_RE = re.compile(r"(?<![A-Za-z])(?:taka|tk)(?![A-Za-z])\.?", re.IGNORECASE)
_URL_RE = re.compile(r"(?:https?://|www\.)\S+", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")

# Bengali block without its digits, plus Latin letters.
LETTER_CLASS = r"A-Za-z\u0980-\u09E5\u09F0-\u09FF"
_HAS_LETTER_RE = re.compile(f"[{LETTER_CLASS}]")

# Whole words only ("আশিক" is a name). "একশো" is the spoken form of "একশ".
_NUMBER_WORD_ALTS = "|".join(word for word, _ in _NUMBER_WORDS)
_NUMBER_WORD_RE = re.compile(
    rf"(?<![{LETTER_CLASS}])({_NUMBER_WORD_ALTS})(?:\u09CB)?(?![{LETTER_CLASS}])"
)
_NUMBER_WORD_VALUES = dict(_NUMBER_WORDS)


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text).strip()


def convert_numerals(text: str) -> str:
    """Rewrite Bengali digits and number words to Western digits.

    Whitespace is collapsed; no words are removed.
    """

    s = unicodedata.normalize("NFC", text).translate(_BENGALI_DIGITS)
    s = _NUMBER_WORD_RE.sub(lambda m: f" {_NUMBER_WORD_VALUES[m.group(1)]} ", s)
    return collapse_whitespace(s)


def strip_boilerplate(text: str) -> str:
    """Remove URLs, labels and currency words, then collapse whitespace."""

    s = _URL_RE.sub(" ", text)
    for phrase in BOILERPLATE_PHRASES:
        s = s.replace(phrase, " ")
    s = _LATIN_BOILERPLATE_RE.sub(" ", s)
    return collapse_whitespace(s)


def normalize(text: str) -> str:
    """Return the canonical form of a message body used for pair extraction."""

    return strip_boilerplate(convert_numerals(text))


def has_letter(text: str) -> bool:
    """Return True when ``text`` contains a Latin or Bengali letter."""

    return _HAS_LETTER_RE.search(text) is not None


__all__ = [
    "BOILERPLATE_PHRASES",
    "LETTER_CLASS",
    "collapse_whitespace",
    "convert_numerals",
    "strip_boilerplate",
    "normalize",
    "has_letter",
]
