"""Item vocabulary: map raw item tokens to canonical English names.

The alias table covers transliterations ("alo", "piaz"), Bengali terms
("ডিম", "দুধ"), common misspellings and brand tokens that carry digits as part
of the name ("koyel60"). Lookup never fails: unknown items come back
lowercased and trimmed.

Lookup order (:meth:`ItemVocabulary.map_to_canonical`):

1. exact, case-insensitive alias match;
2. the same with trailing digits stripped (``"koyel60"`` -> ``"koyel"``);
3. substring containment against alias keys whose length differs from the
   candidate by at most two characters (typo tolerance);
4. passthrough.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Mapping

from .normalizers import collapse_whitespace

# Keys are lowercase; values are canonical item names.
DEFAULT_ALIASES: Mapping[str, str] = {
    # Bengali script
    "ডিম": "eggs",
    "দুধ": "milk",
    "আটা": "flour",
    "রোটি": "bread",
    "রুটি": "bread",
    "চাল": "rice",
    "আলু": "potato",
    "আলো": "potato",
    "আদা": "ginger",
    "পিঁয়াজ": "onion",
    "পেঁয়াজ": "onion",
    "রসুন": "garlic",
    "মরিচ": "chili",
    "বিস্কুট": "biscuit",
    "চিপস": "chips",
    "টিস্যু": "tissue",
    "মিল্ক": "milk",
    "রিমুভার": "remover",
    "নিমকি": "nimki",
    "ফ্রিডম": "freedom",
    "কোক": "coke",
    "ফান্তা": "fanta",
    "দই": "yogurt",
    "তেল": "oil",
    "চিনি": "sugar",
    "লবণ": "salt",
    "ডাল": "lentils",
    "সাবান": "soap",
    "পানি": "water",
    # Transliterations and English
    "tel": "oil",
    "dim": "eggs",
    "deem": "eggs",
    "egg": "eggs",
    "eggs": "eggs",
    "milk": "milk",
    "dudh": "milk",
    "ata": "flour",
    "atta": "flour",
    "chal": "rice",
    "rice": "rice",
    "alo": "potato",
    "alu": "potato",
    "potato": "potato",
    "ada": "ginger",
    "piaz": "onion",
    "peyaj": "onion",
    "onion": "onion",
    "rosun": "garlic",
    "roshun": "garlic",
    "morich": "chili",
    "chips": "chips",
    "tissue": "tissue",
    "tisu": "tissue",
    "biscuit": "biscuit",
    "biskut": "biscuit",
    "bread": "bread",
    "ruti": "bread",
    "coke": "coke",
    "fanta": "fanta",
    "doi": "yogurt",
    "freedom": "freedom",
    "koyel": "koyel",
    "koyel60": "koyel",
    "rc": "rc cola",
    "rc250": "rc cola",
    "paste": "toothpaste",
    "shampoo": "shampoo",
    "saban": "soap",
    "sabun": "soap",
    "pani": "water",
    "chini": "sugar",
    "lobon": "salt",
    "dal": "lentils",
    "ghee": "ghee",
    "sauce": "sauce",
}

_TRAILING_DIGITS_RE = re.compile(r"[\s\d]+$")
_DIGIT_RE = re.compile(r"\d")
_FUZZY_MIN_LEN = 3
_FUZZY_MAX_DELTA = 2


def _key(raw: str) -> str:
    return collapse_whitespace(unicodedata.normalize("NFC", raw)).lower()


class ItemVocabulary:
    """Alias table with exact, digit-stripped and fuzzy lookup."""

    def __init__(self, aliases: Mapping[str, str] | None = None) -> None:
        table = {_key(k): v for k, v in DEFAULT_ALIASES.items()}
        if aliases:
            table.update({_key(k): v.strip().lower() for k, v in aliases.items() if _key(k)})
        self._aliases: dict[str, str] = table
        # Deterministic fuzzy order: longer keys first, then alphabetical.
        self._fuzzy_keys: tuple[str, ...] = tuple(
            sorted(
                (k for k in table if len(k) >= _FUZZY_MIN_LEN),
                key=lambda k: (-len(k), k),
            )
        )
        self._canonical: frozenset[str] = frozenset(table.values())

    @property
    def canonical_names(self) -> frozenset[str]:
        """Every canonical item name the table can produce."""

        return self._canonical

    def lookup(self, raw: str) -> str | None:
        """Return the canonical name for ``raw`` or ``None`` when unmapped."""

        k = _key(raw)
        if not k:
            return None
        hit = self._aliases.get(k)
        if hit is not None:
            return hit
        stripped = _TRAILING_DIGITS_RE.sub("", k)
        if stripped and stripped != k:
            hit = self._aliases.get(stripped)
            if hit is not None:
                return hit
        else:
            stripped = k
        return self._fuzzy(stripped)

    def _fuzzy(self, candidate: str) -> str | None:
        if len(candidate) < _FUZZY_MIN_LEN:
            return None
        best: tuple[int, str] | None = None
        for key in self._fuzzy_keys:
            delta = abs(len(key) - len(candidate))
            if delta > _FUZZY_MAX_DELTA:
                continue
            if key in candidate or candidate in key:
                if best is None or delta < best[0]:
                    best = (delta, key)
        return self._aliases[best[1]] if best is not None else None

    def map_to_canonical(self, raw: str) -> str:
        """Map ``raw`` to its canonical item name; never fails."""

        hit = self.lookup(raw)
        return hit if hit is not None else _key(raw)

    def is_digit_alias(self, token: str) -> bool:
        """True when ``token`` is itself an alias key that contains digits.

        Such tokens (``"koyel60"``) are item names, not item+amount pairs.
        """

        k = _key(token)
        return bool(_DIGIT_RE.search(k)) and k in self._aliases


_DEFAULT = ItemVocabulary()


def default_vocabulary() -> ItemVocabulary:
    return _DEFAULT


def map_to_canonical(raw: str) -> str:
    """Module-level shortcut using the default alias table."""

    return _DEFAULT.map_to_canonical(raw)


__all__ = [
    "DEFAULT_ALIASES",
    "ItemVocabulary",
    "default_vocabulary",
    "map_to_canonical",
]
