from __future__ import annotations

import pytest

from purchase_ledger.vocabulary import ItemVocabulary, map_to_canonical


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("alo", "potato"),
        ("ALO", "potato"),
        ("dim", "eggs"),
        ("tel", "oil"),
        ("ডিম", "eggs"),
        ("দুধ", "milk"),
        ("টিস্যু", "tissue"),
        ("  Milk ", "milk"),
    ],
)
def test_exact_aliases(raw: str, expected: str):
    assert map_to_canonical(raw) == expected


def test_trailing_digits_are_stripped_before_retrying():
    assert map_to_canonical("tel2") == "oil"
    assert map_to_canonical("koyel60") == "koyel"
    assert map_to_canonical("rc250") == "rc cola"


def test_substring_match_tolerates_small_length_difference():
    # "potatoes" contains "potato" and differs by two characters.
    assert map_to_canonical("potatoes") == "potato"
    assert map_to_canonical("biscuits") == "biscuit"


def test_substring_match_rejects_large_length_difference():
    # "milkshake" contains "milk" but is five characters longer.
    assert map_to_canonical("milkshake") == "milkshake"


def test_unknown_items_pass_through_lowercased():
    assert map_to_canonical("  Chapati ") == "chapati"
    assert map_to_canonical("Green  Chili") == "green chili"


def test_extra_aliases_extend_the_table():
    vocab = ItemVocabulary({"Roti": "flatbread", "ghee": "clarified butter"})
    assert vocab.map_to_canonical("roti") == "flatbread"
    assert vocab.map_to_canonical("ghee") == "clarified butter"
    # Defaults survive.
    assert vocab.map_to_canonical("alo") == "potato"
    assert "flatbread" in vocab.canonical_names


def test_digit_alias_detection():
    vocab = ItemVocabulary()
    assert vocab.is_digit_alias("koyel60")
    assert vocab.is_digit_alias("RC250")
    assert not vocab.is_digit_alias("tel173")
    assert not vocab.is_digit_alias("koyel")


def test_lookup_returns_none_for_unmapped():
    vocab = ItemVocabulary()
    assert vocab.lookup("chapati") is None
    assert vocab.lookup("") is None
