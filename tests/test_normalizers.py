from __future__ import annotations

import pytest

from purchase_ledger.normalizers import (
    collapse_whitespace,
    convert_numerals,
    has_letter,
    normalize,
    strip_boilerplate,
)


def test_bengali_digits_become_western_digits():
    assert convert_numerals("দুধ ১০০") == "দুধ 100"
    assert convert_numerals("৪৫.৫০") == "45.50"


def test_number_words_are_rewritten_with_spacing():
    assert convert_numerals("দুধ পঞ্চাশ") == "দুধ 50"
    assert convert_numerals("চাল একশো") == "চাল 100"


def test_number_words_inside_other_words_are_kept():
    assert convert_numerals("আশিক 50") == "আশিক 50"
    assert convert_numerals("ষাটগম্বুজ") == "ষাটগম্বুজ"


def test_convert_numerals_keeps_labels():
    text = "কেনা: ১২৫০ টাকা বিবরণ: চাল"
    assert convert_numerals(text) == "কেনা: 1250 টাকা বিবরণ: চাল"


def test_strip_boilerplate_removes_currency_labels_and_urls():
    text = "বিবরণ: চাল 500 টাকা https://pay.example.com/x?y=1 যেভাবে পেমেন্ট করবেন"
    assert strip_boilerplate(text) == ": চাল 500"


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("milk 100 tk", "milk 100"),
        ("milk 100tk.", "milk 100"),
        ("Milk 100 Taka", "Milk 100"),
        ("৳ 120 biscuit", "120 biscuit"),
    ],
)
def test_latin_currency_words_are_stripped(raw: str, expected: str):
    assert normalize(raw) == expected


def test_currency_word_inside_other_words_is_kept():
    # "tk" only counts as a standalone token.
    assert normalize("atkins 30") == "atkins 30"


def test_whitespace_is_collapsed_and_trimmed():
    assert collapse_whitespace("  alo \t 140 \n ") == "alo 140"


@pytest.mark.parametrize(
    "text",
    [
        "alo 140",
        "দুধ ১০০ টাকা",
        "কেনা: ১২৫০ টাকা বিবরণ: চাল বর্তমান বাকি: ৫০০০ টাকা",
        "  milk   100 tk https://x.example ",
        "",
    ],
)
def test_normalize_is_idempotent(text: str):
    once = normalize(text)
    assert normalize(once) == once


def test_unknown_characters_pass_through():
    assert normalize("café ☕ 40") == "café ☕ 40"


def test_has_letter():
    assert has_letter("milk")
    assert has_letter("দুধ")
    assert not has_letter("১২৩")
    assert not has_letter("123 :-")
