"""Tests for wake-letter normalization."""

import pytest

from krelay.core.text import normalize


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Ｋ", "K"),
        ("ｋ", "k"),
        ("abc", "abc"),
        ("Ｋ　こんにちは", "K　こんにちは"),
        ("ＡＢＣ", "ＡＢＣ"),
    ],
)
def test_normalize(raw, expected):
    assert normalize(raw) == expected


def test_normalize_is_idempotent():
    text = "ｋ ＫＫＫ 画像"
    assert normalize(normalize(text)) == normalize(text)


def test_normalize_empty_and_none():
    assert normalize("") == ""
    assert normalize(None) == ""


def test_normalize_custom_wake_letter():
    assert normalize("Ｑ ｑ Ｋ", wake_letter="Q") == "Q q Ｋ"
