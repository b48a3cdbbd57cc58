"""
File: krelay/core/text.py

Purpose:
Canonicalize inbound text before trigger matching.

Only the wake letter is folded. Japanese users often type it with a
full-width IME ("Ｋ こんにちは"), everything else is left as typed.
"""

from __future__ import annotations

# Offset between ASCII "!".."~" and the full-width forms U+FF01..U+FF5E
_FULLWIDTH_OFFSET = 0xFEE0


def _fullwidth(ch: str) -> str:
    return chr(ord(ch) + _FULLWIDTH_OFFSET)


def normalize(text: str | None, wake_letter: str = "K") -> str:
    """
    Map the full-width forms of the wake letter (upper and lower case)
    to their half-width equivalents. Idempotent; never fails.
    """
    if not text:
        return ""

    upper = wake_letter.upper()
    lower = wake_letter.lower()
    table = {
        ord(_fullwidth(upper)): upper,
        ord(_fullwidth(lower)): lower,
    }
    return text.translate(table)
