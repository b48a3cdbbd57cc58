"""
File: krelay/core/admission.py

Project: K Relay

Purpose:
Decide whether an inbound text gets a reply at all, and what text is
forwarded to the completion call.

Rules (evaluated in order):
- Direct chats: always answered. A leading wake prefix ("K ...") is stripped.
- Group / room chats: answered only when
  - the text starts with the wake prefix   -> payload = remainder, trimmed
  - the text contains a group keyword (KKK) -> payload = full text
  - the bot was @mentioned (opt-in)         -> payload = full text
- Anything else: not answered.

Design rules:
- Pure and deterministic
- No network, no platform objects
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

from krelay.core.text import normalize
from krelay.models import ConversationKind

TRIGGER_DIRECT = "direct"
TRIGGER_WAKE = "wake"
TRIGGER_KEYWORD = "keyword"
TRIGGER_MENTION = "mention"


@dataclass(frozen=True)
class GateOptions:
    wake_letter: str = "K"
    group_trigger_keywords: Tuple[str, ...] = ("KKK",)
    allow_mention_trigger: bool = False


@dataclass(frozen=True)
class AdmissionResult:
    respond: bool
    payload: Optional[str] = None
    trigger: Optional[str] = None


_REJECTED = AdmissionResult(respond=False)


@dataclass
class AdmissionGate:
    options: GateOptions = field(default_factory=GateOptions)

    def __post_init__(self) -> None:
        letter = re.escape(self.options.wake_letter)
        # \s covers U+3000 (ideographic space) in str patterns
        self._wake_re = re.compile(rf"^\s*{letter}\s+", re.IGNORECASE)
        self._keywords = tuple(
            k.casefold() for k in self.options.group_trigger_keywords if k
        )

    # -------------------------------------------------
    # Helpers
    # -------------------------------------------------
    def normalize(self, text: str | None) -> str:
        return normalize(text, self.options.wake_letter)

    def match_wake_prefix(self, text: str | None) -> Optional[str]:
        """
        Returns the trimmed remainder when the text starts with the wake
        prefix, None otherwise. The remainder may be the empty string.
        """
        normalized = self.normalize(text)
        m = self._wake_re.match(normalized)
        if not m:
            return None
        return normalized[m.end():].strip()

    def _has_group_keyword(self, normalized: str) -> bool:
        folded = normalized.casefold()
        return any(k in folded for k in self._keywords)

    # -------------------------------------------------
    # Gate
    # -------------------------------------------------
    def admit(
        self,
        kind: ConversationKind,
        raw_text: str | None,
        *,
        mentions_self: bool = False,
    ) -> AdmissionResult:
        stripped = self.match_wake_prefix(raw_text)

        if kind == ConversationKind.DIRECT:
            payload = stripped if stripped is not None else (raw_text or "")
            return AdmissionResult(True, payload, TRIGGER_DIRECT)

        if stripped is not None:
            return AdmissionResult(True, stripped, TRIGGER_WAKE)

        normalized = self.normalize(raw_text)

        if self._has_group_keyword(normalized):
            return AdmissionResult(True, normalized, TRIGGER_KEYWORD)

        if mentions_self and self.options.allow_mention_trigger:
            return AdmissionResult(True, normalized, TRIGGER_MENTION)

        return _REJECTED
