"""
File: krelay/core/arming.py

Project: K Relay

Purpose:
Per-conversation "armed" slot for the image-to-spreadsheet flow.

A text command such as "K 画像を解析して" arms the conversation for a short
window (90s by default). The next image in that conversation consumes the
slot and is converted to a spreadsheet. Without an armed slot, images are
not processed.

States per conversation:
  UNARMED --try_arm ok-------> ARMED
  ARMED   --try_consume ok---> UNARMED   (image processed)
  ARMED   --window elapses---> UNARMED   (silently expires)
  ARMED   --try_arm again----> ARMED     (new expiry replaces the old one)

Design rules:
- One live slot per conversation; a new arm overwrites the previous one
- try_consume is check-then-delete under one lock (never two winners)
- Expired slots are evicted lazily; sweep() is for memory hygiene only
"""

from __future__ import annotations

import re
import threading
import time
from datetime import timedelta
from typing import Callable, Dict, Optional

from krelay.core.admission import AdmissionGate
from krelay.models import ArmedSession, ConversationRef

DEFAULT_ARM_WINDOW = timedelta(seconds=90)

IMAGE_COMMAND_RE = re.compile(
    # Latin keywords as whole words ("vegetable" is not "table")
    r"(?<![a-z])(?:images?|photos?|analy[sz]e|tables?|excel|ocr)(?![a-z])"
    # Japanese: 表 only as a noun of its own ("発表", "表示" do not count)
    r"|画像|写真|解析|エクセル|読み取|売上表|(?<![\u4e00-\u9fff])表(?:を|の|に|で)",
    re.IGNORECASE,
)


class SessionArmer:
    def __init__(
        self,
        window: timedelta = DEFAULT_ARM_WINDOW,
        clock: Callable[[], float] = time.monotonic,
        gate: Optional[AdmissionGate] = None,
        command_re: re.Pattern = IMAGE_COMMAND_RE,
    ) -> None:
        self._window = window.total_seconds()
        self._clock = clock
        self._gate = gate or AdmissionGate()
        self._command_re = command_re
        self._sessions: Dict[ConversationRef, ArmedSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    @property
    def window_seconds(self) -> float:
        return self._window

    # -------------------------------------------------
    # Classification
    # -------------------------------------------------
    def is_image_command(self, text: str | None) -> bool:
        payload = self._gate.match_wake_prefix(text)
        if payload is None:
            return False
        return self._command_re.search(payload) is not None

    # -------------------------------------------------
    # Slot operations
    # -------------------------------------------------
    def try_arm(
        self,
        ref: ConversationRef,
        text: str | None,
        now: Optional[float] = None,
    ) -> bool:
        if not self.is_image_command(text):
            return False

        now = self._clock() if now is None else now
        session = ArmedSession(
            conversation_ref=ref,
            armed_at=now,
            expires_at=now + self._window,
        )
        with self._lock:
            self._evict_expired(now)
            self._sessions[ref] = session
        return True

    def try_consume(self, ref: ConversationRef, now: Optional[float] = None) -> bool:
        now = self._clock() if now is None else now
        with self._lock:
            session = self._sessions.get(ref)
            if session is None:
                return False
            if session.expires_at < now:
                del self._sessions[ref]
                return False
            del self._sessions[ref]
            return True

    def get(self, ref: ConversationRef) -> Optional[ArmedSession]:
        with self._lock:
            return self._sessions.get(ref)

    def sweep(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        with self._lock:
            return self._evict_expired(now)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()

    def _evict_expired(self, now: float) -> int:
        # caller holds the lock
        expired = [ref for ref, s in self._sessions.items() if s.expires_at < now]
        for ref in expired:
            del self._sessions[ref]
        return len(expired)
