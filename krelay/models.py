"""
File: krelay/models.py
Path: krelay/models.py

Project: K Relay

Purpose:
In-memory data model shared by the webhooks, the gate and the relay pipeline.

Design rules:
- Immutable value objects only
- No persistence (nothing here outlives the process)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ConversationKind(str, Enum):
    DIRECT = "direct"
    GROUP = "group"
    ROOM = "room"


class MessageKind(str, Enum):
    TEXT = "text"
    IMAGE = "image"


@dataclass(frozen=True)
class ConversationRef:
    """
    Identifies one chat on one platform.

    - kind decides how the admission gate treats the text
    - id is the platform id (LINE userId/groupId/roomId, Twilio "whatsapp:+..." address)
    - channel keeps ids from different platforms apart ("line" / "whatsapp")
    """
    kind: ConversationKind
    id: str
    channel: str = "line"

    @classmethod
    def direct(cls, user_id: str, channel: str = "line") -> "ConversationRef":
        return cls(ConversationKind.DIRECT, user_id, channel)

    @classmethod
    def group(cls, group_id: str, channel: str = "line") -> "ConversationRef":
        return cls(ConversationKind.GROUP, group_id, channel)

    @classmethod
    def room(cls, room_id: str, channel: str = "line") -> "ConversationRef":
        return cls(ConversationKind.ROOM, room_id, channel)


@dataclass(frozen=True)
class InboundMessage:
    """
    One inbound text or image, derived from a platform event.
    Discarded after processing.
    """
    conversation_ref: ConversationRef
    kind: MessageKind
    raw_text: Optional[str] = None
    media_id: Optional[str] = None

    # LINE only: short-lived token for the reply endpoint
    reply_token: Optional[str] = None

    # LINE only: the bot itself was @mentioned
    mentions_self: bool = False


@dataclass(frozen=True)
class ArmedSession:
    conversation_ref: ConversationRef
    armed_at: float
    expires_at: float
