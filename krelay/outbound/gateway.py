"""
K Relay
Outbound delivery abstraction

This module defines a stable SendGateway interface and strongly-typed
request/receipt objects for outbound replies.

Guardrails:
- Gateways never raise for delivery failures; they return a FAILED receipt.
- Replies are fire-and-forget: no retries, the caller only logs the receipt.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol, Optional


class SendStatus(str, Enum):
    DRY_RUN = "dry_run"
    SENT = "sent"
    FAILED = "failed"


@dataclass(frozen=True)
class OutboundSendRequest:
    """
    Represents one reply to a conversation.

    - channel is "line" or "whatsapp"
    - to is the platform address (LINE user/group/room id, "whatsapp:+..." for Twilio)
    - reply_token is LINE only; when set the reply endpoint is used instead of push
    """
    channel: str
    to: str
    body_text: str
    reply_token: Optional[str] = None


@dataclass(frozen=True)
class OutboundSendReceipt:
    """
    Result of a delivery attempt (or simulated attempt).
    """
    status: SendStatus
    provider_message_id: Optional[str]
    detail: str
    created_at_utc: datetime

    @property
    def ok(self) -> bool:
        return self.status != SendStatus.FAILED

    @staticmethod
    def now(status: SendStatus, detail: str, provider_message_id: Optional[str] = None) -> "OutboundSendReceipt":
        return OutboundSendReceipt(
            status=status,
            provider_message_id=provider_message_id,
            detail=detail,
            created_at_utc=datetime.now(timezone.utc),
        )


class SendGateway(Protocol):
    """
    Abstract gateway for outbound delivery.
    """
    def send_text(self, req: OutboundSendRequest) -> OutboundSendReceipt:
        """
        Deliver a text reply (or simulate it, depending on gateway).
        Must not throw in normal cases.
        """
        ...
