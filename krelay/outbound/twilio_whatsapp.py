"""
File: krelay/outbound/twilio_whatsapp.py

Project: K Relay

Purpose:
Twilio WhatsApp channel.
- Send session replies through the Twilio REST client
- Download inbound media (MediaUrl0) with account credentials
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import requests
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from krelay.outbound.gateway import OutboundSendReceipt, OutboundSendRequest, SendGateway, SendStatus
from krelay.outbound.settings import TwilioSettings

logger = logging.getLogger("outbound.twilio")

# WhatsApp body limit enforced by Twilio
MAX_BODY_LENGTH = 1600


class TwilioMediaError(RuntimeError):
    pass


class TwilioWhatsAppGateway(SendGateway):
    def __init__(self, settings: TwilioSettings, client: Optional[Client] = None) -> None:
        self._settings = settings
        self._client = client or Client(settings.account_sid, settings.auth_token)

    def send_text(self, req: OutboundSendRequest) -> OutboundSendReceipt:
        try:
            msg = self._client.messages.create(
                from_=self._settings.whatsapp_from,
                to=req.to,
                body=req.body_text[:MAX_BODY_LENGTH],
            )
        except (TwilioException, requests.RequestException) as e:
            return OutboundSendReceipt.now(status=SendStatus.FAILED, detail=f"Twilio error: {e}")

        return OutboundSendReceipt.now(
            status=SendStatus.SENT,
            detail=f"Twilio status={getattr(msg, 'status', None)}",
            provider_message_id=getattr(msg, "sid", None),
        )


def fetch_twilio_media(
    url: str,
    settings: TwilioSettings,
    session: Optional[requests.Session] = None,
) -> Tuple[bytes, str]:
    """
    Download a media attachment. Twilio media URLs require basic auth.
    Returns (bytes, mime_type).
    """
    get = session.get if session is not None else requests.get
    try:
        resp = get(
            url,
            auth=(settings.account_sid, settings.auth_token),
            timeout=30,
        )
    except requests.RequestException as e:
        raise TwilioMediaError(f"Media download failed: {e}") from e

    if not 200 <= resp.status_code < 300:
        raise TwilioMediaError(f"Media download failed: HTTP {resp.status_code}")

    mime_type = resp.headers.get("Content-Type", "image/jpeg").split(";")[0].strip()
    return resp.content, mime_type
