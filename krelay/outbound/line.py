"""
File: krelay/outbound/line.py
Path: krelay/outbound/line.py

Project: K Relay

Purpose:
LINE Messaging API client.
Supports:
- Reply messages (reply token, free of charge, valid for a short time)
- Push messages (to a user / group / room id)
- Message content download (images sent to the bot)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import requests

from krelay.outbound.gateway import OutboundSendReceipt, OutboundSendRequest, SendGateway, SendStatus
from krelay.outbound.settings import LineSettings

logger = logging.getLogger("outbound.line")

# LINE rejects text messages longer than this
MAX_TEXT_LENGTH = 5000


class LineMessagingError(RuntimeError):
    pass


@dataclass(frozen=True)
class LineSendResult:
    ok: bool
    status_code: int
    response_json: Dict[str, Any]


class LineMessagingClient:
    def __init__(
        self,
        settings: LineSettings,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._settings.access_token}",
            "Content-Type": "application/json",
        }

    def _post(self, url: str, payload: Dict[str, Any]) -> LineSendResult:
        resp = self._session.post(
            url,
            json=payload,
            headers=self._headers(),
            timeout=30,
        )

        try:
            data = resp.json()
        except Exception:
            data = {"raw_text": resp.text}

        return LineSendResult(
            ok=200 <= resp.status_code < 300,
            status_code=resp.status_code,
            response_json=data,
        )

    @staticmethod
    def _text_messages(text: str) -> list[Dict[str, str]]:
        if not text:
            raise LineMessagingError("Message text cannot be empty")
        return [{"type": "text", "text": text[:MAX_TEXT_LENGTH]}]

    # ---------------------------------------------------------
    # REPLY MESSAGE
    # ---------------------------------------------------------
    def reply_text(self, *, reply_token: str, text: str) -> LineSendResult:
        payload = {
            "replyToken": reply_token,
            "messages": self._text_messages(text),
        }
        return self._post(self._settings.reply_url, payload)

    # ---------------------------------------------------------
    # PUSH MESSAGE
    # ---------------------------------------------------------
    def push_text(self, *, to: str, text: str) -> LineSendResult:
        payload = {
            "to": to,
            "messages": self._text_messages(text),
        }
        return self._post(self._settings.push_url, payload)

    # ---------------------------------------------------------
    # CONTENT (images)
    # ---------------------------------------------------------
    def get_message_content(self, message_id: str) -> Tuple[bytes, str]:
        """
        Download the binary content of an image message.
        Returns (bytes, mime_type).
        """
        try:
            resp = self._session.get(
                self._settings.content_url(message_id),
                headers={"Authorization": f"Bearer {self._settings.access_token}"},
                timeout=30,
            )
        except requests.RequestException as e:
            raise LineMessagingError(f"Content download failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise LineMessagingError(
                f"Content download failed: HTTP {resp.status_code} for message {message_id}"
            )

        mime_type = resp.headers.get("Content-Type", "image/jpeg").split(";")[0].strip()
        return resp.content, mime_type


class LineSendGateway(SendGateway):
    """
    Reply with the reply token when we still have one, push otherwise.
    """

    def __init__(self, client: LineMessagingClient) -> None:
        self._client = client

    def send_text(self, req: OutboundSendRequest) -> OutboundSendReceipt:
        try:
            if req.reply_token:
                result = self._client.reply_text(reply_token=req.reply_token, text=req.body_text)
            else:
                result = self._client.push_text(to=req.to, text=req.body_text)
        except (LineMessagingError, requests.RequestException) as e:
            return OutboundSendReceipt.now(status=SendStatus.FAILED, detail=str(e))

        if not result.ok:
            return OutboundSendReceipt.now(
                status=SendStatus.FAILED,
                detail=f"LINE HTTP {result.status_code}: {result.response_json}",
            )

        return OutboundSendReceipt.now(
            status=SendStatus.SENT,
            detail=f"LINE HTTP {result.status_code}",
        )
