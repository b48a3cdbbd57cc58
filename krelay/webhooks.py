"""
File: krelay/webhooks.py
Path: krelay/webhooks.py

Project: K Relay

Purpose:
Inbound webhook handlers.
- POST /webhooks/line      LINE Messaging API event batches (JSON)
- POST /webhooks/whatsapp  Twilio WhatsApp messages (form-encoded)
- POST /whatsapp           same handler, for Twilio consoles still pointing at
                            the old path

Notes:
- The platform is always acknowledged with 200 straight away. The relay
  runs afterwards as a background task, so a slow completion never makes
  LINE / Twilio retry the webhook.
- Malformed events are logged and skipped; they never fail the batch.
- Signature verification is not done here.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import PlainTextResponse

from krelay import config
from krelay.models import ConversationKind, ConversationRef, InboundMessage, MessageKind
from krelay.outbound.factory import (
    CHANNEL_LINE,
    CHANNEL_WHATSAPP,
    build_send_gateway,
    get_admission_gate,
    get_session_armer,
)
from krelay.outbound.settings import load_openai_settings
from krelay.services.completion_service import CompletionService
from krelay.services.media_service import fetch_inbound_image
from krelay.services.relay_service import RelayService
from krelay.services.spreadsheet_service import SpreadsheetWriter

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
legacy_router = APIRouter(tags=["webhooks"])
logger = logging.getLogger("webhooks")


# Storage for the relay (initialized once)
_relay: Optional[RelayService] = None


def get_relay_service() -> RelayService:
    """Get or create the relay service (singleton)."""
    global _relay
    if _relay is None:
        _relay = RelayService(
            gate=get_admission_gate(),
            armer=get_session_armer(),
            completion_factory=lambda: CompletionService(load_openai_settings()),
            gateway=build_send_gateway(),
            image_fetcher=fetch_inbound_image,
            writer=SpreadsheetWriter(config.EXPORT_DIR),
            public_base_url=config.PUBLIC_BASE_URL,
            system_prompt=config.SYSTEM_PROMPT,
        )
    return _relay


def reset_relay_service() -> None:
    global _relay
    _relay = None


# -------------------------------------------------------------------
# LINE
# -------------------------------------------------------------------
_LINE_SOURCE_KEYS = {
    "user": (ConversationKind.DIRECT, "userId"),
    "group": (ConversationKind.GROUP, "groupId"),
    "room": (ConversationKind.ROOM, "roomId"),
}


def _line_conversation_ref(source: dict) -> ConversationRef:
    kind, id_key = _LINE_SOURCE_KEYS[source["type"]]
    conversation_id = source[id_key]
    if not conversation_id:
        raise ValueError(f"Empty {id_key} in event source")
    return ConversationRef(kind, conversation_id, CHANNEL_LINE)


def _line_mentions_self(message: dict) -> bool:
    mention = message.get("mention") or {}
    return any(m.get("isSelf") for m in mention.get("mentionees") or [])


def parse_line_event(event: dict) -> Optional[InboundMessage]:
    """
    Returns None for events the relay does not handle (follow, join,
    stickers, ...). Raises KeyError / TypeError / ValueError when the
    event is malformed.
    """
    if event.get("type") != "message":
        return None

    message = event["message"]
    message_type = message.get("type")
    ref = _line_conversation_ref(event["source"])
    reply_token = event.get("replyToken")

    if message_type == "text":
        return InboundMessage(
            conversation_ref=ref,
            kind=MessageKind.TEXT,
            raw_text=message["text"],
            reply_token=reply_token,
            mentions_self=_line_mentions_self(message),
        )

    if message_type == "image":
        return InboundMessage(
            conversation_ref=ref,
            kind=MessageKind.IMAGE,
            media_id=message["id"],
            reply_token=reply_token,
        )

    return None


@router.post("/line")
async def line_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    relay: RelayService = Depends(get_relay_service),
):
    # ---- Parse payload ----
    try:
        payload = await request.json()
    except Exception:
        logger.warning("LINE webhook body is not JSON")
        return {"status": "ok"}

    events = payload.get("events") if isinstance(payload, dict) else None
    if not isinstance(events, list):
        logger.warning("LINE webhook without events list")
        return {"status": "ok"}

    logger.info("LINE webhook: %d event(s)", len(events))

    for event in events:
        try:
            message = parse_line_event(event)
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.exception("Skipping malformed LINE event")
            continue

        if message is None:
            continue

        background_tasks.add_task(relay.handle, message)

    return {"status": "ok"}


# -------------------------------------------------------------------
# Twilio WhatsApp
# -------------------------------------------------------------------
def parse_twilio_form(form: Any) -> list[InboundMessage]:
    """
    One Twilio request may carry text, an image, or both.
    The image is returned first: a caption never arms its own image,
    only an earlier command does.
    """
    sender = (form.get("From") or "").strip()
    if not sender:
        raise ValueError("Twilio form without From")

    ref = ConversationRef.direct(sender, CHANNEL_WHATSAPP)
    messages: list[InboundMessage] = []

    num_media = int(form.get("NumMedia") or 0)
    media_url = form.get("MediaUrl0")
    media_type = (form.get("MediaContentType0") or "").lower()
    if num_media > 0 and media_url and media_type.startswith("image/"):
        messages.append(
            InboundMessage(conversation_ref=ref, kind=MessageKind.IMAGE, media_id=media_url)
        )

    body = form.get("Body") or ""
    if body.strip():
        messages.append(
            InboundMessage(conversation_ref=ref, kind=MessageKind.TEXT, raw_text=body)
        )

    return messages


@router.post("/whatsapp", response_class=PlainTextResponse)
async def whatsapp_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    relay: RelayService = Depends(get_relay_service),
):
    try:
        form = await request.form()
        messages = parse_twilio_form(form)
    except Exception:
        logger.exception("Skipping malformed Twilio webhook")
        return "OK"

    logger.info("WhatsApp webhook: %d message(s)", len(messages))

    for message in messages:
        background_tasks.add_task(relay.handle, message)

    # Immediate 200 (Twilio times out slow webhooks)
    return "OK"


legacy_router.add_api_route(
    "/whatsapp",
    whatsapp_webhook,
    methods=["POST"],
    response_class=PlainTextResponse,
)
