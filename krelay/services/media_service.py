"""
File: krelay/services/media_service.py

Project: K Relay

Purpose:
Download the image attached to an inbound message.
- LINE: media_id is the message id (content endpoint)
- WhatsApp: media_id is the Twilio MediaUrl0

Every failure is raised as ImageFetchError so the relay can report
"conversion failed" for that event only.
"""

from __future__ import annotations

import logging
from typing import Tuple

import requests

from krelay.models import InboundMessage
from krelay.outbound.factory import CHANNEL_LINE, CHANNEL_WHATSAPP, get_line_client, get_twilio_settings
from krelay.outbound.twilio_whatsapp import fetch_twilio_media
from krelay.services.relay_service import ImageFetchError

logger = logging.getLogger("media_service")


def fetch_inbound_image(message: InboundMessage) -> Tuple[bytes, str]:
    channel = message.conversation_ref.channel
    if not message.media_id:
        raise ImageFetchError("Image message has no media id")

    try:
        if channel == CHANNEL_LINE:
            content, mime_type = get_line_client().get_message_content(message.media_id)
        elif channel == CHANNEL_WHATSAPP:
            content, mime_type = fetch_twilio_media(message.media_id, get_twilio_settings())
        else:
            raise ImageFetchError(f"Unknown channel: {channel}")
    except ImageFetchError:
        raise
    except (RuntimeError, requests.RequestException) as e:
        raise ImageFetchError(str(e)) from e

    if not content:
        raise ImageFetchError("Image download returned no content")

    logger.info("Fetched image: %d bytes (%s)", len(content), mime_type)
    return content, mime_type
