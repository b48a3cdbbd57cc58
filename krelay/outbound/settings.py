"""
krelay/outbound/settings.py
K Relay
Credential Settings

Purpose:
- Centralised credentials for LINE, Twilio and OpenAI.
- Keep secrets out of code via environment variables.

Notes:
- Required for LINE:
  - LINE_CHANNEL_ACCESS_TOKEN
- Required for Twilio WhatsApp:
  - TWILIO_SID
  - TWILIO_AUTH_TOKEN
- Required for OpenAI:
  - OPENAI_API_KEY
- Optional:
  - LINE_API_BASE_URL / LINE_DATA_API_BASE_URL
  - TWILIO_WHATSAPP_FROM (defaults to the Twilio sandbox number)
  - OPENAI_ORG / OPENAI_PROJECT
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from krelay import config

TWILIO_SANDBOX_FROM = "whatsapp:+14155238886"


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise RuntimeError(
            f"Missing required environment variable: {name}. "
            f"Set it in your .env / shell before running."
        )
    return value


def _optional_env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


# -------------------------------------------------
# LINE
# -------------------------------------------------
@dataclass(frozen=True)
class LineSettings:
    access_token: str
    api_base_url: str = "https://api.line.me"
    data_api_base_url: str = "https://api-data.line.me"

    @property
    def reply_url(self) -> str:
        return f"{self.api_base_url}/v2/bot/message/reply"

    @property
    def push_url(self) -> str:
        return f"{self.api_base_url}/v2/bot/message/push"

    def content_url(self, message_id: str) -> str:
        return f"{self.data_api_base_url}/v2/bot/message/{message_id}/content"


def load_line_settings() -> LineSettings:
    return LineSettings(
        access_token=_require_env("LINE_CHANNEL_ACCESS_TOKEN"),
        api_base_url=os.getenv("LINE_API_BASE_URL", "https://api.line.me").strip().rstrip("/"),
        data_api_base_url=os.getenv(
            "LINE_DATA_API_BASE_URL", "https://api-data.line.me"
        ).strip().rstrip("/"),
    )


# -------------------------------------------------
# Twilio WhatsApp
# -------------------------------------------------
@dataclass(frozen=True)
class TwilioSettings:
    account_sid: str
    auth_token: str
    whatsapp_from: str = TWILIO_SANDBOX_FROM


def load_twilio_settings() -> TwilioSettings:
    return TwilioSettings(
        account_sid=_require_env("TWILIO_SID"),
        auth_token=_require_env("TWILIO_AUTH_TOKEN"),
        whatsapp_from=os.getenv("TWILIO_WHATSAPP_FROM", TWILIO_SANDBOX_FROM).strip(),
    )


# -------------------------------------------------
# OpenAI
# -------------------------------------------------
@dataclass(frozen=True)
class OpenAISettings:
    api_key: str
    model: str
    vision_model: str
    organization: Optional[str] = None
    project: Optional[str] = None


def load_openai_settings() -> OpenAISettings:
    return OpenAISettings(
        api_key=_require_env("OPENAI_API_KEY"),
        model=config.OPENAI_MODEL,
        vision_model=config.OPENAI_VISION_MODEL,
        organization=_optional_env("OPENAI_ORG"),
        project=_optional_env("OPENAI_PROJECT"),
    )
