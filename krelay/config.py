"""
krelay/config.py
Application configuration
Environment-driven (.env supported for local runs)

Secrets (tokens, API keys) are NOT read here. They are loaded lazily by
krelay/outbound/settings.py so the app can start without them.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ---- Process ----
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", "3000"))

# ---- Outbound ----
# "live" sends through LINE / Twilio, "dry_run" only logs
OUTBOUND_MODE = os.getenv("OUTBOUND_MODE", "live").strip().lower()

# ---- LLM ----
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_VISION_MODEL = os.getenv("OPENAI_VISION_MODEL", OPENAI_MODEL)

SYSTEM_PROMPT = os.getenv(
    "K_SYSTEM_PROMPT",
    "You are K, an assistant for Japan Village Restaurant and SPA in Qatar. "
    "Respond politely and concisely in Japanese when user writes in Japanese.",
)

# ---- Admission ----
WAKE_LETTER = os.getenv("WAKE_LETTER", "K")
GROUP_TRIGGER_KEYWORDS = tuple(
    k.strip()
    for k in os.getenv("GROUP_TRIGGER_KEYWORDS", "KKK").split(",")
    if k.strip()
)
ALLOW_MENTION_TRIGGER = _env_bool("ALLOW_MENTION_TRIGGER")
ARM_WINDOW_SECONDS = int(os.getenv("ARM_WINDOW_SECONDS", "90"))

# ---- Spreadsheet export ----
EXPORT_DIR = os.getenv("EXPORT_DIR", "./exports")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", f"http://localhost:{PORT}").rstrip("/")
