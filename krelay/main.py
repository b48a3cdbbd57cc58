"""
File: krelay/main.py

Project: K Relay

Purpose:
Application entry point.
Responsible only for:
- Logging setup
- FastAPI app creation
- Router registration (webhooks, files, health)

Design principles:
- No business logic in this file
- All inbound processing is delegated to krelay.webhooks
"""

import logging

import uvicorn
from fastapi import FastAPI

from krelay import config
from krelay.files import router as files_router
from krelay.health import router as health_router
from krelay.webhooks import legacy_router as legacy_webhooks_router
from krelay.webhooks import router as webhooks_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="K Relay")

# -------------------------------------------------------------------
# Webhook routes (POST /webhooks/line, POST /webhooks/whatsapp)
# -------------------------------------------------------------------
app.include_router(webhooks_router)
app.include_router(legacy_webhooks_router)

# -------------------------------------------------------------------
# Generated spreadsheets (GET /files/{filename})
# -------------------------------------------------------------------
app.include_router(files_router)

# -------------------------------------------------------------------
# Health
# -------------------------------------------------------------------
app.include_router(health_router)


def run() -> None:
    logging.getLogger("main").info("K relay starting on port %s", config.PORT)
    uvicorn.run(app, host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
