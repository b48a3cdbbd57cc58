"""
File: krelay/services/completion_service.py
Path: krelay/services/completion_service.py

Project: K Relay

Purpose:
Thin wrapper around the OpenAI chat completions API.
- complete(): one reply for one admitted message
- extract_table(): read a photographed sales table into records

Design rules:
- One request per call, no retries (client defaults apply)
- All SDK / response-shape failures surface as CompletionError
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from krelay.outbound.settings import OpenAISettings
from krelay.services.spreadsheet_service import TABLE_COLUMNS, parse_table_records

logger = logging.getLogger("completion_service")

EXTRACTION_PROMPT = (
    "The image is a photographed daily sales table. "
    "Extract every row and answer with JSON only: a list of objects with the keys "
    + ", ".join(TABLE_COLUMNS)
    + ". Use numbers for amounts, the date as written, and null for empty cells. "
    "Do not add any explanation."
)


class CompletionError(RuntimeError):
    pass


class CompletionService:
    def __init__(self, settings: OpenAISettings, client: Optional[Any] = None) -> None:
        self._settings = settings
        self._client = client or OpenAI(
            api_key=settings.api_key,
            organization=settings.organization,
            project=settings.project,
        )

    def _create(self, *, model: str, messages: list[dict]) -> str:
        try:
            resp = self._client.chat.completions.create(model=model, messages=messages)
        except OpenAIError as e:
            raise CompletionError(f"Completion request failed: {e}") from e

        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise CompletionError("Malformed completion response") from e

        if not content:
            raise CompletionError("Empty completion response")
        return content.strip()

    def complete(self, system_prompt: str, user_text: str) -> str:
        return self._create(
            model=self._settings.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_text},
            ],
        )

    def extract_table(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> list[dict]:
        """
        Returns the table rows keyed by TABLE_COLUMNS.
        Raises ExtractionFormatError when the answer is not a record list.
        """
        data_url = f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"
        content = self._create(
            model=self._settings.vision_model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": EXTRACTION_PROMPT},
                        {"type": "image_url", "image_url": {"url": data_url}},
                    ],
                }
            ],
        )
        logger.info("Extraction answer: %d chars", len(content))
        return parse_table_records(content)
