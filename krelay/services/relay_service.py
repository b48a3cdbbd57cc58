"""
File: krelay/services/relay_service.py
Path: krelay/services/relay_service.py

Project: K Relay

Purpose:
Authoritative per-event pipeline:
- Text  -> admission gate -> (arm | completion) -> reply
- Image -> armed? -> fetch -> table extraction -> .xlsx -> download link

Design rules:
- Webhooks acknowledge first and hand the event to handle()
- handle() never raises; every failure is logged per event
- Replies are fire-and-forget (no retries, failures only logged)
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, Tuple

from krelay.core.admission import AdmissionGate
from krelay.core.arming import SessionArmer
from krelay.models import InboundMessage, MessageKind
from krelay.outbound.gateway import OutboundSendRequest, SendGateway
from krelay.services.spreadsheet_service import ExtractionFormatError, SpreadsheetWriter

logger = logging.getLogger("relay_service")

ARMED_PROMPT = "📷 {seconds}秒以内に表の画像を送ってください。Excelに変換します。"
CONVERSION_FAILED = "⚠️ 変換に失敗しました。もう一度お試しください。"
CONVERSION_DONE = "✅ Excelファイルを作成しました:\n{url}"
NO_ROWS_FOUND = "ℹ️ 画像から表の行が見つかりませんでした。表全体が写るように撮り直してください。"


class ImageFetchError(RuntimeError):
    pass


class Completer(Protocol):
    def complete(self, system_prompt: str, user_text: str) -> str: ...

    def extract_table(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> list[dict]: ...


# (message) -> (bytes, mime_type)
ImageFetcher = Callable[[InboundMessage], Tuple[bytes, str]]


class RelayService:
    def __init__(
        self,
        *,
        gate: AdmissionGate,
        armer: SessionArmer,
        completion_factory: Callable[[], Completer],
        gateway: SendGateway,
        image_fetcher: ImageFetcher,
        writer: SpreadsheetWriter,
        public_base_url: str,
        system_prompt: str,
    ) -> None:
        self._gate = gate
        self._armer = armer
        self._completion_factory = completion_factory
        self._completion: Optional[Completer] = None
        self._gateway = gateway
        self._fetch_image = image_fetcher
        self._writer = writer
        self._public_base_url = public_base_url.rstrip("/")
        self._system_prompt = system_prompt

    @property
    def completion(self) -> Completer:
        # Built lazily: a missing OPENAI_API_KEY fails the event, not the app
        if self._completion is None:
            self._completion = self._completion_factory()
        return self._completion

    # ------------------------------------------------------------------
    # Public entry
    # ------------------------------------------------------------------
    def handle(self, message: InboundMessage) -> None:
        try:
            if message.kind == MessageKind.IMAGE:
                self._handle_image(message)
            else:
                self._handle_text(message)
        except Exception:
            logger.exception(
                "Unhandled error for %s/%s",
                message.conversation_ref.channel,
                message.conversation_ref.id,
            )

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------
    def _handle_text(self, message: InboundMessage) -> None:
        ref = message.conversation_ref
        result = self._gate.admit(
            ref.kind,
            message.raw_text,
            mentions_self=message.mentions_self,
        )
        if not result.respond:
            logger.info("Not admitted: %s/%s", ref.channel, ref.id)
            return

        logger.info("Admitted (%s): %s/%s", result.trigger, ref.channel, ref.id)

        if self._armer.try_arm(ref, message.raw_text):
            logger.info("Armed for image: %s/%s", ref.channel, ref.id)
            self._reply(message, ARMED_PROMPT.format(seconds=int(self._armer.window_seconds)))
            return

        try:
            reply = self.completion.complete(self._system_prompt, result.payload or "")
        except RuntimeError:
            # CompletionError, or missing OpenAI credentials
            logger.exception("Completion failed for %s/%s", ref.channel, ref.id)
            return

        logger.info("K reply: %s", reply[:80])
        self._reply(message, reply)

    # ------------------------------------------------------------------
    # Image
    # ------------------------------------------------------------------
    def _handle_image(self, message: InboundMessage) -> None:
        ref = message.conversation_ref
        if not self._armer.try_consume(ref):
            logger.info("Image ignored (not armed): %s/%s", ref.channel, ref.id)
            return

        try:
            image_bytes, mime_type = self._fetch_image(message)
            records = self.completion.extract_table(image_bytes, mime_type)
            if not records:
                logger.info("No table rows found for %s/%s", ref.channel, ref.id)
                self._reply(message, NO_ROWS_FOUND)
                return
            path = self._writer.write(records)
        except ExtractionFormatError:
            logger.warning("Extraction output malformed for %s/%s", ref.channel, ref.id, exc_info=True)
            self._reply(message, CONVERSION_FAILED)
            return
        except (RuntimeError, OSError):
            logger.exception("Spreadsheet conversion failed for %s/%s", ref.channel, ref.id)
            self._reply(message, CONVERSION_FAILED)
            return
        except Exception:
            # slot already consumed; always answer
            logger.exception("Unexpected spreadsheet error for %s/%s", ref.channel, ref.id)
            self._reply(message, CONVERSION_FAILED)
            return

        url = f"{self._public_base_url}/files/{path.name}"
        logger.info("Spreadsheet written: %s (%d rows)", path.name, len(records))
        self._reply(message, CONVERSION_DONE.format(url=url))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------
    def _reply(self, message: InboundMessage, text: str) -> None:
        ref = message.conversation_ref
        receipt = self._gateway.send_text(
            OutboundSendRequest(
                channel=ref.channel,
                to=ref.id,
                body_text=text,
                reply_token=message.reply_token,
            )
        )
        if receipt.ok:
            logger.info("Reply %s to %s/%s", receipt.status.value, ref.channel, ref.id)
        else:
            logger.error("Reply failed to %s/%s: %s", ref.channel, ref.id, receipt.detail)
