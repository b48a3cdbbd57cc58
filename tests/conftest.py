"""Shared pytest fixtures for krelay tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from krelay import config
from krelay.core.admission import AdmissionGate
from krelay.core.arming import SessionArmer
from krelay.models import ConversationRef
from krelay.outbound.gateway import OutboundSendReceipt, OutboundSendRequest, SendStatus
from krelay.services.relay_service import RelayService
from krelay.services.spreadsheet_service import SpreadsheetWriter


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingGateway:
    def __init__(self, status: SendStatus = SendStatus.SENT) -> None:
        self.status = status
        self.sent: list[OutboundSendRequest] = []

    def send_text(self, req: OutboundSendRequest) -> OutboundSendReceipt:
        self.sent.append(req)
        return OutboundSendReceipt.now(status=self.status, detail="recorded")

    @property
    def texts(self) -> list[str]:
        return [r.body_text for r in self.sent]


class FakeCompletion:
    def __init__(self, reply: str = "こんにちは、Kです。", records=None, error: Exception | None = None) -> None:
        self.reply = reply
        self.records = records if records is not None else [
            {"date": "10/1", "delivery": 100, "credit": 200, "cash": 300,
             "total": 600, "diff": 0, "mark": ""},
        ]
        self.error = error
        self.prompts: list[tuple[str, str]] = []
        self.images: list[tuple[bytes, str]] = []

    def complete(self, system_prompt: str, user_text: str) -> str:
        self.prompts.append((system_prompt, user_text))
        if self.error:
            raise self.error
        return self.reply

    def extract_table(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> list[dict]:
        self.images.append((image_bytes, mime_type))
        if self.error:
            raise self.error
        return self.records


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    export_dir = tmp_path / "exports"
    monkeypatch.setattr(config, "EXPORT_DIR", str(export_dir))
    monkeypatch.setattr(config, "PUBLIC_BASE_URL", "https://k.example.com")
    for name in (
        "LINE_CHANNEL_ACCESS_TOKEN",
        "TWILIO_SID",
        "TWILIO_AUTH_TOKEN",
        "OPENAI_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    return export_dir


@pytest.fixture(autouse=True)
def _reset_singletons():
    from krelay.outbound.factory import reset_singletons
    from krelay.webhooks import reset_relay_service

    reset_singletons()
    reset_relay_service()
    yield
    reset_singletons()
    reset_relay_service()


@pytest.fixture()
def export_dir(_isolate_env: Path) -> Path:
    return _isolate_env


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def gate() -> AdmissionGate:
    return AdmissionGate()


@pytest.fixture()
def armer(clock: FakeClock, gate: AdmissionGate) -> SessionArmer:
    return SessionArmer(clock=clock, gate=gate)


@pytest.fixture()
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture()
def completion() -> FakeCompletion:
    return FakeCompletion()


@pytest.fixture()
def image_fetches() -> list:
    return []


@pytest.fixture()
def relay(gate, armer, gateway, completion, image_fetches, export_dir) -> RelayService:
    def fetch(message):
        image_fetches.append(message)
        return b"\x89PNG fake", "image/png"

    return RelayService(
        gate=gate,
        armer=armer,
        completion_factory=lambda: completion,
        gateway=gateway,
        image_fetcher=fetch,
        writer=SpreadsheetWriter(export_dir),
        public_base_url="https://k.example.com",
        system_prompt="You are K.",
    )


@pytest.fixture()
def group_ref() -> ConversationRef:
    return ConversationRef.group("C123")


@pytest.fixture()
def direct_ref() -> ConversationRef:
    return ConversationRef.direct("U999")
