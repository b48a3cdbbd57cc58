"""Tests for inbound image download dispatch."""

from unittest.mock import MagicMock

import pytest

from krelay.models import ConversationRef, InboundMessage, MessageKind
from krelay.outbound.line import LineMessagingError
from krelay.outbound.settings import TwilioSettings
from krelay.services import media_service
from krelay.services.relay_service import ImageFetchError


def _image(channel, media_id="m-1"):
    return InboundMessage(ConversationRef.direct("U1", channel), MessageKind.IMAGE, media_id=media_id)


def test_line_content(monkeypatch):
    line = MagicMock()
    line.get_message_content.return_value = (b"jpeg", "image/jpeg")
    monkeypatch.setattr(media_service, "get_line_client", lambda: line)

    assert media_service.fetch_inbound_image(_image("line")) == (b"jpeg", "image/jpeg")
    line.get_message_content.assert_called_once_with("m-1")


def test_twilio_media(monkeypatch):
    settings = TwilioSettings(account_sid="AC1", auth_token="tok")
    calls = []

    def fake_fetch(url, s):
        calls.append((url, s))
        return b"png", "image/png"

    monkeypatch.setattr(media_service, "get_twilio_settings", lambda: settings)
    monkeypatch.setattr(media_service, "fetch_twilio_media", fake_fetch)

    assert media_service.fetch_inbound_image(_image("whatsapp", "https://media/1")) == (b"png", "image/png")
    assert calls == [("https://media/1", settings)]


def test_errors_are_wrapped(monkeypatch):
    line = MagicMock()
    line.get_message_content.side_effect = LineMessagingError("HTTP 404")
    monkeypatch.setattr(media_service, "get_line_client", lambda: line)

    with pytest.raises(ImageFetchError):
        media_service.fetch_inbound_image(_image("line"))


def test_missing_credentials_is_fetch_error():
    with pytest.raises(ImageFetchError):
        media_service.fetch_inbound_image(_image("line"))


@pytest.mark.parametrize(
    "message",
    [_image("line", media_id=None), _image("telegram")],
)
def test_invalid_messages(message):
    with pytest.raises(ImageFetchError):
        media_service.fetch_inbound_image(message)


def test_empty_content(monkeypatch):
    line = MagicMock()
    line.get_message_content.return_value = (b"", "image/jpeg")
    monkeypatch.setattr(media_service, "get_line_client", lambda: line)

    with pytest.raises(ImageFetchError):
        media_service.fetch_inbound_image(_image("line"))
