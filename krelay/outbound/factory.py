"""
File: krelay/outbound/factory.py
Path: krelay/outbound/factory.py

Project: K Relay

Purpose:
- Provide a single place to construct outbound clients/services
- Reuse a single client instance per platform (singleton-style)
- Hold the process-wide session armer

Design rules:
- No business logic here
- Only construction / wiring
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable, Dict, Optional

from krelay import config
from krelay.core.admission import AdmissionGate, GateOptions
from krelay.core.arming import SessionArmer
from krelay.outbound.dry_run import DryRunSendGateway
from krelay.outbound.gateway import OutboundSendReceipt, OutboundSendRequest, SendGateway, SendStatus
from krelay.outbound.line import LineMessagingClient, LineSendGateway
from krelay.outbound.settings import load_line_settings, load_twilio_settings, TwilioSettings
from krelay.outbound.twilio_whatsapp import TwilioWhatsAppGateway

logger = logging.getLogger("outbound.factory")

CHANNEL_LINE = "line"
CHANNEL_WHATSAPP = "whatsapp"


# -------------------------------------------------
# Platform client singletons
# -------------------------------------------------
_line_client: LineMessagingClient | None = None
_twilio_settings: TwilioSettings | None = None
_gate: AdmissionGate | None = None
_armer: SessionArmer | None = None


def get_line_client() -> LineMessagingClient:
    global _line_client
    if _line_client is None:
        _line_client = LineMessagingClient(settings=load_line_settings())
    return _line_client


def get_twilio_settings() -> TwilioSettings:
    global _twilio_settings
    if _twilio_settings is None:
        _twilio_settings = load_twilio_settings()
    return _twilio_settings


# -------------------------------------------------
# Gate / armer singletons
# -------------------------------------------------
def get_admission_gate() -> AdmissionGate:
    global _gate
    if _gate is None:
        _gate = AdmissionGate(
            GateOptions(
                wake_letter=config.WAKE_LETTER,
                group_trigger_keywords=config.GROUP_TRIGGER_KEYWORDS,
                allow_mention_trigger=config.ALLOW_MENTION_TRIGGER,
            )
        )
    return _gate


def get_session_armer() -> SessionArmer:
    global _armer
    if _armer is None:
        _armer = SessionArmer(
            window=timedelta(seconds=config.ARM_WINDOW_SECONDS),
            gate=get_admission_gate(),
        )
    return _armer


def reset_singletons() -> None:
    global _line_client, _twilio_settings, _gate, _armer
    _line_client = None
    _twilio_settings = None
    _gate = None
    _armer = None


# -------------------------------------------------
# Send gateway
# -------------------------------------------------
class ChannelSendGateway(SendGateway):
    """
    Dispatch a reply to the gateway of its channel.
    Per-channel gateways are built on first use, so a deployment that only
    configures LINE never needs Twilio credentials (and vice versa).
    """

    def __init__(self, builders: Dict[str, Callable[[], SendGateway]]) -> None:
        self._builders = builders
        self._gateways: Dict[str, SendGateway] = {}

    def _gateway_for(self, channel: str) -> Optional[SendGateway]:
        if channel not in self._gateways:
            builder = self._builders.get(channel)
            if builder is None:
                return None
            self._gateways[channel] = builder()
        return self._gateways[channel]

    def send_text(self, req: OutboundSendRequest) -> OutboundSendReceipt:
        try:
            gateway = self._gateway_for(req.channel)
        except RuntimeError as e:
            # missing credentials
            return OutboundSendReceipt.now(status=SendStatus.FAILED, detail=str(e))

        if gateway is None:
            return OutboundSendReceipt.now(
                status=SendStatus.FAILED,
                detail=f"Unknown channel: {req.channel}",
            )
        return gateway.send_text(req)


def build_send_gateway(mode: str | None = None) -> SendGateway:
    mode = (mode or config.OUTBOUND_MODE).strip().lower()

    if mode == "dry_run":
        logger.info("Outbound mode: dry_run (nothing will be sent)")
        return DryRunSendGateway()

    if mode != "live":
        raise RuntimeError(f"Unknown OUTBOUND_MODE: {mode!r} (expected 'live' or 'dry_run')")

    return ChannelSendGateway(
        {
            CHANNEL_LINE: lambda: LineSendGateway(get_line_client()),
            CHANNEL_WHATSAPP: lambda: TwilioWhatsAppGateway(get_twilio_settings()),
        }
    )
