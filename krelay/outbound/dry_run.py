"""
K Relay
Outbound delivery abstraction - DRY-RUN gateway

This gateway never sends anything.
It logs the reply and returns a receipt that indicates a simulated send.
"""

from __future__ import annotations

import logging

from .gateway import SendGateway, OutboundSendRequest, OutboundSendReceipt, SendStatus

logger = logging.getLogger("outbound.dry_run")


class DryRunSendGateway(SendGateway):
    def send_text(self, req: OutboundSendRequest) -> OutboundSendReceipt:
        # No side effects. Never raises. Never calls external services.
        detail = (
            "DRY_RUN: outbound delivery simulated (not sent). "
            f"channel={req.channel} to={req.to}"
        )
        logger.info("%s text=%r", detail, req.body_text[:80])
        return OutboundSendReceipt.now(status=SendStatus.DRY_RUN, detail=detail, provider_message_id=None)
