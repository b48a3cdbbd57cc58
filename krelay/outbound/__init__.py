# krelay/outbound/__init__.py
from .gateway import SendGateway, OutboundSendRequest, OutboundSendReceipt, SendStatus
from .dry_run import DryRunSendGateway
from .factory import build_send_gateway, ChannelSendGateway
