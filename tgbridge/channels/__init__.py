"""
Channel package.
"""

from tgbridge.channels.base import (
    Channel,
    IncomingCallback,
    IncomingMessage,
    OutgoingMessage,
    SendResult,
)
from tgbridge.channels.telegram import TelegramChannel

__all__ = [
    "Channel",
    "IncomingCallback",
    "IncomingMessage",
    "OutgoingMessage",
    "SendResult",
    "TelegramChannel",
]
