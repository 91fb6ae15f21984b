"""
Bridge context — the state every handler shares.

Built once at startup and passed explicitly to the gateway, the MCP
tools and the HTTP app.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from loguru import logger

from tgbridge.channels.base import Channel, OutgoingMessage, SendResult
from tgbridge.config import BridgeConfig
from tgbridge.message_queue import MessageQueue, QueuedMessage
from tgbridge.pending import PendingRequestTable


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class BridgeContext:
    config: BridgeConfig
    channel: Channel
    queue: MessageQueue = field(default_factory=MessageQueue)
    pending: PendingRequestTable = field(init=False)
    connections: set[str] = field(default_factory=set)   # live MCP connection IDs

    def __post_init__(self) -> None:
        self.pending = PendingRequestTable(
            approval_timeout=self.config.approval_timeout,
            prompt_timeout=self.config.prompt_timeout,
        )

    @property
    def status_enabled(self) -> bool:
        """``/status`` is only offered by the HTTP build."""
        return self.config.transport == "http"

    def enqueue(self, message: QueuedMessage) -> None:
        self.queue.push(message)
        # MCP has no push channel for this; clients poll get_pending_messages.
        logger.info(
            f"[bridge] New message queued: {message.text[:50]!r} "
            f"(queue={len(self.queue)}, connections={len(self.connections)})"
        )

    async def send_text(
        self,
        text: str,
        *,
        parse_mode: str | None = "Markdown",
        reply_to: int | None = None,
        buttons: list[list[tuple[str, str]]] | None = None,
    ) -> SendResult:
        """Send to the configured chat."""
        return await self.channel.send(
            OutgoingMessage(
                chat_id=self.config.chat_id,
                text=text,
                reply_to_message_id=reply_to,
                parse_mode=parse_mode,
                buttons=buttons or [],
            )
        )

    def connect(self, connection_id: str) -> None:
        self.connections.add(connection_id)
        logger.info(f"[bridge] MCP connection opened: {connection_id} (active={len(self.connections)})")

    def disconnect(self, connection_id: str) -> None:
        self.connections.discard(connection_id)
        logger.info(f"[bridge] MCP connection closed: {connection_id} (active={len(self.connections)})")
