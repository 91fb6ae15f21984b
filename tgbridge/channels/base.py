"""
Abstract base classes for channels.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable


@dataclass
class IncomingMessage:
    """A text message received from a channel."""

    channel: str                      # Channel name, e.g. "telegram"
    chat_id: str                      # Chat ID, as a string
    message_id: int                   # Platform message ID
    text: str                         # Raw text content
    user_id: str = ""                 # Sender user ID
    raw: Any = None                   # Raw platform object


@dataclass
class IncomingCallback:
    """A button click on an inline keyboard."""

    channel: str
    chat_id: str
    callback_id: str                  # Needed to acknowledge the click
    message_id: int                   # Message that carried the button
    message_text: str                 # Current text of that message
    data: str                         # Button payload, "action:request_id"
    user_id: str = ""                 # Who clicked
    raw: Any = None


@dataclass
class OutgoingMessage:
    """A message to be sent via a channel."""

    chat_id: str
    text: str
    reply_to_message_id: int | None = None
    parse_mode: str | None = None     # e.g. "Markdown"
    buttons: list[list[tuple[str, str]]] = field(default_factory=list)  # rows of (label, data)


@dataclass(frozen=True)
class SendResult:
    """Outcome of a send or edit. Callers decide whether a failure matters."""

    ok: bool
    message_id: int | None = None
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> "SendResult":
        return cls(ok=False, error=error)


# Handler types: async callbacks the gateway registers with a channel
MessageHandler = Callable[[IncomingMessage], Awaitable[None]]
CallbackHandler = Callable[[IncomingCallback], Awaitable[None]]


class Channel(ABC):
    """Abstract base class for chat channels."""

    name: str = "base"

    def __init__(self) -> None:
        self._on_message: MessageHandler | None = None
        self._on_callback: CallbackHandler | None = None

    def set_handlers(
        self,
        on_message: MessageHandler,
        on_callback: CallbackHandler | None = None,
    ) -> None:
        """Register the inbound event callbacks."""
        self._on_message = on_message
        self._on_callback = on_callback

    async def _dispatch_message(self, msg: IncomingMessage) -> None:
        if self._on_message is not None:
            await self._on_message(msg)

    async def _dispatch_callback(self, cb: IncomingCallback) -> None:
        if self._on_callback is not None:
            await self._on_callback(cb)

    @abstractmethod
    async def send(self, message: OutgoingMessage) -> SendResult:
        """Send a message through this channel."""
        ...

    @abstractmethod
    async def edit_text(
        self,
        chat_id: str,
        message_id: int,
        text: str,
        parse_mode: str | None = None,
    ) -> SendResult:
        """Replace the text of a previously sent message."""
        ...

    @abstractmethod
    async def answer_callback(self, callback_id: str, text: str | None = None) -> None:
        """Acknowledge a button click."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start receiving events (polling loop or webhook registration)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the channel gracefully."""
        ...

    @abstractmethod
    async def process_update(self, data: dict[str, Any]) -> None:
        """Feed a raw webhook payload (``POST /webhook``) into the channel."""
        ...
