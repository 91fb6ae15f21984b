"""Shared fixtures: an in-memory channel and a bridge context around it."""

from __future__ import annotations

from typing import Any

import pytest

from tgbridge.channels.base import Channel, OutgoingMessage, SendResult
from tgbridge.config import BridgeConfig
from tgbridge.context import BridgeContext

CHAT_ID = "4242"


class RecordingChannel(Channel):
    """Channel double that records everything it is asked to do."""

    name = "recording"

    def __init__(self, fail_with: str | None = None) -> None:
        super().__init__()
        self.fail_with = fail_with
        self.sent: list[OutgoingMessage] = []
        self.edits: list[tuple[str, int, str, str | None]] = []
        self.answers: list[tuple[str, str | None]] = []
        self.updates: list[dict[str, Any]] = []
        self.started = False
        self._next_id = 100

    async def send(self, message: OutgoingMessage) -> SendResult:
        if self.fail_with:
            return SendResult.failure(self.fail_with)
        self.sent.append(message)
        self._next_id += 1
        return SendResult(ok=True, message_id=self._next_id)

    async def edit_text(self, chat_id: str, message_id: int, text: str, parse_mode: str | None = None) -> SendResult:
        self.edits.append((chat_id, message_id, text, parse_mode))
        return SendResult(ok=True, message_id=message_id)

    async def answer_callback(self, callback_id: str, text: str | None = None) -> None:
        self.answers.append((callback_id, text))

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.started = False

    async def process_update(self, data: dict[str, Any]) -> None:
        self.updates.append(data)


@pytest.fixture
def config() -> BridgeConfig:
    return BridgeConfig(bot_token="123:abc", chat_id=CHAT_ID)


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def ctx(config: BridgeConfig, channel: RecordingChannel) -> BridgeContext:
    return BridgeContext(config=config, channel=channel)
