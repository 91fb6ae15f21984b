"""
Inbound message queue.

Messages the user types into the chat on their own initiative (commands
and free text that no pending prompt claimed) wait here until the agent
fetches them with ``get_pending_messages``.

- Insertion order is preserved
- Reads return a copy; only push / clear / drain mutate
- Unbounded: the bridge assumes low volume and a responsive consumer
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class QueuedMessage:
    """A user message waiting to be picked up by the agent."""

    id: str
    text: str
    timestamp: int                  # epoch milliseconds
    is_command: bool = False
    command: str | None = None      # canonical name, e.g. "quest"


class MessageQueue:
    """Ordered, append-only buffer of QueuedMessage."""

    def __init__(self) -> None:
        self._messages: list[QueuedMessage] = []

    def push(self, message: QueuedMessage) -> None:
        self._messages.append(message)

    def clear(self) -> None:
        self._messages.clear()

    def get_all(self) -> list[QueuedMessage]:
        """Return a snapshot. Later pushes never show up in it."""
        return list(self._messages)

    def drain(self) -> list[QueuedMessage]:
        """Return a snapshot and empty the queue."""
        messages = self.get_all()
        self.clear()
        return messages

    def __len__(self) -> int:
        return len(self._messages)

    def __repr__(self) -> str:
        return f"MessageQueue(messages={len(self._messages)})"
