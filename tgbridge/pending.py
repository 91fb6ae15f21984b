"""
Pending-request table.

Correlates asynchronous chat replies (button clicks, free-text answers)
with the interactive tool call that is waiting for them.

Each entry is a single-assignment result slot (an asyncio.Future) plus a
cancellable timer. Three things can finish an entry:

    resolve()  — a matching chat event arrived
    _expire()  — the timer fired
    discard()  — the chat send failed, or the waiting caller went away

All three go through ``PendingRequest.claim()``; the first caller wins and
the rest are no-ops. Whoever claims also removes the entry from the table,
so an ID is resolved at most once.

Everything runs on one event loop, so there are no locks.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

APPROVAL_TIMEOUT = 5 * 60.0     # seconds
PROMPT_TIMEOUT = 10 * 60.0


class RequestKind(str, Enum):
    APPROVAL = "approval"
    PROMPT = "prompt"


class Outcome(str, Enum):
    RESOLVED = "resolved"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Resolution:
    """What a waiting tool call receives."""

    outcome: Outcome
    value: str | None = None


@dataclass
class PendingRequest:
    request_id: str
    kind: RequestKind
    future: asyncio.Future[Resolution]
    timer: asyncio.TimerHandle | None = None
    message_id: int | None = None       # chat message carrying the request
    _claimed: bool = field(default=False, repr=False)

    def claim(self) -> bool:
        """Take the right to finish this entry. True only the first time."""
        if self._claimed:
            return False
        self._claimed = True
        return True


def generate_request_id(timestamp: int | None = None) -> str:
    """``req_<epoch ms>_<7 random chars>``; the suffix separates IDs minted in the same millisecond."""
    if timestamp is None:
        timestamp = int(time.time() * 1000)
    return f"req_{timestamp}_{uuid.uuid4().hex[:7]}"


class PendingRequestTable:
    """In-flight interactive requests keyed by request ID."""

    def __init__(
        self,
        approval_timeout: float = APPROVAL_TIMEOUT,
        prompt_timeout: float = PROMPT_TIMEOUT,
    ) -> None:
        self.timeouts: dict[RequestKind, float] = {
            RequestKind.APPROVAL: approval_timeout,
            RequestKind.PROMPT: prompt_timeout,
        }
        # dict keeps registration order, which resolve_first relies on
        self._entries: dict[str, PendingRequest] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def register(self, kind: RequestKind, timeout: float | None = None) -> PendingRequest:
        """Create an entry and start its expiry timer. Must run on the event loop."""
        loop = asyncio.get_running_loop()

        request_id = generate_request_id()
        while request_id in self._entries:
            request_id = generate_request_id()

        request = PendingRequest(
            request_id=request_id,
            kind=kind,
            future=loop.create_future(),
        )
        delay = self.timeouts[kind] if timeout is None else timeout
        request.timer = loop.call_later(delay, self._expire, request_id)
        self._entries[request_id] = request

        logger.debug(f"[pending] Registered {kind.value} {request_id} (timeout {delay:.0f}s)")
        return request

    def resolve(self, request_id: str, value: str) -> bool:
        """Complete an entry with a reply. Unknown or finished IDs are a no-op."""
        request = self._finish(request_id)
        if request is None:
            return False
        _complete(request, Resolution(Outcome.RESOLVED, value))
        logger.debug(f"[pending] Resolved {request_id}")
        return True

    def discard(self, request_id: str) -> bool:
        """Drop an entry without a reply (failed send, abandoned caller)."""
        request = self._finish(request_id)
        if request is None:
            return False
        _complete(request, Resolution(Outcome.CANCELLED))
        logger.debug(f"[pending] Discarded {request_id}")
        return True

    def _expire(self, request_id: str) -> None:
        request = self._finish(request_id)
        if request is None:
            return
        _complete(request, Resolution(Outcome.TIMEOUT))
        logger.info(f"[pending] {request.kind.value} {request_id} timed out")

    def _finish(self, request_id: str) -> PendingRequest | None:
        request = self._entries.get(request_id)
        if request is None or not request.claim():
            return None
        del self._entries[request_id]
        if request.timer is not None:
            request.timer.cancel()
        return request

    async def wait(self, request: PendingRequest) -> Resolution:
        """Suspend until the entry is resolved, expires, or is discarded."""
        try:
            return await request.future
        except asyncio.CancelledError:
            self.discard(request.request_id)
            raise

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def resolve_first(self, kind: RequestKind, value: str) -> str | None:
        """Resolve the oldest live entry of ``kind``; return its ID.

        With several prompts outstanding the reply goes to whichever was
        registered first, not necessarily the one the user meant.
        """
        request_id = next(
            (rid for rid, request in self._entries.items() if request.kind is kind),
            None,
        )
        if request_id is not None:
            self.resolve(request_id, value)
        return request_id

    def get(self, request_id: str) -> PendingRequest | None:
        return self._entries.get(request_id)

    def attach_message(self, request_id: str, message_id: int | None) -> None:
        request = self._entries.get(request_id)
        if request is not None:
            request.message_id = message_id

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"PendingRequestTable(pending={list(self._entries)})"


def _complete(request: PendingRequest, resolution: Resolution) -> None:
    if not request.future.done():
        request.future.set_result(resolution)
