"""
Gateway — routes chat events into the bridge.

- Text message → parse_command → handle_command → queue / reply
- Free text → oldest pending prompt, or the queue when none is waiting
- Button click ("action:request_id") → direct pending-table lookup
- Only the configured chat, and the ALLOWED_USER_IDS users when set, are served
- Middleware chain around text handling
"""

from __future__ import annotations

from typing import Awaitable, Callable

from loguru import logger

from tgbridge.channels.base import IncomingCallback, IncomingMessage
from tgbridge.commands import CommandType, ParsedCommand, create_queued_message, handle_command, parse_command
from tgbridge.context import BridgeContext, now_ms
from tgbridge.formatters import format_approval_outcome, format_status_message
from tgbridge.pending import RequestKind


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

NextHandler = Callable[[IncomingMessage], Awaitable[None]]
Middleware = Callable[[IncomingMessage, NextHandler], Awaitable[None]]
"""A middleware is an async function:
    async def my_middleware(msg, next) -> None:
        # return without calling next to drop the message
        if not allowed(msg.user_id):
            return
        await next(msg)
"""


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------

class Gateway:
    """Connects the chat channel to the queue and the pending table.

    Usage::

        gw = Gateway(ctx)
        gw.use(log_messages())
        await ctx.channel.start()
    """

    def __init__(self, ctx: BridgeContext) -> None:
        self.ctx = ctx
        self._allowed_users = set(ctx.config.allowed_users)
        self._middleware: list[Middleware] = []
        ctx.channel.set_handlers(self._on_message, self._on_callback)

    def use(self, middleware: Middleware) -> "Gateway":
        """Add a middleware to the chain. Returns self for chaining."""
        self._middleware.append(middleware)
        return self

    # ------------------------------------------------------------------
    # Channel callbacks
    # ------------------------------------------------------------------

    async def _on_message(self, msg: IncomingMessage) -> None:
        if not self._is_own_chat(msg.chat_id):
            logger.debug(f"[gateway] Ignoring message from chat {msg.chat_id!r}")
            return
        if not self._is_allowed_user(msg.user_id):
            logger.debug(f"[gateway] Blocked message from user {msg.user_id!r}")
            return

        handler: NextHandler = self.handle_message
        for mw in reversed(self._middleware):
            handler = _wrap(mw, handler)

        try:
            await handler(msg)
        except Exception as exc:
            logger.exception(f"[gateway] Error processing message: {exc}")

    async def _on_callback(self, cb: IncomingCallback) -> None:
        if not self._is_own_chat(cb.chat_id):
            logger.debug(f"[gateway] Ignoring callback from chat {cb.chat_id!r}")
            return
        try:
            if not self._is_allowed_user(cb.user_id):
                logger.warning(f"[gateway] Blocked button click from user {cb.user_id!r}")
                await self.ctx.channel.answer_callback(cb.callback_id, "You are not allowed to answer this request.")
                return
            await self.handle_callback(cb)
        except Exception as exc:
            logger.exception(f"[gateway] Error processing callback: {exc}")

    def _is_own_chat(self, chat_id: str) -> bool:
        return chat_id == self.ctx.config.chat_id

    def _is_allowed_user(self, user_id: str) -> bool:
        """ALLOWED_USER_IDS applies to text and button clicks alike; empty allows everyone."""
        return not self._allowed_users or user_id in self._allowed_users

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    async def handle_message(self, msg: IncomingMessage) -> None:
        parsed = parse_command(msg.text)
        if parsed.is_command:
            await self._handle_command(msg, parsed)
            return
        if not parsed.content:
            return

        request_id = self.ctx.pending.resolve_first(RequestKind.PROMPT, parsed.content)
        if request_id is not None:
            logger.info(f"[gateway] Text answered prompt {request_id}")
            await self.ctx.send_text("Received your response.", parse_mode=None, reply_to=msg.message_id)
            return

        self.ctx.enqueue(create_queued_message(parsed.content, now_ms()))
        await self.ctx.send_text(
            f"Message queued. {self.ctx.config.agent_name} will pick it up.",
            parse_mode=None,
            reply_to=msg.message_id,
        )

    async def _handle_command(self, msg: IncomingMessage, parsed: ParsedCommand) -> None:
        result = handle_command(
            parsed.command or "",
            parsed.content,
            now_ms(),
            allow_status=self.ctx.status_enabled,
            agent_name=self.ctx.config.agent_name,
        )

        if result.type is CommandType.UNKNOWN:
            logger.debug(f"[gateway] Unknown command {parsed.command!r} ignored")
            return

        if result.type is CommandType.STATUS:
            await self.ctx.send_text(
                format_status_message(
                    queue_size=len(self.ctx.queue),
                    active_connections=len(self.ctx.connections),
                    mode=self.ctx.config.mode_label,
                )
            )
            return

        if result.should_queue and result.queued_message is not None:
            self.ctx.enqueue(result.queued_message)
            if result.response_text:
                await self.ctx.send_text(result.response_text, parse_mode=None, reply_to=msg.message_id)
        elif result.response_text:
            await self.ctx.send_text(result.response_text)

    async def handle_callback(self, cb: IncomingCallback) -> None:
        action, _, request_id = cb.data.partition(":")
        request = self.ctx.pending.get(request_id)
        if request is None or request.kind is not RequestKind.APPROVAL:
            logger.debug(f"[gateway] Callback for unknown or finished request {request_id!r}")
            await self.ctx.channel.answer_callback(cb.callback_id, "This request is no longer pending.")
            return

        response = "APPROVED" if action == "approve" else "DENIED"
        self.ctx.pending.resolve(request_id, response)
        logger.info(f"[gateway] Approval {request_id}: {response}")

        await self.ctx.channel.edit_text(
            cb.chat_id,
            cb.message_id,
            format_approval_outcome(cb.message_text, response),
            parse_mode="Markdown",
        )
        await self.ctx.channel.answer_callback(cb.callback_id, response)


def _wrap(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
    async def handler(msg: IncomingMessage) -> None:
        await middleware(msg, next_handler)
    return handler


# ---------------------------------------------------------------------------
# Built-in middleware factories
# ---------------------------------------------------------------------------

def log_messages() -> Middleware:
    """Logging middleware: log every incoming message."""
    async def middleware(msg: IncomingMessage, next: NextHandler) -> None:
        logger.info(f"[log] {msg.channel}/{msg.chat_id} [{msg.user_id}]: {msg.text[:100]!r}")
        await next(msg)
    return middleware
