"""
Telegram channel — python-telegram-bot Application.

Features:
- Polling (default) or webhook delivery of updates
- Receive: text messages (commands included), inline button clicks
- Send: text with optional Markdown, reply linkage and inline keyboard
- Edit sent messages, acknowledge button clicks

Webhook mode builds the Application without an Updater; updates arrive
through ``process_update`` (called by the HTTP app's ``POST /webhook``)
and are fed into the application's update queue.

Environment variables (read by tgbridge.config):
    TELEGRAM_BOT_TOKEN — Bot token from @BotFather
    WEBHOOK_URL        — Public base URL; enables webhook mode in HTTP transport
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from telegram import InlineKeyboardButton, InlineKeyboardMarkup, ReplyParameters, Update
from telegram.error import TelegramError
from telegram.ext import Application, CallbackQueryHandler, ContextTypes, filters
from telegram.ext import MessageHandler as TelegramMessageHandler

from tgbridge.channels.base import Channel, IncomingCallback, IncomingMessage, OutgoingMessage, SendResult

WEBHOOK_PATH = "/webhook"


def _build_markup(buttons: list[list[tuple[str, str]]]) -> InlineKeyboardMarkup | None:
    if not buttons:
        return None
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(label, callback_data=data) for label, data in row] for row in buttons]
    )


class TelegramChannel(Channel):
    """Telegram Bot API channel."""

    name = "telegram"

    def __init__(
        self,
        token: str,
        *,
        webhook_url: str = "",           # Empty = long polling
        application: Application | None = None,
    ) -> None:
        super().__init__()
        self.webhook_url = webhook_url.rstrip("/")

        if application is None:
            builder = Application.builder().token(token)
            if self.webhook_url:
                builder = builder.updater(None)
            application = builder.build()
        self._app = application

        self._app.add_handler(TelegramMessageHandler(filters.TEXT, self._handle_message))
        self._app.add_handler(CallbackQueryHandler(self._handle_callback))
        self._app.add_error_handler(self._handle_error)

        self._started = False

    @property
    def bot(self) -> Any:
        return self._app.bot

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        await self._app.initialize()
        await self._app.start()
        self._started = True

        if self.webhook_url:
            hook = f"{self.webhook_url}{WEBHOOK_PATH}"
            try:
                await self.bot.set_webhook(hook)
                logger.info(f"[telegram] Webhook set: {hook}")
            except TelegramError as exc:
                logger.error(f"[telegram] Failed to set webhook: {exc}")
        elif self._app.updater is not None:
            await self._app.updater.start_polling()
            logger.info("[telegram] Polling started")

    async def stop(self) -> None:
        if not self._started:
            return
        self._started = False

        if self.webhook_url:
            try:
                await self.bot.delete_webhook()
                logger.info("[telegram] Webhook deleted")
            except TelegramError as exc:
                logger.warning(f"[telegram] Failed to delete webhook: {exc}")
        elif self._app.updater is not None and self._app.updater.running:
            await self._app.updater.stop()

        await self._app.stop()
        await self._app.shutdown()
        logger.debug("[telegram] Stopped")

    async def process_update(self, data: dict[str, Any]) -> None:
        update = Update.de_json(data, self.bot)
        await self._app.update_queue.put(update)

    # ------------------------------------------------------------------
    # Receive
    # ------------------------------------------------------------------

    async def _handle_message(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        msg = update.effective_message
        if msg is None or not msg.text:
            return

        incoming = IncomingMessage(
            channel=self.name,
            chat_id=str(msg.chat_id),
            message_id=msg.message_id,
            text=msg.text,
            user_id=str(update.effective_user.id) if update.effective_user else "",
            raw=update,
        )
        await self._dispatch_message(incoming)

    async def _handle_callback(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        if query is None or not query.data or query.message is None:
            return

        incoming = IncomingCallback(
            channel=self.name,
            chat_id=str(query.message.chat.id),
            callback_id=query.id,
            message_id=query.message.message_id,
            # Inaccessible (too old) messages carry no text
            message_text=getattr(query.message, "text", None) or "",
            data=query.data,
            user_id=str(query.from_user.id) if query.from_user else "",
            raw=update,
        )
        await self._dispatch_callback(incoming)

    async def _handle_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        logger.error(f"[telegram] Error handling update {update!r}: {context.error}")

    # ------------------------------------------------------------------
    # Send
    # ------------------------------------------------------------------

    async def send(self, message: OutgoingMessage) -> SendResult:
        reply = (
            ReplyParameters(message_id=message.reply_to_message_id)
            if message.reply_to_message_id is not None
            else None
        )
        try:
            sent = await self.bot.send_message(
                chat_id=message.chat_id,
                text=message.text,
                parse_mode=message.parse_mode,
                reply_parameters=reply,
                reply_markup=_build_markup(message.buttons),
            )
        except TelegramError as exc:
            logger.warning(f"[telegram] send_message failed: {exc}")
            return SendResult.failure(str(exc))
        return SendResult(ok=True, message_id=sent.message_id)

    async def edit_text(
        self,
        chat_id: str,
        message_id: int,
        text: str,
        parse_mode: str | None = None,
    ) -> SendResult:
        try:
            await self.bot.edit_message_text(
                text=text,
                chat_id=chat_id,
                message_id=message_id,
                parse_mode=parse_mode,
            )
        except TelegramError as exc:
            logger.warning(f"[telegram] edit_message_text failed: {exc}")
            return SendResult.failure(str(exc))
        return SendResult(ok=True, message_id=message_id)

    async def answer_callback(self, callback_id: str, text: str | None = None) -> None:
        try:
            await self.bot.answer_callback_query(callback_id, text=text)
        except TelegramError as exc:
            logger.warning(f"[telegram] answer_callback_query failed: {exc}")
