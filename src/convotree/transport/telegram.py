"""Telegram transport adapter."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from loguru import logger
from telegram import Bot, CallbackQuery, InlineKeyboardButton, InlineKeyboardMarkup, Message, Update
from telegram.ext import Application, CallbackQueryHandler, ContextTypes, MessageHandler, filters

from convotree.bus import EventBus
from convotree.errors import ConfigurationError
from convotree.transport.events import ButtonEvent, ChatEvent, Keyboard, MediaEvent, MessageRef, TextEvent


@dataclass(frozen=True)
class TelegramConfig:
    """Telegram adapter config."""

    token: str
    allow_from: set[str] = field(default_factory=set)


def to_markup(keyboard: Keyboard | None) -> InlineKeyboardMarkup | None:
    if keyboard is None or not len(keyboard):
        return None
    return InlineKeyboardMarkup(
        [
            [
                InlineKeyboardButton(button.text, url=button.url)
                if button.url
                else InlineKeyboardButton(button.text, callback_data=button.data)
                for button in row
            ]
            for row in keyboard.rows
        ]
    )


def _media_kind(message: Message) -> str:
    for kind in ("photo", "video", "document", "sticker", "voice", "audio", "location", "contact"):
        if getattr(message, kind, None):
            return kind
    return "other"


class TelegramTransport:
    """Telegram adapter using long polling mode.

    Incoming messages and button presses are published on the event bus;
    outbound calls go straight to the Bot API.
    """

    name = "telegram"

    def __init__(self, bus: EventBus, config: TelegramConfig) -> None:
        self.bus = bus
        self._config = config
        self._app: Application | None = None
        self._running = False

    async def start(self) -> None:
        if not self._config.token:
            raise ConfigurationError("telegram token is empty")
        logger.info("telegram.transport.start allow_from_count={}", len(self._config.allow_from))
        self._running = True
        self._app = Application.builder().token(self._config.token).build()
        self._app.add_handler(CallbackQueryHandler(self._on_button))
        self._app.add_handler(MessageHandler(filters.ALL, self._on_message))
        await self._app.initialize()
        await self._app.start()
        updater = self._app.updater
        if updater is None:
            return
        await updater.start_polling(drop_pending_updates=True, allowed_updates=["message", "callback_query"])
        logger.info("telegram.transport.polling")
        while self._running:
            await asyncio.sleep(0.5)

    async def stop(self) -> None:
        self._running = False
        if self._app is None:
            return
        updater = self._app.updater
        if updater is not None:
            await updater.stop()
        await self._app.stop()
        await self._app.shutdown()
        self._app = None
        logger.info("telegram.transport.stopped")

    async def send_message(self, chat_id: str, text: str, keyboard: Keyboard | None = None) -> MessageRef:
        message = await self._bot().send_message(chat_id=int(chat_id), text=text, reply_markup=to_markup(keyboard))
        return MessageRef(chat_id=str(message.chat_id), message_id=message.message_id)

    async def edit_message_text(
        self,
        chat_id: str,
        message_id: int,
        text: str,
        keyboard: Keyboard | None = None,
    ) -> None:
        await self._bot().edit_message_text(
            text=text,
            chat_id=int(chat_id),
            message_id=message_id,
            reply_markup=to_markup(keyboard),
        )

    async def delete_message(self, chat_id: str, message_id: int) -> None:
        await self._bot().delete_message(chat_id=int(chat_id), message_id=message_id)

    async def answer_button(self, event: ButtonEvent, text: str | None = None) -> None:
        if not event.callback_id:
            return
        await self._bot().answer_callback_query(callback_query_id=event.callback_id, text=text)

    def _bot(self) -> Bot:
        if self._app is None:
            raise RuntimeError("telegram transport is not started")
        return self._app.bot

    def _allowed(self, user_id: int, username: str | None) -> bool:
        if not self._config.allow_from:
            return True
        sender_tokens = {str(user_id)}
        if username:
            sender_tokens.add(username)
        return not sender_tokens.isdisjoint(self._config.allow_from)

    async def _on_message(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        message = update.message
        user = update.effective_user
        if message is None or user is None:
            return
        if not self._allowed(user.id, user.username):
            await message.reply_text("Access denied.")
            return

        chat_id = str(message.chat_id)
        event: ChatEvent
        if message.text:
            event = TextEvent(
                chat_id=chat_id,
                user_id=str(user.id),
                text=message.text,
                message_id=message.message_id,
                metadata={"username": user.username or ""},
            )
        else:
            event = MediaEvent(
                chat_id=chat_id,
                user_id=str(user.id),
                kind=_media_kind(message),
                message_id=message.message_id,
                metadata={"username": user.username or ""},
            )
        logger.bind(chat_id=chat_id).debug("telegram.transport.inbound type={}", type(event).__name__)
        await self.bus.publish(event)

    async def _on_button(self, update: Update, _context: ContextTypes.DEFAULT_TYPE) -> None:
        query: CallbackQuery | None = update.callback_query
        user = update.effective_user
        if query is None or user is None:
            return
        if not self._allowed(user.id, user.username):
            await query.answer("Access denied.")
            return

        ref: MessageRef | None = None
        source = query.message
        if source is not None:
            ref = MessageRef(chat_id=str(source.chat.id), message_id=source.message_id)
        chat_id = ref.chat_id if ref is not None else str(user.id)
        event = ButtonEvent(
            chat_id=chat_id,
            user_id=str(user.id),
            data=query.data,
            callback_id=query.id,
            message=ref,
            metadata={"username": user.username or ""},
        )
        logger.bind(chat_id=chat_id).debug("telegram.transport.button data={}", query.data)
        await self.bus.publish(event)
