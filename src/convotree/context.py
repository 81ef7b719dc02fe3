"""Per-conversation handle onto one chat."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from loguru import logger

from convotree.i18n import Translator
from convotree.session import Session
from convotree.transport.base import ChatTransport
from convotree.transport.events import ButtonEvent, ChatEvent, Keyboard, MessageRef

if TYPE_CHECKING:
    from loguru import Logger

    from convotree.error_log import ErrorRecorder


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass
class ConversationContext:
    """Everything a running conversation may touch for its chat.

    Events are consumed from `events` strictly in arrival order; `wait` is the
    only suspension point that depends on the user.
    """

    chat_id: str
    user_id: str
    transport: ChatTransport
    session: Session
    translator: Translator
    events: asyncio.Queue[ChatEvent] = field(default_factory=asyncio.Queue)
    restart_command: str = "/start"
    error_recorder: ErrorRecorder | None = None

    @property
    def lang(self) -> str:
        return self.session.language

    @property
    def log(self) -> Logger:
        return logger.bind(chat_id=self.chat_id, user_id=self.user_id)

    def t(self, key: str, params: Mapping[str, object] | None = None) -> str:
        return self.translator.translate(key, self.lang, params)

    async def wait(self) -> ChatEvent:
        return await self.events.get()

    async def reply(self, text: str, keyboard: Keyboard | None = None) -> MessageRef:
        return await self.transport.send_message(self.chat_id, text, keyboard)

    async def edit(self, ref: MessageRef, text: str, keyboard: Keyboard | None = None) -> None:
        await self.transport.edit_message_text(ref.chat_id, ref.message_id, text, keyboard)

    async def delete(self, ref: MessageRef) -> None:
        await self.transport.delete_message(ref.chat_id, ref.message_id)

    async def answer(self, event: ButtonEvent, text: str | None = None) -> None:
        await self.transport.answer_button(event, text)

    async def greet(self) -> None:
        await self.reply(self.t("greeting"))
        self.session.state = "START"

    async def cancel_and_greet(self, event: ButtonEvent | None = None) -> None:
        """Remove the keyboard that triggered the cancel, then greet."""
        if event is not None and event.message is not None:
            try:
                await self.delete(event.message)
            except Exception:
                self.log.opt(exception=True).warning("conversation.cancel.delete_failed")
        await self.greet()
