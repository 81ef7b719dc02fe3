"""Conversation dispatcher."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

from loguru import logger

from convotree.bus import EventBus
from convotree.context import ConversationContext
from convotree.error_log import ErrorRecorder
from convotree.errors import UnknownConversationError
from convotree.i18n import Translator
from convotree.runner import Conversation, ConversationOutcome
from convotree.session import SessionStore
from convotree.transport.base import ChatTransport
from convotree.transport.events import ButtonEvent, ChatEvent, TextEvent

LANGUAGE_COMMAND = "/lang"


@dataclass
class ActiveChat:
    context: ConversationContext
    task: asyncio.Task[None]


class ConversationDispatcher:
    """Route chat events to named conversations, one running task per chat.

    While a chat has a running conversation every event for it is queued for
    that conversation in arrival order. Idle chats are handled here: commands
    start conversations, the restart command greets, everything else is
    answered with the greeting.
    """

    def __init__(
        self,
        transport: ChatTransport,
        *,
        sessions: SessionStore | None = None,
        translator: Translator | None = None,
        restart_command: str = "/start",
        error_recorder: ErrorRecorder | None = None,
    ) -> None:
        self.transport = transport
        self.translator = translator or Translator()
        self.sessions = sessions or SessionStore(default_language=self.translator.default_language)
        self.restart_command = restart_command
        self.error_recorder = error_recorder
        self._conversations: dict[str, Conversation] = {}
        self._commands: dict[str, str] = {}
        self._active: dict[str, ActiveChat] = {}
        self._unsubscribe: Callable[[], None] | None = None

    def register(self, name: str, conversation: Conversation, *, command: str | None = None) -> None:
        self._conversations[name] = conversation
        if command is not None:
            self._commands[command if command.startswith("/") else f"/{command}"] = name

    @property
    def conversations(self) -> dict[str, Conversation]:
        return dict(self._conversations)

    @property
    def commands(self) -> dict[str, str]:
        return dict(self._commands)

    def is_active(self, chat_id: str) -> bool:
        active = self._active.get(chat_id)
        return active is not None and not active.task.done()

    def task_for(self, chat_id: str) -> asyncio.Task[None] | None:
        active = self._active.get(chat_id)
        return active.task if active is not None else None

    def attach(self, bus: EventBus) -> None:
        self._unsubscribe = bus.on_event(self.handle_event)

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        active = list(self._active.values())
        for chat in active:
            chat.task.cancel()
        for chat in active:
            try:
                await chat.task
            except asyncio.CancelledError:
                continue
        self._active.clear()

    async def handle_event(self, event: ChatEvent) -> None:
        active = self._active.get(event.chat_id)
        if active is not None and not active.task.done():
            await active.context.events.put(event)
            return

        if isinstance(event, ButtonEvent):
            await self.transport.answer_button(event)
            return

        session = self.sessions.get(event.chat_id)
        if not isinstance(event, TextEvent):
            await self._greet(event.chat_id)
            return

        command, _, argument = event.text.strip().partition(" ")
        if command == self.restart_command:
            session.pending_conversation = None
            await self._greet(event.chat_id)
        elif command == LANGUAGE_COMMAND:
            await self._switch_language(event.chat_id, argument.strip())
        elif command in self._commands:
            self.start(self._commands[command], event)
        else:
            await self._greet(event.chat_id)

    def start(self, name: str, event: ChatEvent) -> asyncio.Task[None]:
        """Start conversation `name` for the chat that sent `event`."""
        if name not in self._conversations:
            raise UnknownConversationError(name)
        context = ConversationContext(
            chat_id=event.chat_id,
            user_id=event.user_id,
            transport=self.transport,
            session=self.sessions.get(event.chat_id),
            translator=self.translator,
            events=asyncio.Queue(),
            restart_command=self.restart_command,
            error_recorder=self.error_recorder,
        )
        task = asyncio.create_task(self._drive(name, context), name=f"conversation:{event.chat_id}")
        self._active[event.chat_id] = ActiveChat(context=context, task=task)
        return task

    async def _drive(self, name: str, context: ConversationContext) -> None:
        log = context.log
        try:
            while True:
                log.info("dispatcher.enter conversation={}", name)
                context.session.state = name
                outcome = await self._conversations[name](context)
                if outcome is not ConversationOutcome.HANDOFF:
                    return
                target = context.session.pending_conversation
                context.session.pending_conversation = None
                if target is None or target not in self._conversations:
                    log.error("dispatcher.unknown_conversation target={}", target)
                    await context.reply(context.t("operation_failed"))
                    return
                name = target
        except Exception:
            log.exception("dispatcher.conversation_error conversation={}", name)
            await context.reply(context.t("operation_failed"))
        finally:
            context.session.state = "START"
            current = self._active.get(context.chat_id)
            if current is not None and current.context is context:
                del self._active[context.chat_id]

    async def _greet(self, chat_id: str) -> None:
        session = self.sessions.get(chat_id)
        await self.transport.send_message(chat_id, self.translator.translate("greeting", session.language))
        session.state = "START"

    async def _switch_language(self, chat_id: str, language: str) -> None:
        session = self.sessions.get(chat_id)
        if language not in self.translator.languages:
            text = self.translator.translate("unknown_language", session.language, {"lang": language})
            await self.transport.send_message(chat_id, text)
            return
        session.language = language
        logger.bind(chat_id=chat_id).info("dispatcher.language lang={}", language)
        await self.transport.send_message(chat_id, self.translator.translate("language_changed", language))
