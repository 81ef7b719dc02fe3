from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import pytest

from convotree.context import ConversationContext
from convotree.error_log import ErrorRecorder
from convotree.i18n import Translator
from convotree.session import Session
from convotree.transport.events import ButtonEvent, ChatEvent, Keyboard, MediaEvent, MessageRef, TextEvent

CHAT_ID = "c1"
USER_ID = "u1"


@dataclass
class Sent:
    ref: MessageRef
    text: str
    keyboard: Keyboard | None


@dataclass
class Edit:
    ref: MessageRef
    text: str
    keyboard: Keyboard | None


class FakeTransport:
    """Records every outbound call; message ids start at 1 and increase."""

    def __init__(self, *, fail_edits: bool = False) -> None:
        self.fail_edits = fail_edits
        self.sent: list[Sent] = []
        self.edits: list[Edit] = []
        self.deleted: list[MessageRef] = []
        self.answers: list[tuple[ButtonEvent, str | None]] = []
        self._ids = itertools.count(1)

    async def send_message(self, chat_id: str, text: str, keyboard: Keyboard | None = None) -> MessageRef:
        ref = MessageRef(chat_id=chat_id, message_id=next(self._ids))
        self.sent.append(Sent(ref=ref, text=text, keyboard=keyboard))
        return ref

    async def edit_message_text(
        self,
        chat_id: str,
        message_id: int,
        text: str,
        keyboard: Keyboard | None = None,
    ) -> None:
        if self.fail_edits:
            raise RuntimeError("message to edit not found")
        self.edits.append(Edit(ref=MessageRef(chat_id, message_id), text=text, keyboard=keyboard))

    async def delete_message(self, chat_id: str, message_id: int) -> None:
        self.deleted.append(MessageRef(chat_id, message_id))

    async def answer_button(self, event: ButtonEvent, text: str | None = None) -> None:
        self.answers.append((event, text))

    @property
    def texts(self) -> list[str]:
        return [sent.text for sent in self.sent]

    @property
    def answer_texts(self) -> list[str | None]:
        return [text for _event, text in self.answers]


def text(value: str, chat_id: str = CHAT_ID) -> TextEvent:
    return TextEvent(chat_id=chat_id, user_id=USER_ID, text=value)


def press(data: str | None, message_id: int | None = None, chat_id: str = CHAT_ID) -> ButtonEvent:
    message = MessageRef(chat_id, message_id) if message_id is not None else None
    return ButtonEvent(chat_id=chat_id, user_id=USER_ID, data=data, callback_id=f"cb-{data}", message=message)


def photo(chat_id: str = CHAT_ID) -> MediaEvent:
    return MediaEvent(chat_id=chat_id, user_id=USER_ID, kind="photo")


type ContextFactory = Callable[..., ConversationContext]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def make_context(transport: FakeTransport) -> ContextFactory:
    def _make(
        events: Iterable[ChatEvent] = (),
        *,
        language: str = "en",
        error_recorder: ErrorRecorder | None = None,
    ) -> ConversationContext:
        queue: asyncio.Queue[ChatEvent] = asyncio.Queue()
        for event in events:
            queue.put_nowait(event)
        return ConversationContext(
            chat_id=CHAT_ID,
            user_id=USER_ID,
            transport=transport,
            session=Session(chat_id=CHAT_ID, language=language),
            translator=Translator(),
            events=queue,
            error_recorder=error_recorder,
        )

    return _make
