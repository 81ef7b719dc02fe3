from __future__ import annotations

from types import SimpleNamespace

import pytest

from convotree.bus import EventBus
from convotree.errors import ConfigurationError
from convotree.transport.events import ButtonEvent, ChatEvent, Keyboard, MediaEvent, MessageRef, TextEvent
from convotree.transport.telegram import TelegramConfig, TelegramTransport, to_markup


class DummyMessage:
    def __init__(self, *, chat_id: int, text: str | None, message_id: int = 1, **media: object) -> None:
        self.chat_id = chat_id
        self.text = text
        self.message_id = message_id
        self.replies: list[str] = []
        for kind, value in media.items():
            setattr(self, kind, value)

    async def reply_text(self, text: str) -> None:
        self.replies.append(text)


class DummyQuery:
    def __init__(self, *, data: str | None, chat_id: int = 999, message_id: int = 7) -> None:
        self.id = "q1"
        self.data = data
        self.message = SimpleNamespace(chat=SimpleNamespace(id=chat_id), message_id=message_id)
        self.answers: list[str | None] = []

    async def answer(self, text: str | None = None) -> None:
        self.answers.append(text)


class DummyBot:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, object]]] = []

    async def send_message(self, **kwargs: object) -> SimpleNamespace:
        self.calls.append(("send_message", kwargs))
        return SimpleNamespace(chat_id=kwargs["chat_id"], message_id=42)

    async def edit_message_text(self, **kwargs: object) -> None:
        self.calls.append(("edit_message_text", kwargs))

    async def delete_message(self, **kwargs: object) -> None:
        self.calls.append(("delete_message", kwargs))

    async def answer_callback_query(self, **kwargs: object) -> None:
        self.calls.append(("answer_callback_query", kwargs))


def _transport(allow_from: set[str] | None = None) -> tuple[TelegramTransport, list[ChatEvent]]:
    bus = EventBus()
    published: list[ChatEvent] = []

    async def _collect(event: ChatEvent) -> None:
        published.append(event)

    bus.on_event(_collect)
    transport = TelegramTransport(bus, TelegramConfig(token="t", allow_from=allow_from or set()))  # noqa: S106
    return transport, published


def _user(user_id: int = 1, username: str = "tester") -> SimpleNamespace:
    return SimpleNamespace(id=user_id, username=username)


@pytest.mark.asyncio
async def test_text_message_is_published() -> None:
    transport, published = _transport()
    message = DummyMessage(chat_id=999, text="hello", message_id=3)

    await transport._on_message(SimpleNamespace(message=message, effective_user=_user()), None)  # type: ignore[arg-type]

    assert published == [
        TextEvent(
            chat_id="999",
            user_id="1",
            text="hello",
            message_id=3,
            metadata={"username": "tester"},
            timestamp=published[0].timestamp,
        )
    ]


@pytest.mark.asyncio
async def test_media_message_is_published_with_kind() -> None:
    transport, published = _transport()
    message = DummyMessage(chat_id=999, text=None, photo=["file"])

    await transport._on_message(SimpleNamespace(message=message, effective_user=_user()), None)  # type: ignore[arg-type]

    assert len(published) == 1
    assert isinstance(published[0], MediaEvent)
    assert published[0].kind == "photo"


@pytest.mark.asyncio
async def test_message_from_unknown_user_is_denied() -> None:
    transport, published = _transport(allow_from={"2"})
    message = DummyMessage(chat_id=999, text="hello")

    await transport._on_message(SimpleNamespace(message=message, effective_user=_user()), None)  # type: ignore[arg-type]

    assert published == []
    assert message.replies == ["Access denied."]


@pytest.mark.asyncio
async def test_allow_list_accepts_username() -> None:
    transport, published = _transport(allow_from={"tester"})
    message = DummyMessage(chat_id=999, text="hello")

    await transport._on_message(SimpleNamespace(message=message, effective_user=_user()), None)  # type: ignore[arg-type]

    assert len(published) == 1
    assert message.replies == []


@pytest.mark.asyncio
async def test_button_press_is_published_with_message_ref() -> None:
    transport, published = _transport()
    query = DummyQuery(data="pick_0")

    await transport._on_button(SimpleNamespace(callback_query=query, effective_user=_user()), None)  # type: ignore[arg-type]

    (event,) = published
    assert isinstance(event, ButtonEvent)
    assert event.chat_id == "999"
    assert event.data == "pick_0"
    assert event.callback_id == "q1"
    assert event.message == MessageRef(chat_id="999", message_id=7)
    assert query.answers == []


@pytest.mark.asyncio
async def test_button_press_from_unknown_user_is_denied() -> None:
    transport, published = _transport(allow_from={"2"})
    query = DummyQuery(data="pick_0")

    await transport._on_button(SimpleNamespace(callback_query=query, effective_user=_user()), None)  # type: ignore[arg-type]

    assert published == []
    assert query.answers == ["Access denied."]


@pytest.mark.asyncio
async def test_outbound_calls_use_bot_api() -> None:
    transport, _ = _transport()
    bot = DummyBot()
    transport._app = SimpleNamespace(bot=bot)  # type: ignore[assignment]

    ref = await transport.send_message("999", "hi", Keyboard().button("A", "a"))
    await transport.edit_message_text("999", 42, "edited")
    await transport.delete_message("999", 42)
    await transport.answer_button(ButtonEvent(chat_id="999", user_id="1", data="a", callback_id="q1"), "ok")
    await transport.answer_button(ButtonEvent(chat_id="999", user_id="1", data="a"))

    assert ref == MessageRef(chat_id="999", message_id=42)
    assert [name for name, _kwargs in bot.calls] == [
        "send_message",
        "edit_message_text",
        "delete_message",
        "answer_callback_query",
    ]
    send_kwargs = bot.calls[0][1]
    assert send_kwargs["chat_id"] == 999
    assert send_kwargs["reply_markup"] is not None
    assert bot.calls[1][1]["reply_markup"] is None
    assert bot.calls[3][1] == {"callback_query_id": "q1", "text": "ok"}


@pytest.mark.asyncio
async def test_outbound_before_start_fails() -> None:
    transport, _ = _transport()

    with pytest.raises(RuntimeError, match="not started"):
        await transport.send_message("999", "hi")


@pytest.mark.asyncio
async def test_start_requires_token() -> None:
    transport = TelegramTransport(EventBus(), TelegramConfig(token=""))

    with pytest.raises(ConfigurationError):
        await transport.start()


def test_to_markup_keeps_rows_and_urls() -> None:
    keyboard = Keyboard().button("A", "a").button("B", "b").row().url("Docs", "https://example.org")

    markup = to_markup(keyboard)

    assert markup is not None
    rows = markup.inline_keyboard
    assert [button.callback_data for button in rows[0]] == ["a", "b"]
    assert rows[1][0].url == "https://example.org"
    assert to_markup(Keyboard()) is None
    assert to_markup(None) is None
