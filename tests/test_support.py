from __future__ import annotations

from pathlib import Path

import pytest
from conftest import CHAT_ID, ContextFactory, FakeTransport, press

from convotree.error_log import ErrorRecorder
from convotree.i18n import EN, Translator
from convotree.session import SessionStore
from convotree.transport.events import Keyboard, MessageRef


def test_translator_falls_back_to_default_language_then_key() -> None:
    translator = Translator(catalogs={"en": {"hi": "Hello {name}", "bye": "Bye"}, "fr": {"hi": "Salut {name}"}})

    assert translator.translate("hi", "fr", {"name": "Ana"}) == "Salut Ana"
    assert translator.translate("bye", "fr") == "Bye"
    assert translator.translate("missing", "fr") == "missing"
    assert translator.translate("hi", "de", {"name": "Jo"}) == "Hello Jo"
    assert translator.languages == {"en", "fr"}


def test_builtin_catalogs_cover_core_keys() -> None:
    translator = Translator()

    assert translator.languages == {"en", "ar"}
    for key in ("greeting", "operation_cancelled", "page_info", "tap_button_hint"):
        assert translator.translate(key, "ar") != EN[key]


def test_session_store_creates_and_resets() -> None:
    sessions = SessionStore(default_language="ar")

    session = sessions.get("a")
    session.state = "students"

    assert sessions.get("a") is session
    assert session.language == "ar"
    assert "a" in sessions
    sessions.reset("a")
    assert "a" not in sessions
    assert sessions.get("a").state == "START"
    assert len(sessions) == 1


def test_error_recorder_appends_lines(tmp_path: Path) -> None:
    recorder = ErrorRecorder(tmp_path / "logs" / "errors.jsonl")

    assert recorder.read() == []
    recorder.record(chat_id="c", user_id="u", error=ValueError("bad"), result_keys=["a"], elapsed_ms=5)
    recorder.record(chat_id="c", user_id="u", error=KeyError("k"), result_keys=[], elapsed_ms=7)

    first, second = recorder.read()
    assert first["error_type"] == "ValueError"
    assert first["result_keys"] == ["a"]
    assert second["elapsed_ms"] == 7


def test_keyboard_rows_skip_empty() -> None:
    keyboard = Keyboard().row().button("A", "a").row().row().url("Site", "https://example.org")

    assert [[button.text for button in row] for row in keyboard.rows] == [["A"], ["Site"]]
    assert keyboard.payloads() == ["a"]
    assert len(keyboard) == 2


@pytest.mark.asyncio
async def test_cancel_and_greet_removes_triggering_keyboard(
    make_context: ContextFactory, transport: FakeTransport
) -> None:
    ctx = make_context()
    ctx.session.state = "students"

    await ctx.cancel_and_greet(press("cancel", 4))

    assert transport.deleted == [MessageRef(CHAT_ID, 4)]
    assert transport.texts == [EN["greeting"]]
    assert ctx.session.state == "START"
