"""Chat transport events and UI primitives."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class MessageRef:
    """Address of one delivered message, usable for edits and deletes."""

    chat_id: str
    message_id: int


@dataclass(frozen=True)
class TextEvent:
    """User sent a text message."""

    chat_id: str
    user_id: str
    text: str
    message_id: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class ButtonEvent:
    """User pressed an inline button.

    `data` is None for presses that carry no payload. `message` points at the
    message the keyboard was attached to, when the transport knows it.
    """

    chat_id: str
    user_id: str
    data: str | None
    callback_id: str = ""
    message: MessageRef | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class MediaEvent:
    """User sent a message that is not plain text."""

    chat_id: str
    user_id: str
    kind: str
    message_id: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


ChatEvent = TextEvent | ButtonEvent | MediaEvent


@dataclass(frozen=True)
class InlineButton:
    text: str
    data: str | None = None
    url: str | None = None


class Keyboard:
    """Inline keyboard assembled row by row."""

    def __init__(self) -> None:
        self._rows: list[list[InlineButton]] = [[]]

    def button(self, text: str, data: str) -> Keyboard:
        self._rows[-1].append(InlineButton(text=text, data=data))
        return self

    def url(self, text: str, url: str) -> Keyboard:
        self._rows[-1].append(InlineButton(text=text, url=url))
        return self

    def row(self) -> Keyboard:
        if self._rows[-1]:
            self._rows.append([])
        return self

    @property
    def rows(self) -> list[list[InlineButton]]:
        return [list(row) for row in self._rows if row]

    def buttons(self) -> list[InlineButton]:
        return [button for row in self._rows for button in row]

    def payloads(self) -> list[str]:
        return [button.data for button in self.buttons() if button.data is not None]

    def __len__(self) -> int:
        return len(self.buttons())

    def __repr__(self) -> str:
        return f"Keyboard(rows={self.rows!r})"
