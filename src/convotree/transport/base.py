"""Chat transport interface."""

from __future__ import annotations

from typing import Protocol

from convotree.transport.events import ButtonEvent, Keyboard, MessageRef


class ChatTransport(Protocol):
    """Outbound operations the conversation engine needs from a chat platform.

    All methods are fallible I/O. The engine only recovers from
    `edit_message_text` failures; every other error propagates.
    """

    async def send_message(self, chat_id: str, text: str, keyboard: Keyboard | None = None) -> MessageRef: ...

    async def edit_message_text(
        self,
        chat_id: str,
        message_id: int,
        text: str,
        keyboard: Keyboard | None = None,
    ) -> None: ...

    async def delete_message(self, chat_id: str, message_id: int) -> None: ...

    async def answer_button(self, event: ButtonEvent, text: str | None = None) -> None: ...
