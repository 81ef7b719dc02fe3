"""Signal-based event bus between transports and the dispatcher."""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any

from blinker import Signal

from convotree.transport.events import ChatEvent

EventHandler = Callable[[ChatEvent], Coroutine[Any, Any, None]]


class EventBus:
    """In-process bus backed by a blinker signal."""

    def __init__(self) -> None:
        self._inbound = Signal("convotree.inbound")

    async def publish(self, event: ChatEvent) -> None:
        await self._inbound.send_async(self, event=event)

    def on_event(self, handler: EventHandler) -> Callable[[], None]:
        async def _receiver(sender: Any, *, event: ChatEvent) -> None:
            await handler(event)

        self._inbound.connect(_receiver, weak=False)
        return lambda: self._inbound.disconnect(_receiver)
