"""Chat transport interface, events and adapters."""

from convotree.transport.base import ChatTransport
from convotree.transport.events import (
    ButtonEvent,
    ChatEvent,
    InlineButton,
    Keyboard,
    MediaEvent,
    MessageRef,
    TextEvent,
)

__all__ = [
    "ButtonEvent",
    "ChatEvent",
    "ChatTransport",
    "InlineButton",
    "Keyboard",
    "MediaEvent",
    "MessageRef",
    "TextEvent",
]
