"""Per-chat session state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Session:
    """In-memory state for one chat, alive for the process lifetime."""

    chat_id: str
    language: str = "en"
    state: str = "START"
    pending_conversation: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


class SessionStore:
    """Chat id to session mapping, created on first contact."""

    def __init__(self, *, default_language: str = "en") -> None:
        self._default_language = default_language
        self._sessions: dict[str, Session] = {}

    def get(self, chat_id: str) -> Session:
        existing = self._sessions.get(chat_id)
        if existing is not None:
            return existing
        session = Session(chat_id=chat_id, language=self._default_language)
        self._sessions[chat_id] = session
        return session

    def reset(self, chat_id: str) -> None:
        self._sessions.pop(chat_id, None)

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
