# src/dictask/core/session.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Stage(StrEnum):
    """Where a chat is in the prompt sequence. Every stage except IDLE waits for free text."""

    IDLE = "idle"
    AWAITING_NEW_TEXT = "awaiting_new_text"
    AWAITING_TITLE = "awaiting_title"
    AWAITING_DEADLINE = "awaiting_deadline"
    AWAITING_WEBHOOK = "awaiting_webhook"
    AWAITING_USER_ID = "awaiting_user_id"


@dataclass(slots=True)
class TaskDraft:
    title: str | None = None
    description: str | None = None
    deadline: str | None = None


@dataclass(slots=True)
class ChatSession:
    chat_id: int
    stage: Stage = Stage.IDLE
    pending_transcript: str | None = None
    draft: TaskDraft = field(default_factory=TaskDraft)

    @property
    def awaiting_text(self) -> bool:
        return self.stage != Stage.IDLE

    def cancel_prompt(self) -> None:
        """Drop a pending prompt and the half-built task; keep the held transcript."""
        self.stage = Stage.IDLE
        self.draft = TaskDraft()

    def reset(self) -> None:
        self.cancel_prompt()
        self.pending_transcript = None


class SessionStore:
    """Volatile per-chat sessions, created lazily on the first event from a chat."""

    def __init__(self) -> None:
        self._sessions: dict[int, ChatSession] = {}

    def get(self, chat_id: int) -> ChatSession:
        session = self._sessions.get(chat_id)
        if session is None:
            session = ChatSession(chat_id=chat_id)
            self._sessions[chat_id] = session
        return session

    def __len__(self) -> int:
        return len(self._sessions)
