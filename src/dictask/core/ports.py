# src/dictask/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The dialog depends on Protocols instead of concrete implementations.
This keeps the chat transport, the speech service and the task backend swappable
and makes testing easier.
"""

from typing import Awaitable, Protocol

from ..credentials.models import Credential
from ..tasks.task_models import Period
from .events import Keyboard
from .outcomes import CreateOutcome, PlansOutcome, Transcription


class ChatChannel(Protocol):
    """
    Connector-side port: how the dialog talks back to a chat.

    The connector decides how to render the keyboard (Telegram reply_markup, console text).
    """

    def send_text(self, chat_id: int, text: str, *, keyboard: Keyboard | None = None) -> Awaitable[None]: ...

    def download_voice(self, file_id: str) -> Awaitable[bytes]: ...


class CredentialRepo(Protocol):
    def get(self, chat_id: int) -> Credential: ...
    def set_webhook(self, chat_id: int, url: str) -> None: ...
    def set_user_id(self, chat_id: int, user_id: str) -> None: ...


class Transcriber(Protocol):
    def transcribe(self, audio: bytes) -> Awaitable[Transcription]: ...


class TaskBackend(Protocol):
    def list_tasks(self, chat_id: int, period: Period) -> Awaitable[PlansOutcome]: ...

    def create_task(
            self,
            chat_id: int,
            title: str,
            description: str,
            deadline: str,
    ) -> Awaitable[CreateOutcome]: ...
