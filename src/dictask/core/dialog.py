# src/dictask/core/dialog.py

"""
Per-chat dialog state machine.

This module is transport-agnostic:
- connectors turn inbound updates into TextEvent / VoiceEvent / ButtonEvent,
- the machine updates the chat's session and calls the transcriber / task backend,
- replies go out through the injected ChatChannel.

Key invariants:
- a task is only requested after the credential gate passed at the moment
  "create task" or "confirm" fired,
- while a prompt is pending, the next free text from that chat is its answer;
  commands, button presses and voice messages cancel the prompt instead,
- the typed and button entry paths share the same title -> deadline sequence,
- a finished flow leaves nothing behind for the next one.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..credentials.models import CredentialWriteError
from . import texts
from .commands import CommandRegistry, cmd_cancel, cmd_edit_text, registry
from .events import ACTION_CONFIRM, ACTION_EDIT_TEXT, ButtonEvent, InboundEvent, Keyboard, TextEvent, VoiceEvent
from .ports import ChatChannel, CredentialRepo, TaskBackend, Transcriber
from .session import ChatSession, SessionStore, Stage, TaskDraft

logger = logging.getLogger(__name__)

PromptHandler = Callable[[ChatSession, str], Awaitable[None]]


class DialogStateMachine:
    def __init__(
        self,
        *,
        channel: ChatChannel,
        credentials: CredentialRepo,
        transcriber: Transcriber,
        backend: TaskBackend,
        sessions: SessionStore | None = None,
        commands: CommandRegistry = registry,
    ) -> None:
        self.channel = channel
        self.credentials = credentials
        self.transcriber = transcriber
        self.backend = backend
        self.sessions = sessions if sessions is not None else SessionStore()
        self._commands = commands
        self._prompts: dict[Stage, PromptHandler] = {
            Stage.AWAITING_NEW_TEXT: self._on_new_text,
            Stage.AWAITING_TITLE: self._on_title,
            Stage.AWAITING_DEADLINE: self._on_deadline,
            Stage.AWAITING_WEBHOOK: self._on_webhook,
            Stage.AWAITING_USER_ID: self._on_user_id,
        }

    async def handle(self, event: InboundEvent) -> None:
        session = self.sessions.get(event.chat_id)

        if isinstance(event, TextEvent):
            await self._on_text(session, event.text)
        elif isinstance(event, VoiceEvent):
            self._interrupt(session, "voice message")
            await self._on_voice(session, event.file_id)
        elif isinstance(event, ButtonEvent):
            self._interrupt(session, f"button {event.action!r}")
            await self._on_button(session, event.action)
        else:
            logger.warning("Unsupported event type: %r", event)

    # ---- shared helpers (also used by core/commands.py) ----

    async def send(self, session: ChatSession, text: str, *, keyboard: Keyboard | None = None) -> None:
        await self.channel.send_text(session.chat_id, text, keyboard=keyboard)

    async def credentials_ready(self, session: ChatSession) -> bool:
        cred = self.credentials.get(session.chat_id)
        if not cred.user_id:
            await self.send(session, texts.SET_USER_ID_FIRST)
            return False
        if not cred.webhook_url:
            await self.send(session, texts.SET_WEBHOOK_FIRST)
            return False
        return True

    async def confirm(self, session: ChatSession) -> None:
        if session.pending_transcript is None:
            await self.send(session, texts.NOTHING_TO_CONFIRM)
            return
        if not await self.credentials_ready(session):
            return
        await self._ask_title(session)

    # ---- inbound routing ----

    def _interrupt(self, session: ChatSession, reason: str) -> None:
        if session.awaiting_text:
            logger.info("Chat %s: %s cancels pending %s prompt", session.chat_id, reason, session.stage.value)
            session.cancel_prompt()

    async def _on_text(self, session: ChatSession, text: str) -> None:
        handler = self._commands.resolve(text)
        if handler is not None:
            if handler is not cmd_cancel:
                self._interrupt(session, f"command {text.strip()!r}")
            await handler(self, session)
            return

        if session.awaiting_text:
            await self._prompts[session.stage](session, text.strip())
            return

        await self.send(session, texts.UNKNOWN_INPUT)

    async def _on_voice(self, session: ChatSession, file_id: str) -> None:
        try:
            audio = await self.channel.download_voice(file_id)
        except Exception:
            logger.exception("Failed to download voice file chat=%s file_id=%s", session.chat_id, file_id)
            await self.send(session, texts.TRANSCRIPTION_FAILED)
            return

        result = await self.transcriber.transcribe(audio)
        if not result.ok or result.text is None:
            await self.send(session, texts.render_transcription_error(result))
            return

        session.pending_transcript = result.text
        logger.info("Chat %s: transcript held (%d chars)", session.chat_id, len(result.text))
        await self.send(session, texts.transcript(result.text), keyboard=texts.TRANSCRIPT_ACTIONS)

    async def _on_button(self, session: ChatSession, action: str) -> None:
        if action == ACTION_EDIT_TEXT:
            await cmd_edit_text(self, session)
        elif action == ACTION_CONFIRM:
            await self.confirm(session)
        else:
            logger.warning("Chat %s: unknown button action %r", session.chat_id, action)
            await self.send(session, texts.UNKNOWN_ACTION)

    # ---- prompt answers ----

    async def _ask_title(self, session: ChatSession) -> None:
        session.draft = TaskDraft(description=session.pending_transcript)
        session.stage = Stage.AWAITING_TITLE
        await self.send(session, texts.ASK_TITLE)

    async def _on_new_text(self, session: ChatSession, text: str) -> None:
        session.pending_transcript = text
        await self.send(session, texts.text_updated(text))
        await self._ask_title(session)

    async def _on_title(self, session: ChatSession, text: str) -> None:
        session.draft.title = text
        session.stage = Stage.AWAITING_DEADLINE
        await self.send(session, texts.ASK_DEADLINE)

    async def _on_deadline(self, session: ChatSession, text: str) -> None:
        session.draft.deadline = text
        draft = session.draft
        description = draft.description or ""

        outcome = await self.backend.create_task(session.chat_id, draft.title or "", description, text)
        logger.info("Chat %s: create_task -> %s", session.chat_id, outcome.status.value)

        if outcome.ok:
            session.reset()
            await self.send(session, texts.task_created_with_text(description))
        else:
            # Keep the transcript so the user can fix credentials and confirm again.
            session.cancel_prompt()
        await self.send(session, texts.render_create(outcome))

    async def _on_webhook(self, session: ChatSession, text: str) -> None:
        session.stage = Stage.IDLE
        try:
            self.credentials.set_webhook(session.chat_id, text)
        except CredentialWriteError:
            await self.send(session, texts.SAVE_FAILED)
            return
        await self.send(session, texts.webhook_set(text))

    async def _on_user_id(self, session: ChatSession, text: str) -> None:
        session.stage = Stage.IDLE
        try:
            self.credentials.set_user_id(session.chat_id, text)
        except CredentialWriteError:
            await self.send(session, texts.SAVE_FAILED)
            return
        await self.send(session, texts.user_id_set(text))
