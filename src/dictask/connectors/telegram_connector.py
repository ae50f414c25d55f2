# src/dictask/connectors/telegram_connector.py

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from ..core.dialog import DialogStateMachine
from ..core.dispatch import ChatDispatcher
from ..core.events import (
    ButtonEvent,
    InboundEvent,
    InlineKeyboard,
    Keyboard,
    ReplyKeyboard,
    TextEvent,
    VoiceEvent,
)
from ..core.state import AppState
from .telegram_client import TelegramAPIError, TelegramBotClient

logger = logging.getLogger(__name__)

RETRY_DELAY_SECONDS = 5.0


def render_keyboard(keyboard: Keyboard | None) -> dict[str, Any] | None:
    """Translate a transport-neutral keyboard into a Bot API reply_markup object."""
    if keyboard is None:
        return None

    if isinstance(keyboard, ReplyKeyboard):
        return {
            "keyboard": [[{"text": label} for label in row] for row in keyboard.rows],
            "resize_keyboard": True,
            "one_time_keyboard": True,
        }

    if isinstance(keyboard, InlineKeyboard):
        return {
            "inline_keyboard": [
                [{"text": b.label, "callback_data": b.action} for b in row] for row in keyboard.rows
            ]
        }

    raise TypeError(f"Unsupported keyboard: {keyboard!r}")


def parse_update(update: dict[str, Any]) -> InboundEvent | None:
    """Map one getUpdates item to an event; anything the dialog does not handle -> None."""
    message = update.get("message")
    if isinstance(message, dict):
        chat_id = (message.get("chat") or {}).get("id")
        if chat_id is None:
            return None

        voice = message.get("voice")
        if isinstance(voice, dict) and voice.get("file_id"):
            return VoiceEvent(chat_id=int(chat_id), file_id=str(voice["file_id"]))

        text = message.get("text")
        if isinstance(text, str):
            return TextEvent(chat_id=int(chat_id), text=text)
        return None

    query = update.get("callback_query")
    if isinstance(query, dict):
        chat_id = ((query.get("message") or {}).get("chat") or {}).get("id")
        data = query.get("data")
        if chat_id is None or not isinstance(data, str):
            return None
        return ButtonEvent(chat_id=int(chat_id), action=data)

    return None


class TelegramChannel:
    """ChatChannel implementation on top of the Bot API."""

    def __init__(self, client: TelegramBotClient) -> None:
        self._client = client

    async def send_text(self, chat_id: int, text: str, *, keyboard: Keyboard | None = None) -> None:
        await self._client.send_message(chat_id, text, reply_markup=render_keyboard(keyboard))

    async def download_voice(self, file_id: str) -> bytes:
        file_path = await self._client.get_file_path(file_id)
        return await self._client.download_file(file_path)


async def _skip_pending_updates(client: TelegramBotClient) -> int:
    """Return the offset just past whatever queued up while the bot was down."""
    try:
        updates = await client.get_updates(offset=-1, timeout=0)
    except (httpx.HTTPError, TelegramAPIError):
        logger.warning("Could not skip pending updates; they will be processed.", exc_info=True)
        return 0
    if not updates:
        return 0
    last = max(int(u.get("update_id", 0)) for u in updates)
    logger.info("Skipped pending updates up to update_id=%d", last)
    return last + 1


async def _ack_callback(client: TelegramBotClient, update: dict[str, Any]) -> None:
    query = update.get("callback_query")
    if not isinstance(query, dict) or not query.get("id"):
        return
    try:
        await client.answer_callback_query(str(query["id"]))
    except (httpx.HTTPError, TelegramAPIError):
        logger.debug("answerCallbackQuery failed.", exc_info=True)


async def run_telegram_bot(state: AppState) -> None:
    """
    Telegram connector (async): long-poll getUpdates and feed the dialog.

    To stop the connector, cancel the coroutine/task.
    """
    settings = state.settings
    token = (getattr(settings, "telegram_bot_token", None) or "").strip()
    if not token:
        logger.error("Telegram is enabled but not configured. Set DICTASK_TELEGRAM_BOT_TOKEN in your .env.")
        return

    client = TelegramBotClient(state.http, token=token, api_url=settings.telegram_api_url)
    channel = TelegramChannel(client)
    machine = DialogStateMachine(
        channel=channel,
        credentials=state.credentials,
        transcriber=state.transcriber,
        backend=state.backend,
        sessions=state.sessions,
    )
    dispatcher = ChatDispatcher(machine, channel)

    offset = await _skip_pending_updates(client) if settings.telegram_drop_pending else 0
    poll_timeout = max(0, int(settings.telegram_poll_timeout))
    logger.info("Telegram connector started (poll_timeout=%ss).", poll_timeout)

    try:
        while True:
            try:
                updates = await client.get_updates(offset=offset, timeout=poll_timeout)
            except (httpx.HTTPError, TelegramAPIError):
                logger.exception("getUpdates failed; retrying in %.0fs", RETRY_DELAY_SECONDS)
                await asyncio.sleep(RETRY_DELAY_SECONDS)
                continue

            for update in updates:
                try:
                    offset = max(offset, int(update.get("update_id", 0)) + 1)
                except (TypeError, ValueError):
                    logger.warning("Update without a usable update_id: %r", update)
                    continue

                await _ack_callback(client, update)

                event = parse_update(update)
                if event is None:
                    logger.debug("Ignoring update %s", update.get("update_id"))
                    continue

                logger.info("Telegram <%s> %s", event.chat_id, type(event).__name__)
                dispatcher.submit(event)

    except asyncio.CancelledError:
        logger.info("Telegram connector cancelled.")
        raise
    finally:
        await dispatcher.aclose()
        logger.info("Telegram connector stopped.")
