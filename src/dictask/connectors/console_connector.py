# src/dictask/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path

from ..core.dialog import DialogStateMachine
from ..core.events import ButtonEvent, InboundEvent, InlineKeyboard, Keyboard, ReplyKeyboard, TextEvent, VoiceEvent
from ..core.state import AppState

logger = logging.getLogger(__name__)

CONSOLE_CHAT_ID = 0


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def parse_console_line(line: str, chat_id: int = CONSOLE_CHAT_ID) -> InboundEvent | None:
    """
    /voice <path>    -> voice message read from a local audio file
    /press <action>  -> inline button press (edit_text, confirm_and_create_task)
    anything else    -> plain text
    """
    line = line.strip()
    if not line:
        return None

    head, _, rest = line.partition(" ")
    rest = rest.strip()
    if head.lower() == "/voice" and rest:
        return VoiceEvent(chat_id=chat_id, file_id=rest)
    if head.lower() == "/press" and rest:
        return ButtonEvent(chat_id=chat_id, action=rest)
    return TextEvent(chat_id=chat_id, text=line)


def render_keyboard_text(keyboard: Keyboard | None) -> list[str]:
    if isinstance(keyboard, ReplyKeyboard):
        return ["[menu] " + " | ".join(row) for row in keyboard.rows]
    if isinstance(keyboard, InlineKeyboard):
        return [
            "[buttons] " + " | ".join(f"{b.label} (/press {b.action})" for b in row) for row in keyboard.rows
        ]
    return []


class ConsoleChannel:
    """Prints replies to stdout; voice 'file ids' are local file paths."""

    async def send_text(self, chat_id: int, text: str, *, keyboard: Keyboard | None = None) -> None:
        _print_ts(f"<<< {text}")
        for line in render_keyboard_text(keyboard):
            _print_ts(line)

    async def download_voice(self, file_id: str) -> bytes:
        return await asyncio.to_thread(Path(file_id).expanduser().read_bytes)


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type messages or menu labels. /voice <file>, /press <action>, /exit to quit.\n")

    machine = DialogStateMachine(
        channel=ConsoleChannel(),
        credentials=state.credentials,
        transcriber=state.transcriber,
        backend=state.backend,
        sessions=state.sessions,
    )

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> You: ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        event = parse_console_line(user_input)
        if event is None:
            continue

        try:
            await machine.handle(event)
        except Exception:
            logger.exception("Console handler crashed.")
            _print_ts("Internal error while handling a message.")

    logger.info("Console connector finished.")
