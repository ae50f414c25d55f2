# src/dictask/core/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from ..tasks.task_models import Period
from . import texts
from .session import ChatSession, Stage

if TYPE_CHECKING:
    from .dialog import DialogStateMachine

CommandHandler = Callable[["DialogStateMachine", ChatSession], Awaitable[None]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """
    Chat command registry: menu labels and /slash aliases -> handler.

    Menu labels must match the whole message (the reply keyboard sends them verbatim);
    slash commands match on the first word, with an optional @botname suffix.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}
        self._aliases: dict[str, list[str]] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[name] = help_text
        self._aliases[name] = list(aliases)
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def resolve(self, text: str) -> CommandHandler | None:
        """Return the handler for a message, or None if it is not a command."""
        line = text.strip().lower()
        if not line:
            return None

        if line.startswith("/"):
            word = line.split()[0]
            word = word.split("@", 1)[0]
            return self._handlers.get(word)

        return self._handlers.get(line)

    def build_help(self) -> str:
        lines = ["Доступные команды:"]
        for name, help_text in self._help.items():
            aliases = self._aliases.get(name) or []
            alias_str = f" ({', '.join(aliases)})" if aliases else ""
            lines.append(f"  {name}{alias_str} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


async def cmd_start(machine: DialogStateMachine, session: ChatSession) -> None:
    await machine.send(session, texts.WELCOME, keyboard=texts.MAIN_MENU)


async def cmd_help(machine: DialogStateMachine, session: ChatSession) -> None:
    await machine.send(session, registry.build_help())


async def cmd_status(machine: DialogStateMachine, session: ChatSession) -> None:
    await machine.send(session, texts.render_status(machine.credentials.get(session.chat_id)))


async def cmd_cancel(machine: DialogStateMachine, session: ChatSession) -> None:
    if not session.awaiting_text:
        await machine.send(session, texts.NOTHING_TO_CANCEL)
        return
    logger.info("Chat %s: prompt %s cancelled by user", session.chat_id, session.stage.value)
    session.cancel_prompt()
    await machine.send(session, texts.CANCELLED, keyboard=texts.MAIN_MENU)


async def cmd_create_task(machine: DialogStateMachine, session: ChatSession) -> None:
    if not await machine.credentials_ready(session):
        return
    await machine.send(session, texts.ASK_VOICE)


async def cmd_edit_text(machine: DialogStateMachine, session: ChatSession) -> None:
    if session.pending_transcript is None:
        await machine.send(session, texts.NOTHING_TO_EDIT)
        return
    session.stage = Stage.AWAITING_NEW_TEXT
    await machine.send(session, texts.current_text(session.pending_transcript))


async def cmd_set_webhook(machine: DialogStateMachine, session: ChatSession) -> None:
    session.stage = Stage.AWAITING_WEBHOOK
    await machine.send(session, texts.ASK_WEBHOOK)


async def cmd_set_user_id(machine: DialogStateMachine, session: ChatSession) -> None:
    session.stage = Stage.AWAITING_USER_ID
    await machine.send(session, texts.ASK_USER_ID)


def _plans_command(period: Period) -> CommandHandler:
    async def cmd_plans(machine: DialogStateMachine, session: ChatSession) -> None:
        outcome = await machine.backend.list_tasks(session.chat_id, period)
        await machine.send(session, texts.render_plans(period, outcome))

    return cmd_plans


registry.register("/start", cmd_start, help_text="Показать меню.")
registry.register("/help", cmd_help, help_text="Список команд.")
registry.register(texts.CMD_CREATE_TASK, cmd_create_task, help_text="Надиктовать новую задачу.", aliases=["/task"])
registry.register(texts.CMD_EDIT_TEXT, cmd_edit_text, help_text="Исправить расшифровку.", aliases=["/edit"])
registry.register(texts.CMD_PLANS_DAY, _plans_command(Period.DAY), help_text="Задачи на сутки.", aliases=["/day"])
registry.register(texts.CMD_PLANS_WEEK, _plans_command(Period.WEEK), help_text="Задачи на 7 дней.", aliases=["/week"])
registry.register(
    texts.CMD_PLANS_MONTH, _plans_command(Period.MONTH), help_text="Задачи на 30 дней.", aliases=["/month"]
)
registry.register(texts.CMD_SET_WEBHOOK, cmd_set_webhook, help_text="Задать Webhook URL Битрикс24.", aliases=["/webhook"])
registry.register(texts.CMD_SET_USER_ID, cmd_set_user_id, help_text="Задать User ID Битрикс24.", aliases=["/userid"])
registry.register("/status", cmd_status, help_text="Показать, какие настройки заданы.")
registry.register("/cancel", cmd_cancel, help_text="Отменить текущий ввод.")
