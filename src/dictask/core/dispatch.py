# src/dictask/core/dispatch.py

from __future__ import annotations

import asyncio
import contextlib
import logging

from . import texts
from .dialog import DialogStateMachine
from .events import InboundEvent
from .ports import ChatChannel

logger = logging.getLogger(__name__)


class ChatDispatcher:
    """
    Run inbound events as concurrent tasks, serialized per chat.

    One asyncio.Lock per chat id; waiters are woken in FIFO order, so events from the
    same chat are handled in arrival order while other chats keep going (for example
    during the transcription poll sleeps). A chat's lock lives only while it has events
    queued or running. A crashing handler is logged and answered with a generic error;
    it never stops the connector.
    """

    def __init__(self, machine: DialogStateMachine, channel: ChatChannel) -> None:
        self._machine = machine
        self._channel = channel
        self._locks: dict[int, asyncio.Lock] = {}
        self._queued: dict[int, int] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def submit(self, event: InboundEvent) -> asyncio.Task[None]:
        chat_id = event.chat_id
        lock = self._locks.setdefault(chat_id, asyncio.Lock())
        self._queued[chat_id] = self._queued.get(chat_id, 0) + 1
        task = asyncio.create_task(self._run(lock, event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, lock: asyncio.Lock, event: InboundEvent) -> None:
        try:
            async with lock:
                try:
                    await self._machine.handle(event)
                except Exception:
                    logger.exception("Dialog handler crashed chat=%s event=%r", event.chat_id, event)
                    with contextlib.suppress(Exception):
                        await self._channel.send_text(event.chat_id, texts.INTERNAL_ERROR)
        finally:
            self._release(event.chat_id)

    def _release(self, chat_id: int) -> None:
        left = self._queued.get(chat_id, 1) - 1
        if left > 0:
            self._queued[chat_id] = left
            return
        self._queued.pop(chat_id, None)
        self._locks.pop(chat_id, None)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    @property
    def active_chats(self) -> int:
        return len(self._locks)

    async def aclose(self) -> None:
        """Cancel in-flight handlers (shutdown only)."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
