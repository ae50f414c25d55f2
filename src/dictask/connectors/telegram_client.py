# src/dictask/connectors/telegram_client.py

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

MAX_MESSAGE_CHARS = 4096


class TelegramAPIError(RuntimeError):
    """The Bot API answered, but with ok=false or an unreadable body."""


def split_text(text: str, max_chars: int = MAX_MESSAGE_CHARS) -> list[str]:
    """Split a long reply on line boundaries so each chunk fits one Telegram message."""
    if len(text) <= max_chars:
        return [text]

    chunks: list[str] = []
    buf: list[str] = []
    size = 0

    def flush() -> None:
        nonlocal buf, size
        if buf:
            chunks.append("\n".join(buf))
        buf = []
        size = 0

    for line in text.split("\n"):
        candidate = line if len(line) <= max_chars else line[: max_chars - 3] + "..."
        add_len = len(candidate) + (1 if buf else 0)
        if size + add_len > max_chars:
            flush()
            add_len = len(candidate)
        buf.append(candidate)
        size += add_len

    flush()
    return chunks


class TelegramBotClient:
    """Minimal async Telegram Bot API client (long polling, no webhooks)."""

    def __init__(self, http: httpx.AsyncClient, *, token: str, api_url: str = "https://api.telegram.org") -> None:
        self._http = http
        self._token = token
        self._api_url = api_url.rstrip("/")

    async def call(self, method: str, payload: dict[str, Any] | None = None, *, timeout: float | None = None) -> Any:
        url = f"{self._api_url}/bot{self._token}/{method}"
        if timeout is not None:
            resp = await self._http.post(url, json=payload or {}, timeout=timeout)
        else:
            resp = await self._http.post(url, json=payload or {})

        try:
            data = resp.json()
        except ValueError as e:
            raise TelegramAPIError(f"Telegram API invalid JSON ({method}): {resp.text[:300]}") from e

        if not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description") if isinstance(data, dict) else data
            raise TelegramAPIError(f"Telegram API error ({method}): {description}")

        return data.get("result")

    async def get_updates(self, *, offset: int, timeout: int) -> list[dict[str, Any]]:
        payload = {
            "offset": int(offset),
            "timeout": int(timeout),
            "allowed_updates": ["message", "callback_query"],
        }
        # The HTTP read timeout must outlast the server-side long poll.
        result = await self.call("getUpdates", payload, timeout=float(timeout) + 10.0)
        if not isinstance(result, list):
            return []
        return [x for x in result if isinstance(x, dict)]

    async def send_message(self, chat_id: int, text: str, *, reply_markup: dict[str, Any] | None = None) -> None:
        chunks = split_text(text)
        for i, chunk in enumerate(chunks):
            payload: dict[str, Any] = {
                "chat_id": chat_id,
                "text": chunk,
                "disable_web_page_preview": True,
            }
            # Buttons go under the last chunk.
            if reply_markup is not None and i == len(chunks) - 1:
                payload["reply_markup"] = reply_markup
            await self.call("sendMessage", payload)

    async def answer_callback_query(self, callback_query_id: str) -> None:
        await self.call("answerCallbackQuery", {"callback_query_id": callback_query_id})

    async def get_file_path(self, file_id: str) -> str:
        result = await self.call("getFile", {"file_id": file_id})
        file_path = result.get("file_path") if isinstance(result, dict) else None
        if not file_path:
            raise TelegramAPIError(f"Telegram API error (getFile): no file_path for {file_id}")
        return str(file_path)

    async def download_file(self, file_path: str) -> bytes:
        resp = await self._http.get(f"{self._api_url}/file/bot{self._token}/{file_path}")
        resp.raise_for_status()
        logger.debug("Downloaded %s (%d bytes)", file_path, len(resp.content))
        return resp.content
