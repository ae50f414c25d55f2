# tests/test_telegram_connector.py

from __future__ import annotations

import json

import httpx
import pytest

from dictask.connectors.console_connector import parse_console_line
from dictask.connectors.telegram_client import TelegramAPIError, TelegramBotClient, split_text
from dictask.connectors.telegram_connector import TelegramChannel, parse_update, render_keyboard
from dictask.core import texts
from dictask.core.events import ACTION_CONFIRM, ButtonEvent, TextEvent, VoiceEvent


def test_parse_update_maps_messages_and_callbacks() -> None:
    assert parse_update({"update_id": 1, "message": {"chat": {"id": 5}, "text": "hi"}}) == TextEvent(5, "hi")
    assert parse_update(
        {"update_id": 2, "message": {"chat": {"id": 5}, "voice": {"file_id": "F1", "duration": 3}}}
    ) == VoiceEvent(5, "F1")
    assert parse_update(
        {"update_id": 3, "callback_query": {"id": "q", "data": ACTION_CONFIRM, "message": {"chat": {"id": -7}}}}
    ) == ButtonEvent(-7, ACTION_CONFIRM)


def test_parse_update_ignores_other_payloads() -> None:
    assert parse_update({"update_id": 4, "message": {"chat": {"id": 5}, "photo": []}}) is None
    assert parse_update({"update_id": 5, "edited_message": {}}) is None
    assert parse_update({"update_id": 6, "callback_query": {"id": "q", "message": {"chat": {"id": 1}}}}) is None


def test_render_keyboard() -> None:
    menu = render_keyboard(texts.MAIN_MENU)
    assert menu["keyboard"][0] == [{"text": texts.CMD_CREATE_TASK}, {"text": texts.CMD_PLANS_DAY}]
    assert menu["resize_keyboard"] is True

    inline = render_keyboard(texts.TRANSCRIPT_ACTIONS)
    assert inline["inline_keyboard"][0][1] == {
        "text": "Подтвердить и создать задачу",
        "callback_data": ACTION_CONFIRM,
    }
    assert render_keyboard(None) is None


def test_split_text_respects_limit() -> None:
    assert split_text("short") == ["short"]

    text = "\n".join(["x" * 30] * 10)
    chunks = split_text(text, max_chars=100)
    assert all(len(c) <= 100 for c in chunks)
    assert "\n".join(chunks) == text


@pytest.mark.asyncio
async def test_channel_sends_markup_and_downloads_voice() -> None:
    calls: list[tuple[str, dict]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/file/"):
            assert path == "/file/bot123:abc/voice/file_1.oga"
            return httpx.Response(200, content=b"OggS-data")
        method = path.rsplit("/", 1)[-1]
        body = json.loads(request.content)
        calls.append((method, body))
        if method == "getFile":
            return httpx.Response(200, json={"ok": True, "result": {"file_path": "voice/file_1.oga"}})
        return httpx.Response(200, json={"ok": True, "result": {"message_id": 1}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        channel = TelegramChannel(TelegramBotClient(http, token="123:abc", api_url="https://tg.test/"))
        await channel.send_text(9, "Транскрипция: привет", keyboard=texts.TRANSCRIPT_ACTIONS)
        audio = await channel.download_voice("F1")

    method, body = calls[0]
    assert method == "sendMessage"
    assert body["chat_id"] == 9
    assert "inline_keyboard" in body["reply_markup"]
    assert calls[1] == ("getFile", {"file_id": "F1"})
    assert audio == b"OggS-data"


@pytest.mark.asyncio
async def test_api_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"ok": False, "description": "Bad Request: chat not found"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = TelegramBotClient(http, token="t", api_url="https://tg.test")
        with pytest.raises(TelegramAPIError, match="chat not found"):
            await client.send_message(1, "hi")


def test_console_line_parsing() -> None:
    assert parse_console_line("/voice ~/note.ogg", chat_id=0) == VoiceEvent(0, "~/note.ogg")
    assert parse_console_line("/press edit_text", chat_id=0) == ButtonEvent(0, "edit_text")
    assert parse_console_line("Планы на день", chat_id=0) == TextEvent(0, "Планы на день")
    assert parse_console_line("   ") is None
