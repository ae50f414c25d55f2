# tests/test_bitrix24.py

from __future__ import annotations

import json
from datetime import UTC, datetime

import httpx
import pytest

from dictask.core import texts
from dictask.core.outcomes import CreateStatus, PlansStatus
from dictask.tasks.bitrix24 import Bitrix24Client
from dictask.tasks.task_models import Period, deadline_window

from .fakes import CHAT_ID

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


class Recorder:
    def __init__(self, response: httpx.Response | Exception) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _client(credentials, http: httpx.AsyncClient) -> Bitrix24Client:
    return Bitrix24Client(credentials, http, clock=lambda: NOW)


def test_windows_grow_with_period() -> None:
    ends = [deadline_window(p, NOW)[1] for p in (Period.DAY, Period.WEEK, Period.MONTH)]
    assert ends[0] < ends[1] < ends[2]
    assert deadline_window(Period.MONTH, NOW) == (NOW, datetime(2025, 1, 31, 12, 0, 0, tzinfo=UTC))


@pytest.mark.asyncio
async def test_list_without_webhook_makes_no_request(credentials) -> None:
    rec = Recorder(httpx.Response(200, json={}))
    async with httpx.AsyncClient(transport=httpx.MockTransport(rec)) as http:
        outcome = await _client(credentials, http).list_tasks(CHAT_ID, Period.DAY)

    assert outcome.status == PlansStatus.NOT_CONFIGURED
    assert rec.requests == []


@pytest.mark.asyncio
async def test_list_sends_deadline_window_and_parses_tasks(credentials) -> None:
    credentials.set_webhook(CHAT_ID, "https://b24.example/rest/1/tok/")
    rec = Recorder(
        httpx.Response(
            200,
            json={"result": {"tasks": [{"title": "Report", "deadline": "2025-01-03T10:00:00+03:00"}, {"title": "Call"}]}},
        )
    )

    async with httpx.AsyncClient(transport=httpx.MockTransport(rec)) as http:
        outcome = await _client(credentials, http).list_tasks(CHAT_ID, Period.WEEK)

    request = rec.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/rest/1/tok/tasks.task.list"
    assert request.url.params["filter[>=DEADLINE]"] == "2025-01-01T12:00:00+00:00"
    assert request.url.params["filter[<DEADLINE]"] == "2025-01-08T12:00:00+00:00"

    assert outcome.status == PlansStatus.OK
    assert texts.render_plans(Period.WEEK, outcome) == (
        "Планы на неделю:\n- Report (дедлайн: 2025-01-03T10:00:00+03:00)\n- Call (дедлайн: не указан)"
    )


@pytest.mark.asyncio
async def test_list_empty_and_error(credentials) -> None:
    credentials.set_webhook(CHAT_ID, "https://b24.example/rest/1/tok")

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(Recorder(httpx.Response(200, json={"result": {"tasks": []}})))
    ) as http:
        empty = await _client(credentials, http).list_tasks(CHAT_ID, Period.DAY)

    async with httpx.AsyncClient(transport=httpx.MockTransport(Recorder(httpx.ConnectError("down")))) as http:
        failed = await _client(credentials, http).list_tasks(CHAT_ID, Period.DAY)

    assert empty.status == PlansStatus.EMPTY
    assert texts.render_plans(Period.DAY, empty) == f"Планы на день:\n{texts.PLANS_EMPTY}"
    assert failed.status == PlansStatus.TRANSPORT_ERROR


@pytest.mark.asyncio
async def test_create_checks_webhook_then_user_id_without_requests(credentials) -> None:
    rec = Recorder(httpx.Response(200, json={"result": {"task": {"id": 1}}}))
    async with httpx.AsyncClient(transport=httpx.MockTransport(rec)) as http:
        client = _client(credentials, http)

        credentials.set_user_id(CHAT_ID, "7")
        no_webhook = await client.create_task(CHAT_ID, "T", "D", "2025-01-01 10:00:00")

        credentials.set_webhook(CHAT_ID + 1, "https://b24.example/rest/1/tok")
        no_user = await client.create_task(CHAT_ID + 1, "T", "D", "2025-01-01 10:00:00")

    assert no_webhook.status == CreateStatus.MISSING_WEBHOOK
    assert no_user.status == CreateStatus.MISSING_USER_ID
    assert rec.requests == []


@pytest.mark.asyncio
async def test_create_posts_fields(configured) -> None:
    rec = Recorder(httpx.Response(200, json={"result": {"task": {"id": 1}}}))
    async with httpx.AsyncClient(transport=httpx.MockTransport(rec)) as http:
        outcome = await _client(configured, http).create_task(CHAT_ID, "Groceries", "buy milk", "2025-01-01 10:00:00")

    assert outcome.status == CreateStatus.CREATED
    request = rec.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://example.bitrix24.ru/rest/1/secret/tasks.task.add"
    assert json.loads(request.content) == {
        "fields": {
            "TITLE": "Groceries",
            "DESCRIPTION": "buy milk",
            "RESPONSIBLE_ID": "7",
            "DEADLINE": "2025-01-01 10:00:00",
        }
    }


@pytest.mark.asyncio
async def test_create_rejected_and_transport_error(configured) -> None:
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(Recorder(httpx.Response(200, json={"result": None})))
    ) as http:
        rejected = await _client(configured, http).create_task(CHAT_ID, "T", "D", "bad")

    async with httpx.AsyncClient(
        transport=httpx.MockTransport(Recorder(httpx.Response(400, json={"error": "ERROR_CORE"})))
    ) as http:
        failed = await _client(configured, http).create_task(CHAT_ID, "T", "D", "bad")

    assert rejected.status == CreateStatus.REJECTED
    assert failed.status == CreateStatus.TRANSPORT_ERROR
