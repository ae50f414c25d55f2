# src/dictask/tasks/bitrix24.py

"""
Bitrix24 task backend, reached through each chat's own incoming-webhook URL.

Both operations return tagged outcomes. Missing credentials are reported before any
network call; transport problems are logged here and never reach the dialog as
exceptions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import httpx

from ..core.outcomes import CreateOutcome, CreateStatus, PlansOutcome, PlansStatus
from ..core.ports import CredentialRepo
from .task_models import ListedTask, NewTask, Period, deadline_window

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _endpoint(webhook_url: str, method: str) -> str:
    return f"{webhook_url.rstrip('/')}/{method}"


def _parse_tasks(payload: Any) -> list[ListedTask]:
    tasks = payload["result"]["tasks"]
    if not isinstance(tasks, list):
        raise TypeError(f"expected a list of tasks, got {type(tasks).__name__}")
    out: list[ListedTask] = []
    for item in tasks:
        if not isinstance(item, dict):
            continue
        deadline = item.get("deadline")
        out.append(
            ListedTask(
                title=str(item.get("title") or ""),
                deadline=str(deadline) if deadline else None,
            )
        )
    return out


class Bitrix24Client:
    def __init__(
        self,
        credentials: CredentialRepo,
        http: httpx.AsyncClient,
        *,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._credentials = credentials
        self._http = http
        self._clock = clock

    async def list_tasks(self, chat_id: int, period: Period) -> PlansOutcome:
        webhook_url = self._credentials.get(chat_id).webhook_url
        if not webhook_url:
            return PlansOutcome(PlansStatus.NOT_CONFIGURED)

        start, end = deadline_window(period, self._clock())
        params = {
            "filter[>=DEADLINE]": start.isoformat(timespec="seconds"),
            "filter[<DEADLINE]": end.isoformat(timespec="seconds"),
        }

        try:
            resp = await self._http.get(_endpoint(webhook_url, "tasks.task.list"), params=params)
            resp.raise_for_status()
            tasks = _parse_tasks(resp.json())
        except (httpx.HTTPError, KeyError, TypeError, ValueError):
            logger.exception("Failed to list tasks chat=%s period=%s", chat_id, period.value)
            return PlansOutcome(PlansStatus.TRANSPORT_ERROR)

        logger.info("Listed %d task(s) chat=%s period=%s", len(tasks), chat_id, period.value)
        if not tasks:
            return PlansOutcome(PlansStatus.EMPTY)
        return PlansOutcome(PlansStatus.OK, tuple(tasks))

    async def create_task(self, chat_id: int, title: str, description: str, deadline: str) -> CreateOutcome:
        cred = self._credentials.get(chat_id)
        if not cred.webhook_url:
            return CreateOutcome(CreateStatus.MISSING_WEBHOOK)
        if not cred.user_id:
            return CreateOutcome(CreateStatus.MISSING_USER_ID)

        task = NewTask(
            title=title,
            description=description,
            responsible_id=cred.user_id,
            deadline=deadline,
        )

        try:
            resp = await self._http.post(
                _endpoint(cred.webhook_url, "tasks.task.add"),
                json={"fields": task.to_fields()},
            )
            resp.raise_for_status()
            result = resp.json().get("result")
        except (httpx.HTTPError, AttributeError, ValueError):
            logger.exception("Failed to create task chat=%s", chat_id)
            return CreateOutcome(CreateStatus.TRANSPORT_ERROR)

        if not result:
            logger.warning("Task backend rejected task chat=%s response=%r", chat_id, result)
            return CreateOutcome(CreateStatus.REJECTED)

        logger.info("Task created chat=%s title=%r", chat_id, title)
        return CreateOutcome(CreateStatus.CREATED)
