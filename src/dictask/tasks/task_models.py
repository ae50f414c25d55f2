# src/dictask/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum


class Period(StrEnum):
    """Forward-looking planning window."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    @property
    def days(self) -> int:
        return _PERIOD_DAYS[self]


_PERIOD_DAYS = {
    Period.DAY: 1,
    Period.WEEK: 7,
    Period.MONTH: 30,
}


def deadline_window(period: Period, now: datetime) -> tuple[datetime, datetime]:
    """Return [now, now + period) as a (start, end) pair."""
    return now, now + timedelta(days=period.days)


@dataclass(frozen=True, slots=True)
class NewTask:
    title: str
    description: str
    responsible_id: str
    # Passed through verbatim ("YYYY-MM-DD HH:MM:SS" by convention); the backend validates it.
    deadline: str

    def to_fields(self) -> dict[str, str]:
        return {
            "TITLE": self.title,
            "DESCRIPTION": self.description,
            "RESPONSIBLE_ID": self.responsible_id,
            "DEADLINE": self.deadline,
        }


@dataclass(frozen=True, slots=True)
class ListedTask:
    title: str
    deadline: str | None
