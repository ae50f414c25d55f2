# src/dictask/core/outcomes.py

"""
Tagged results returned by the components.

Components never raise to the dialog and never return user-facing text; the dialog
hands these to core/texts.py, which owns every string the user sees.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from ..tasks.task_models import ListedTask


class TranscriptionError(StrEnum):
    FAILED = "failed"  # the speech service reported status=failed
    TIMED_OUT = "timed_out"
    TRANSPORT = "transport"


@dataclass(frozen=True, slots=True)
class Transcription:
    text: str | None = None
    error: TranscriptionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, text: str) -> Transcription:
        return cls(text=text)

    @classmethod
    def failure(cls, error: TranscriptionError) -> Transcription:
        return cls(error=error)


class PlansStatus(StrEnum):
    OK = "ok"
    EMPTY = "empty"
    NOT_CONFIGURED = "not_configured"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True, slots=True)
class PlansOutcome:
    status: PlansStatus
    tasks: tuple[ListedTask, ...] = ()


class CreateStatus(StrEnum):
    CREATED = "created"
    MISSING_WEBHOOK = "missing_webhook"
    MISSING_USER_ID = "missing_user_id"
    REJECTED = "rejected"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True, slots=True)
class CreateOutcome:
    status: CreateStatus

    @property
    def ok(self) -> bool:
        return self.status == CreateStatus.CREATED
