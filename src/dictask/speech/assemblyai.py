# src/dictask/speech/assemblyai.py

"""
Speech-to-text via AssemblyAI.

Protocol: upload raw audio -> submit a transcript job -> poll the job until it reaches a
terminal status. Polling is bounded by max_polls; the sleep between checks yields to
the event loop, so other chats keep being served while one chat waits.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from ..core.outcomes import Transcription, TranscriptionError

logger = logging.getLogger(__name__)

STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


class TranscriptionFailed(RuntimeError):
    """The speech service failed the job, or finished it without any text."""


class TranscriptionTimedOut(TranscriptionFailed):
    """The job did not reach a terminal status within max_polls checks."""


class AssemblyAITranscriber:
    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        api_key: str | None,
        base_url: str = "https://api.assemblyai.com/v2",
        language: str = "ru",
        poll_interval: float = 5.0,
        max_polls: int = 120,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._http = http
        self._api_key = (api_key or "").strip()
        self._base_url = base_url.rstrip("/")
        self._language = language
        self._poll_interval = max(0.0, float(poll_interval))
        self._max_polls = max(1, int(max_polls))
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings, http: httpx.AsyncClient) -> AssemblyAITranscriber:
        return cls(
            http,
            api_key=settings.assemblyai_api_key,
            base_url=settings.assemblyai_base_url,
            language=settings.transcription_language,
            poll_interval=settings.transcription_poll_interval,
            max_polls=settings.transcription_max_polls,
        )

    async def transcribe(self, audio: bytes) -> Transcription:
        if not self._api_key:
            logger.error("AssemblyAI API key is not set. Set DICTASK_ASSEMBLYAI_API_KEY in your .env.")
            return Transcription.failure(TranscriptionError.TRANSPORT)

        try:
            upload_url = await self._upload(audio)
            job_id = await self._submit(upload_url)
            text = await self._wait_for_completion(job_id)
        except TranscriptionTimedOut:
            logger.warning("Transcription timed out after %d status checks", self._max_polls)
            return Transcription.failure(TranscriptionError.TIMED_OUT)
        except TranscriptionFailed as e:
            logger.warning("Transcription failed: %s", e)
            return Transcription.failure(TranscriptionError.FAILED)
        except (httpx.HTTPError, KeyError, TypeError, ValueError):
            logger.exception("Transcription request failed")
            return Transcription.failure(TranscriptionError.TRANSPORT)

        logger.info("Transcription completed (%d chars)", len(text))
        return Transcription.success(text)

    # ---- protocol steps ----

    def _headers(self, **extra: str) -> dict[str, str]:
        return {"authorization": self._api_key, **extra}

    async def _upload(self, audio: bytes) -> str:
        resp = await self._http.post(
            f"{self._base_url}/upload",
            content=audio,
            headers=self._headers(**{"content-type": "application/octet-stream"}),
        )
        resp.raise_for_status()
        return str(resp.json()["upload_url"])

    async def _submit(self, upload_url: str) -> str:
        resp = await self._http.post(
            f"{self._base_url}/transcript",
            json={"audio_url": upload_url, "language_code": self._language},
            headers=self._headers(),
        )
        resp.raise_for_status()
        job_id = str(resp.json()["id"])
        logger.debug("Transcript job submitted id=%s", job_id)
        return job_id

    async def _wait_for_completion(self, job_id: str) -> str:
        for attempt in range(1, self._max_polls + 1):
            resp = await self._http.get(
                f"{self._base_url}/transcript/{job_id}",
                headers=self._headers(),
            )
            resp.raise_for_status()
            data = resp.json()
            if not isinstance(data, dict):
                raise TypeError(f"expected a JSON object for job {job_id}, got {type(data).__name__}")
            status = data.get("status")

            if status == STATUS_COMPLETED:
                text = str(data.get("text") or "").strip()
                if not text:
                    # Silence or unintelligible audio: nothing to file as a task.
                    raise TranscriptionFailed(f"job {job_id} completed with empty text")
                return text
            if status == STATUS_FAILED:
                raise TranscriptionFailed(str(data.get("error") or f"job {job_id} failed"))

            logger.debug("Transcript job %s status=%s (check %d/%d)", job_id, status, attempt, self._max_polls)
            if attempt < self._max_polls:
                await self._sleep(self._poll_interval)

        raise TranscriptionTimedOut(f"job {job_id} still not finished")
