# tests/test_transcription.py

from __future__ import annotations

import json

import httpx
import pytest

from dictask.core.outcomes import TranscriptionError
from dictask.speech.assemblyai import AssemblyAITranscriber

BASE = "https://stt.test/v2"


class FakeSpeechService:
    """Serves the upload / submit / status endpoints; status answers come from a queue."""

    def __init__(self, *statuses: dict) -> None:
        self.statuses = list(statuses)
        self.requests: list[httpx.Request] = []
        self.submitted: dict | None = None
        self.polls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path == "/v2/upload":
            return httpx.Response(200, json={"upload_url": "https://cdn.test/audio-1"})
        if request.method == "POST" and path == "/v2/transcript":
            self.submitted = json.loads(request.content)
            return httpx.Response(200, json={"id": "job-1", "status": "queued"})
        if request.method == "GET" and path == "/v2/transcript/job-1":
            self.polls += 1
            status = self.statuses.pop(0) if self.statuses else {"status": "processing"}
            return httpx.Response(200, json=status)
        return httpx.Response(404)


def _transcriber(http: httpx.AsyncClient, *, max_polls: int = 3, api_key: str = "key") -> AssemblyAITranscriber:
    return AssemblyAITranscriber(
        http,
        api_key=api_key,
        base_url=BASE,
        language="ru",
        poll_interval=0,
        max_polls=max_polls,
    )


@pytest.mark.asyncio
async def test_completed_job_returns_text() -> None:
    service = FakeSpeechService({"status": "processing"}, {"status": "completed", "text": "купить молоко"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(service)) as http:
        result = await _transcriber(http).transcribe(b"OggS")

    assert result.ok
    assert result.text == "купить молоко"
    assert service.polls == 2
    assert service.submitted == {"audio_url": "https://cdn.test/audio-1", "language_code": "ru"}

    upload = service.requests[0]
    assert upload.content == b"OggS"
    assert upload.headers["authorization"] == "key"


@pytest.mark.asyncio
async def test_failed_job_is_reported_as_failed() -> None:
    service = FakeSpeechService({"status": "failed", "error": "bad audio"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(service)) as http:
        result = await _transcriber(http).transcribe(b"x")

    assert not result.ok
    assert result.error == TranscriptionError.FAILED


@pytest.mark.asyncio
async def test_polling_stops_after_max_polls() -> None:
    service = FakeSpeechService()
    sleeps: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    async with httpx.AsyncClient(transport=httpx.MockTransport(service)) as http:
        transcriber = AssemblyAITranscriber(
            http, api_key="key", base_url=BASE, poll_interval=5.0, max_polls=4, sleep=fake_sleep
        )
        result = await transcriber.transcribe(b"x")

    assert result.error == TranscriptionError.TIMED_OUT
    assert service.polls == 4
    assert sleeps == [5.0, 5.0, 5.0]


@pytest.mark.asyncio
async def test_http_error_is_reported_as_transport() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "boom"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        result = await _transcriber(http).transcribe(b"x")

    assert result.error == TranscriptionError.TRANSPORT


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b'["unexpected"]', b'"done"', b"null"])
async def test_non_object_status_reply_is_reported_as_transport(body: bytes) -> None:
    service = FakeSpeechService()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, content=body, headers={"content-type": "application/json"})
        return service(request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        result = await _transcriber(http).transcribe(b"x")

    assert result.error == TranscriptionError.TRANSPORT


@pytest.mark.asyncio
@pytest.mark.parametrize("text", [None, "", "   "])
async def test_completed_job_without_text_is_a_failure(text) -> None:
    service = FakeSpeechService({"status": "completed", "text": text})

    async with httpx.AsyncClient(transport=httpx.MockTransport(service)) as http:
        result = await _transcriber(http).transcribe(b"x")

    assert not result.ok
    assert result.error == TranscriptionError.FAILED
    assert result.text is None


@pytest.mark.asyncio
async def test_missing_api_key_makes_no_request() -> None:
    service = FakeSpeechService()

    async with httpx.AsyncClient(transport=httpx.MockTransport(service)) as http:
        result = await _transcriber(http, api_key="  ").transcribe(b"x")

    assert result.error == TranscriptionError.TRANSPORT
    assert service.requests == []


def test_from_settings_reads_transcription_options(settings) -> None:
    http = httpx.AsyncClient()
    transcriber = AssemblyAITranscriber.from_settings(settings, http)
    assert transcriber._base_url == "https://stt.test/v2"
    assert transcriber._max_polls == 3
    assert transcriber._language == "ru"
