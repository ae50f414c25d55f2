# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from dictask.core.dialog import DialogStateMachine
from dictask.credentials.store import CredentialStore

from .fakes import CHAT_ID, FakeBackend, FakeChannel, FakeTranscriber


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and connectors.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="dictask-test",
        data_dir=tmp_path,
        webhooks_path=tmp_path / "webhooks.json",
        user_ids_path=tmp_path / "user_ids.json",
        http_timeout=5.0,
        telegram_bot_token="123:abc",
        telegram_api_url="https://tg.test",
        telegram_poll_timeout=0,
        telegram_drop_pending=False,
        assemblyai_api_key="key",
        assemblyai_base_url="https://stt.test/v2",
        transcription_language="ru",
        transcription_poll_interval=0.0,
        transcription_max_polls=3,
    )


@pytest.fixture()
def credentials(settings: SimpleNamespace) -> CredentialStore:
    return CredentialStore(settings.webhooks_path, settings.user_ids_path)


@pytest.fixture()
def channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture()
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def machine(
    channel: FakeChannel,
    credentials: CredentialStore,
    transcriber: FakeTranscriber,
    backend: FakeBackend,
) -> DialogStateMachine:
    """
    DialogStateMachine wired with deterministic fakes.

    NOTE: We keep the real CredentialStore here (on tmp files) because the
    credential gate reads from it.
    """
    return DialogStateMachine(
        channel=channel,
        credentials=credentials,
        transcriber=transcriber,
        backend=backend,
    )


@pytest.fixture()
def configured(credentials: CredentialStore) -> CredentialStore:
    credentials.set_webhook(CHAT_ID, "https://example.bitrix24.ru/rest/1/secret")
    credentials.set_user_id(CHAT_ID, "7")
    return credentials
