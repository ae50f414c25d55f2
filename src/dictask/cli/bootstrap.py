# src/dictask/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (credentials / speech / task backend).
"""

from __future__ import annotations

import logging

import httpx

from ..config import get_settings
from ..core.state import AppState
from ..credentials.store import CredentialStore
from ..speech.assemblyai import AssemblyAITranscriber
from ..tasks.bitrix24 import Bitrix24Client

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.webhooks_path.parent.mkdir(parents=True, exist_ok=True)
    settings.user_ids_path.parent.mkdir(parents=True, exist_ok=True)


def create_http_client(settings) -> httpx.AsyncClient:
    timeout_s = max(1.0, float(settings.http_timeout))
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_s, connect=min(5.0, timeout_s)),
        headers={"User-Agent": f"{settings.app_name}/1.0"},
    )


def create_initial_state(*, settings=None, http: httpx.AsyncClient | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the HTTP client) injectable makes the app easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if http is None:
        http = create_http_client(settings)

    credentials = CredentialStore(settings.webhooks_path, settings.user_ids_path)

    state = AppState(
        settings=settings,
        http=http,
        credentials=credentials,
        transcriber=AssemblyAITranscriber.from_settings(settings, http),
        backend=Bitrix24Client(credentials, http),
    )
    logger.debug("AppState created (data_dir=%s)", settings.data_dir)
    return state
