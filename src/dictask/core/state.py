# src/dictask/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from .ports import CredentialRepo, TaskBackend, Transcriber
from .session import SessionStore


@dataclass
class AppState:
    # Settings are kept on the state so connectors do not read globals.
    settings: Any

    http: httpx.AsyncClient
    credentials: CredentialRepo
    transcriber: Transcriber
    backend: TaskBackend

    sessions: SessionStore = field(default_factory=SessionStore)
