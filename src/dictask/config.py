# src/dictask/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (tokens are checked when a connector starts).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "DICTASK"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    telegram_enabled: bool
    console_enabled: bool

    # ---- Telegram ----
    telegram_bot_token: Optional[str]
    telegram_api_url: str
    telegram_poll_timeout: int
    telegram_drop_pending: bool

    # ---- Speech-to-text (AssemblyAI) ----
    assemblyai_api_key: Optional[str]
    assemblyai_base_url: str
    transcription_language: str
    transcription_poll_interval: float
    transcription_max_polls: int

    # ---- HTTP ----
    http_timeout: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    webhooks_path: Path
    user_ids_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "dictask") or "dictask"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        telegram_enabled = _env_bool(_k("TELEGRAM_ENABLED"), True)
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), False)

        telegram_bot_token = _first_env(_k("TELEGRAM_BOT_TOKEN"), "TELEGRAM_BOT_TOKEN", default=None)
        telegram_api_url = _env(_k("TELEGRAM_API_URL"), "https://api.telegram.org").rstrip("/")
        telegram_poll_timeout = _env_int(_k("TELEGRAM_POLL_TIMEOUT"), 30)
        telegram_drop_pending = _env_bool(_k("TELEGRAM_DROP_PENDING"), True)

        assemblyai_api_key = _first_env(_k("ASSEMBLYAI_API_KEY"), "ASSEMBLYAI_API_KEY", default=None)
        assemblyai_base_url = _env(_k("ASSEMBLYAI_BASE_URL"), "https://api.assemblyai.com/v2").rstrip("/")
        transcription_language = _env(_k("TRANSCRIPTION_LANGUAGE"), "ru").strip() or "ru"
        transcription_poll_interval = _env_float(_k("TRANSCRIPTION_POLL_INTERVAL"), 5.0)
        transcription_max_polls = _env_int(_k("TRANSCRIPTION_MAX_POLLS"), 120)

        http_timeout = _env_float(_k("HTTP_TIMEOUT"), 30.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/dictask"))
        webhooks_path = _env_path(_k("WEBHOOKS_PATH"), data_dir / "webhooks.json")
        user_ids_path = _env_path(_k("USER_IDS_PATH"), data_dir / "user_ids.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            telegram_enabled=telegram_enabled,
            console_enabled=console_enabled,
            telegram_bot_token=telegram_bot_token,
            telegram_api_url=telegram_api_url,
            telegram_poll_timeout=telegram_poll_timeout,
            telegram_drop_pending=telegram_drop_pending,
            assemblyai_api_key=assemblyai_api_key,
            assemblyai_base_url=assemblyai_base_url,
            transcription_language=transcription_language,
            transcription_poll_interval=transcription_poll_interval,
            transcription_max_polls=transcription_max_polls,
            http_timeout=http_timeout,
            data_dir=data_dir,
            webhooks_path=webhooks_path,
            user_ids_path=user_ids_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
