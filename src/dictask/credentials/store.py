# src/dictask/credentials/store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

from .models import Credential, CredentialWriteError

logger = logging.getLogger(__name__)


def _load_map(path: Path) -> dict[int, str]:
    """Read a flat {"<chat_id>": "<value>"} JSON file; bad entries are skipped."""
    if not path.exists():
        return {}

    try:
        data = json.loads(path.read_text("utf-8"))
    except (OSError, ValueError):
        logger.exception("Failed to read credential file %s; starting empty", path)
        return {}

    if not isinstance(data, dict):
        logger.warning("Credential file %s is not a JSON object; ignoring it", path)
        return {}

    out: dict[int, str] = {}
    for key, value in data.items():
        try:
            chat_id = int(key)
        except (TypeError, ValueError):
            logger.warning("Skipping invalid chat id %r in %s", key, path)
            continue
        if not isinstance(value, str):
            logger.warning("Skipping non-string value for chat %s in %s", key, path)
            continue
        out[chat_id] = value
    return out


def _atomic_write_json(path: Path, data: dict[int, str]) -> None:
    payload = {str(chat_id): value for chat_id, value in data.items()}
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    try:
        with tmp.open("w", encoding="utf-8") as f:
            f.write(json.dumps(payload, ensure_ascii=False, indent=2))
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except OSError:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise
    with contextlib.suppress(OSError):
        # Webhook URLs embed an access secret; keep the file private.
        os.chmod(path, 0o600)


class CredentialStore:
    """
    Per-chat webhook URL and user id, each kept in its own JSON file.

    Both files are read once at construction and served from memory afterwards.
    Every mutation rewrites the whole file for that field (tmp + os.replace), and the
    in-memory map only changes after the write succeeded, so memory and disk never
    disagree.
    """

    def __init__(self, webhooks_path: str | Path, user_ids_path: str | Path) -> None:
        self._webhooks_path = Path(webhooks_path)
        self._user_ids_path = Path(user_ids_path)
        self._webhooks = _load_map(self._webhooks_path)
        self._user_ids = _load_map(self._user_ids_path)
        logger.info(
            "CredentialStore ready webhooks=%d user_ids=%d",
            len(self._webhooks),
            len(self._user_ids),
        )

    def get(self, chat_id: int) -> Credential:
        return Credential(
            webhook_url=self._webhooks.get(chat_id),
            user_id=self._user_ids.get(chat_id),
        )

    def set_webhook(self, chat_id: int, url: str) -> None:
        self._webhooks = self._persist(self._webhooks_path, self._webhooks, chat_id, url)
        logger.info("Webhook URL updated for chat %s", chat_id)

    def set_user_id(self, chat_id: int, user_id: str) -> None:
        self._user_ids = self._persist(self._user_ids_path, self._user_ids, chat_id, user_id)
        logger.info("User id updated for chat %s", chat_id)

    @staticmethod
    def _persist(path: Path, current: dict[int, str], chat_id: int, value: str) -> dict[int, str]:
        updated = {**current, chat_id: value}
        try:
            _atomic_write_json(path, updated)
        except OSError as e:
            logger.exception("Failed to write credential file %s", path)
            raise CredentialWriteError(f"could not write {path}") from e
        return updated
