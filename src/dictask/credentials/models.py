# src/dictask/credentials/models.py

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Credential:
    """Per-chat access to the task backend. Either field may be missing."""

    webhook_url: str | None = None
    user_id: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.webhook_url) and bool(self.user_id)


class CredentialWriteError(RuntimeError):
    """Persisting a credential mapping failed; the previous state is still in effect."""
