# src/dictask/core/events.py

"""Transport-neutral inbound events and outbound keyboards."""

from __future__ import annotations

from dataclasses import dataclass

ACTION_EDIT_TEXT = "edit_text"
ACTION_CONFIRM = "confirm_and_create_task"


@dataclass(frozen=True, slots=True)
class TextEvent:
    chat_id: int
    text: str


@dataclass(frozen=True, slots=True)
class VoiceEvent:
    chat_id: int
    file_id: str


@dataclass(frozen=True, slots=True)
class ButtonEvent:
    chat_id: int
    action: str


InboundEvent = TextEvent | VoiceEvent | ButtonEvent


@dataclass(frozen=True, slots=True)
class InlineButton:
    label: str
    action: str


@dataclass(frozen=True, slots=True)
class ReplyKeyboard:
    """Persistent command menu shown under the input field."""

    rows: tuple[tuple[str, ...], ...]


@dataclass(frozen=True, slots=True)
class InlineKeyboard:
    """Buttons attached to a single message; pressing one yields a ButtonEvent."""

    rows: tuple[tuple[InlineButton, ...], ...]


Keyboard = ReplyKeyboard | InlineKeyboard
