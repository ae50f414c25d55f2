# src/dictask/core/texts.py

"""Every user-visible string, plus the renderers that turn component outcomes into text."""

from __future__ import annotations

from typing import Final

from ..credentials.models import Credential
from ..tasks.task_models import ListedTask, Period
from .events import ACTION_CONFIRM, ACTION_EDIT_TEXT, InlineButton, InlineKeyboard, ReplyKeyboard
from .outcomes import (
    CreateOutcome,
    CreateStatus,
    PlansOutcome,
    PlansStatus,
    Transcription,
    TranscriptionError,
)

# ---- Menu labels (the reply keyboard sends these verbatim) ----

CMD_CREATE_TASK: Final[str] = "Создать задачу"
CMD_EDIT_TEXT: Final[str] = "Изменить текст"
CMD_PLANS_DAY: Final[str] = "Планы на день"
CMD_PLANS_WEEK: Final[str] = "Планы на неделю"
CMD_PLANS_MONTH: Final[str] = "Планы на месяц"
CMD_SET_WEBHOOK: Final[str] = "Установить Webhook URL"
CMD_SET_USER_ID: Final[str] = "Установить User ID"

MAIN_MENU: Final[ReplyKeyboard] = ReplyKeyboard(
    rows=(
        (CMD_CREATE_TASK, CMD_PLANS_DAY),
        (CMD_PLANS_WEEK, CMD_PLANS_MONTH, CMD_SET_WEBHOOK, CMD_SET_USER_ID),
    )
)

TRANSCRIPT_ACTIONS: Final[InlineKeyboard] = InlineKeyboard(
    rows=(
        (
            InlineButton(label="Изменить текст", action=ACTION_EDIT_TEXT),
            InlineButton(label="Подтвердить и создать задачу", action=ACTION_CONFIRM),
        ),
    )
)

# ---- Prompts ----

WELCOME: Final[str] = "Добро пожаловать! Выберите опцию:"
ASK_VOICE: Final[str] = "Пожалуйста, отправьте голосовое сообщение для расшифровки."
ASK_TITLE: Final[str] = "Введите заголовок для задачи:"
ASK_DEADLINE: Final[str] = "Введите дедлайн для задачи (в формате YYYY-MM-DD HH:MM:SS):"
ASK_WEBHOOK: Final[str] = "Пожалуйста, отправьте новый Webhook URL для Битрикс24."
ASK_USER_ID: Final[str] = "Пожалуйста, отправьте ваш User ID для Битрикс24."

# ---- Gates / dialog state ----

SET_USER_ID_FIRST: Final[str] = (
    'Пожалуйста, сначала установите ваш User ID для Битрикс24 с помощью команды "Установить User ID".'
)
SET_WEBHOOK_FIRST: Final[str] = (
    'Пожалуйста, сначала установите ваш Webhook URL для Битрикс24 с помощью команды "Установить Webhook URL".'
)
NOTHING_TO_EDIT: Final[str] = "Нет текста для изменения. Пожалуйста, сначала отправьте голосовое сообщение."
NOTHING_TO_CONFIRM: Final[str] = "Нет текста для подтверждения. Пожалуйста, сначала отправьте голосовое сообщение."
CANCELLED: Final[str] = "Действие отменено."
NOTHING_TO_CANCEL: Final[str] = "Нечего отменять."
UNKNOWN_INPUT: Final[str] = "Не понял сообщение. Выберите опцию в меню или отправьте /help."
UNKNOWN_ACTION: Final[str] = "Эта кнопка больше не поддерживается."
SAVE_FAILED: Final[str] = "Не удалось сохранить настройку. Попробуйте ещё раз."
INTERNAL_ERROR: Final[str] = "Внутренняя ошибка при обработке сообщения."

# ---- Component outcomes ----

TRANSCRIPTION_FAILED: Final[str] = "Извините, произошла ошибка при транскрипции аудио."
TRANSCRIPTION_TIMED_OUT: Final[str] = (
    "Извините, расшифровка заняла слишком много времени. Попробуйте отправить голосовое сообщение ещё раз."
)

PLANS_NOT_CONFIGURED: Final[str] = "Webhook URL не установлен. Пожалуйста, установите Webhook URL для Битрикс24."
PLANS_EMPTY: Final[str] = "Нет задач на выбранный период."
PLANS_FAILED: Final[str] = "Извините, произошла ошибка при получении задач из Битрикс24."

TASK_CREATED: Final[str] = "Задача успешно создана в Битрикс24."
TASK_MISSING_WEBHOOK: Final[str] = "Не удалось создать задачу в Битрикс24: Webhook URL не найден."
TASK_MISSING_USER_ID: Final[str] = "Не удалось создать задачу в Битрикс24: идентификатор пользователя не найден."
TASK_REJECTED: Final[str] = "Не удалось создать задачу в Битрикс24."
TASK_FAILED: Final[str] = "Извините, произошла ошибка при создании задачи в Битрикс24."

_PERIOD_TITLES: Final[dict[Period, str]] = {
    Period.DAY: "Планы на день",
    Period.WEEK: "Планы на неделю",
    Period.MONTH: "Планы на месяц",
}

_TRANSCRIPTION_ERRORS: Final[dict[TranscriptionError, str]] = {
    TranscriptionError.FAILED: TRANSCRIPTION_FAILED,
    TranscriptionError.TRANSPORT: TRANSCRIPTION_FAILED,
    TranscriptionError.TIMED_OUT: TRANSCRIPTION_TIMED_OUT,
}

_PLANS_TEXTS: Final[dict[PlansStatus, str]] = {
    PlansStatus.EMPTY: PLANS_EMPTY,
    PlansStatus.NOT_CONFIGURED: PLANS_NOT_CONFIGURED,
    PlansStatus.TRANSPORT_ERROR: PLANS_FAILED,
}

_CREATE_TEXTS: Final[dict[CreateStatus, str]] = {
    CreateStatus.CREATED: TASK_CREATED,
    CreateStatus.MISSING_WEBHOOK: TASK_MISSING_WEBHOOK,
    CreateStatus.MISSING_USER_ID: TASK_MISSING_USER_ID,
    CreateStatus.REJECTED: TASK_REJECTED,
    CreateStatus.TRANSPORT_ERROR: TASK_FAILED,
}


def transcript(text: str) -> str:
    return f"Транскрипция: {text}"


def current_text(text: str) -> str:
    return f"Текущий текст: {text}\nВведите новый текст:"


def text_updated(text: str) -> str:
    return f"Текст обновлен: {text}"


def task_created_with_text(text: str) -> str:
    return f"Задача создана с текстом: {text}"


def webhook_set(url: str) -> str:
    return f"Webhook URL установлен: {url}"


def user_id_set(user_id: str) -> str:
    return f"User ID установлен: {user_id}"


def render_transcription_error(result: Transcription) -> str:
    return _TRANSCRIPTION_ERRORS.get(result.error or TranscriptionError.FAILED, TRANSCRIPTION_FAILED)


def render_plans(period: Period, outcome: PlansOutcome) -> str:
    if outcome.status == PlansStatus.OK:
        body = "\n".join(format_task_line(t) for t in outcome.tasks)
    else:
        body = _PLANS_TEXTS[outcome.status]
    return f"{_PERIOD_TITLES[period]}:\n{body}"


def format_task_line(task: ListedTask) -> str:
    return f"- {task.title} (дедлайн: {task.deadline or 'не указан'})"


def render_create(outcome: CreateOutcome) -> str:
    return _CREATE_TEXTS[outcome.status]


def render_status(cred: Credential) -> str:
    def _flag(value: str | None) -> str:
        return "установлен" if value else "не установлен"

    return (
        "Настройки Битрикс24:\n"
        f"  Webhook URL: {_flag(cred.webhook_url)}\n"
        f"  User ID: {_flag(cred.user_id)}"
    )
