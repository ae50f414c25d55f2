# src/dictask/logging_setup.py

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path

# Bot API URLs carry the token in the path; Bitrix24 webhook URLs carry a secret after the user id.
_SECRET_PATTERNS = (
    (re.compile(r"bot\d+:[A-Za-z0-9_-]+"), "bot<token>"),
    (re.compile(r"(/rest/\d+/)[^/\s\"']+"), r"\1<secret>"),
)


def redact(text: str) -> str:
    for pattern, replacement in _SECRET_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


class _RedactSecretsFilter(logging.Filter):
    """Mask bot tokens and webhook secrets before a record reaches any handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


class _ConsoleNoiseFilter(logging.Filter):
    """Own logs pass (the poll client only from WARNING); everything else only from ERROR."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("dictask.connectors.telegram_client"):
            return record.levelno >= logging.WARNING
        if record.name.startswith("dictask."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/dictask",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Console handler (filtered) plus a full file log at <log_dir>/dictask.log.

    Call once, before the first log line. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "dictask.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    redactor = _RedactSecretsFilter()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(_ConsoleNoiseFilter())

    file = logging.FileHandler(str(log_file), encoding="utf-8")
    file.setLevel(file_level)

    for handler in (console, file):
        handler.setFormatter(fmt)
        handler.addFilter(redactor)
        root.addHandler(handler)

    logging.captureWarnings(True)

    # httpx logs every request URL at INFO; keep them out even of the file log.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return log_file
