# src/dictask/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs one connector on the asyncio loop:
- Telegram long polling (default),
- or the console REPL (DICTASK_CONSOLE_ENABLED=true), handy for local testing.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..connectors.telegram_connector import run_telegram_bot
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(state: AppState) -> None:
    settings = state.settings

    if settings.console_enabled:
        connector = run_console_loop(state)
    elif settings.telegram_enabled:
        connector = run_telegram_bot(state)
    else:
        logger.error("No connector enabled. Set DICTASK_TELEGRAM_ENABLED or DICTASK_CONSOLE_ENABLED.")
        return

    task = asyncio.create_task(connector)
    loop = asyncio.get_running_loop()

    def _handle_signal(signum: int) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        task.cancel()

    for signum in (signal.SIGINT, signal.SIGTERM):
        # Not supported on every platform (e.g. Windows event loops).
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(signum, _handle_signal, signum)

    try:
        await task
    except asyncio.CancelledError:
        pass
    finally:
        await state.http.aclose()


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)

    try:
        asyncio.run(_run(state))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
