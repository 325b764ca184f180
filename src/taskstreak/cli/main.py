# src/taskstreak/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, attaches the reminder scheduler to the
store and runs the console loop on one asyncio event loop.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.scheduler.close()
    except Exception:
        logger.exception("Failed to close the reminder scheduler.")


async def _run(state: AppState) -> None:
    state.scheduler.attach(state.store)
    try:
        await run_console_loop(state)
    finally:
        _shutdown(state)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    log_path = setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s... (log file: %s)", settings.app_name, log_path)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(_run(state))
    logger.info("Bye.")


if __name__ == "__main__":
    main()
