# src/taskstreak/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

PROMPT = ">>> "


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _start_reader(loop: asyncio.AbstractEventLoop, lines: asyncio.Queue[str | None]) -> None:
    """
    Blocking input() runs in a daemon thread so Ctrl+C never waits on it.
    Lines are handed to the loop; None means EOF.
    """

    def _read() -> None:
        while True:
            try:
                line = input(PROMPT)
            except (EOFError, KeyboardInterrupt):
                loop.call_soon_threadsafe(lines.put_nowait, None)
                return
            loop.call_soon_threadsafe(lines.put_nowait, line)

    threading.Thread(target=_read, name="console-reader", daemon=True).start()


async def _day_rollover(state: AppState) -> None:
    """Refresh derived state when the calendar day changes without a command."""
    day = datetime.now().astimezone().date()
    while True:
        await asyncio.sleep(60.0)
        today = datetime.now().astimezone().date()
        if today != day:
            day = today
            logger.info("Day rolled over to %s; refreshing streak", today)
            state.store.refresh()


async def run_console_loop(state: AppState) -> None:
    """
    Read console lines in a reader thread; apply commands on the event loop.

    Commands, timer callbacks and the day rollover all run on the loop thread,
    so the store sees one command at a time.
    """
    logger.info("Console connector started.")
    _print_ts("Type /help for commands, /exit to quit.")

    loop = asyncio.get_running_loop()
    rollover = loop.create_task(_day_rollover(state))
    lines: asyncio.Queue[str | None] = asyncio.Queue()
    _start_reader(loop, lines)

    try:
        while True:
            raw = await lines.get()
            if raw is None:
                logger.info("Console EOF received, exiting.")
                break

            line = raw.strip()
            if not line:
                continue

            if line.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            if not line.startswith("/"):
                # Bare text is treated as a new task phrase.
                line = f"/add {line}"

            try:
                reply = command_registry.handle(state, line, emit=_print_ts)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is not None:
                _print_ts(reply)
    finally:
        rollover.cancel()
