# tradebot/poller.py
"""
Long-polling runner: ``python -m tradebot.poller``.

Fetches updates with ``getUpdates`` and dispatches them one at a time, which
keeps each user's events in delivery order.  SIGINT/SIGTERM stop the loop
after the current batch.
"""

import asyncio
import signal
from typing import Optional

from loguru import logger
from pydantic import ValidationError as PayloadError

from tradebot.bootstrap import Runtime, build_runtime, shutdown_runtime
from tradebot.core.config import settings
from tradebot.core.logging_config import setup_logging
from tradebot.infrastructure.external.telegram_client import TelegramAPIError
from tradebot.infrastructure.external.telegram_updates import parse_update

POLL_TIMEOUT_SECONDS = 30
RETRY_DELAY_SECONDS = 5


async def process_batch(runtime: Runtime, updates: list) -> Optional[int]:
    """Dispatch a batch in order; returns the next offset (None for an empty batch)."""
    offset = None
    for payload in updates:
        offset = int(payload.get("update_id", 0)) + 1
        try:
            event = parse_update(payload)
        except PayloadError:
            logger.warning("Skipping malformed update {}", payload.get("update_id"))
            continue
        if event is not None:
            await runtime.dispatcher.dispatch(event)
    return offset


async def run_polling(runtime: Runtime, stop: asyncio.Event) -> None:
    offset: Optional[int] = None
    await runtime.transport.delete_webhook()
    logger.info("Polling for updates...")

    while not stop.is_set():
        try:
            updates = await runtime.transport.get_updates(offset, poll_timeout=POLL_TIMEOUT_SECONDS)
        except TelegramAPIError as exc:
            logger.error("getUpdates failed: {}", exc)
            try:
                await asyncio.wait_for(stop.wait(), timeout=RETRY_DELAY_SECONDS)
            except asyncio.TimeoutError:
                pass
            continue

        next_offset = await process_batch(runtime, updates)
        if next_offset is not None:
            offset = next_offset


async def main() -> None:
    setup_logging(settings.LOG_LEVEL)
    runtime = await build_runtime(settings)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        await run_polling(runtime, stop)
    finally:
        await shutdown_runtime(runtime)


if __name__ == "__main__":
    asyncio.run(main())
