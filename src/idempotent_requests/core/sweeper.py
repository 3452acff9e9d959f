"""Background purge of expired entries in the in-memory store.

Expired entries already read as absent, so this task changes no behaviour:
it only returns the memory of entries nobody reads again. Backends with
native expiry (Redis) do not need it.

The sweeper:
1. Runs at a configurable interval
2. Calls store.purge_expired()
3. Reports metrics and logs
4. Keeps running when a pass fails

Examples:
    Run alongside an ASGI application::

        from contextlib import asynccontextmanager

        from fastapi import FastAPI

        @asynccontextmanager
        async def lifespan(app):
            task = await start_sweeper_task(kv_store, interval_seconds=60)
            yield
            await stop_sweeper_task(task)

        app = FastAPI(lifespan=lifespan)
"""

import asyncio
from typing import Protocol

from idempotent_requests.observability.logging import get_logger
from idempotent_requests.observability.metrics import record_sweep

logger = get_logger(__name__)


class PurgeableStore(Protocol):
    def purge_expired(self) -> int: ...


async def sweep_loop(
    store: PurgeableStore,
    interval_seconds: int = 60,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Purge expired entries every interval_seconds until stop_event is set.

    Args:
        store: Store to purge
        interval_seconds: Time between passes
        stop_event: Event to signal the loop to stop (optional)
    """
    if stop_event is None:
        stop_event = asyncio.Event()

    logger.info("sweeper.started", interval_seconds=interval_seconds)

    while not stop_event.is_set():
        try:
            count = store.purge_expired()
            record_sweep(count)
            if count > 0:
                logger.info("sweeper.completed", entries_removed=count)
            else:
                logger.debug("sweeper.completed", entries_removed=0)
        except Exception as e:
            logger.error(
                "sweeper.failed",
                error=str(e),
                error_type=type(e).__name__,
            )

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            continue

    logger.info("sweeper.stopped")


async def start_sweeper_task(
    store: PurgeableStore,
    interval_seconds: int = 60,
) -> asyncio.Task[None]:
    """Start the sweep loop as an asyncio task.

    Returns:
        The running task; pass it to stop_sweeper_task() on shutdown.
    """
    stop_event = asyncio.Event()

    task = asyncio.create_task(
        sweep_loop(
            store=store,
            interval_seconds=interval_seconds,
            stop_event=stop_event,
        )
    )
    task._stop_event = stop_event  # type: ignore[attr-defined]

    return task


async def stop_sweeper_task(task: asyncio.Task[None]) -> None:
    """Signal the sweep loop to stop and wait for it, cancelling after 5s."""
    stop_event: asyncio.Event | None = getattr(task, "_stop_event", None)

    if stop_event:
        stop_event.set()

    try:
        await asyncio.wait_for(task, timeout=5.0)
    except asyncio.TimeoutError:
        logger.warning("sweeper.stop_timeout")
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.debug("sweeper.cancelled")
