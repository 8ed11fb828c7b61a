# src/wing_kanban/connectors/board_runner.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

from ..core.state import AppState
from ..tasks.task_api import seed_demo_tasks

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _run_board(state: AppState, stop_event: asyncio.Event, ready: threading.Event) -> None:
    """
    Board lifecycle (async):

    initial load -> optional demo seed -> change feed -> wait for stop -> release

    Shutdown model:
    - main thread sets stop_event via loop.call_soon_threadsafe(stop_event.set)
    - the feed is unsubscribed and the backend closed before the loop exits
    """
    settings = state.settings
    store = state.task_store
    feed = state.change_feed

    try:
        await store.load()
        logger.info("Initial load done: %d tasks", len(store.tasks))

        if getattr(settings, "seed_demo_tasks", False) and not store.tasks:
            await seed_demo_tasks(store)

        if getattr(settings, "realtime_enabled", True):
            await feed.subscribe()
        else:
            logger.info("Realtime disabled via settings; manual /reload only.")
    except Exception:
        logger.exception("Board startup failed.")
    finally:
        ready.set()

    try:
        await stop_event.wait()
    except asyncio.CancelledError:
        logger.info("Board loop cancelled.")
    finally:
        with contextlib.suppress(Exception):
            await feed.unsubscribe()
        try:
            await state.backend.close()
        except Exception:
            logger.exception("Backend close failed.")
        logger.info("Board loop stopped.")


@dataclass
class BoardBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event
    ready: threading.Event

    def run(self, coro: Coroutine[Any, Any, T], timeout: float | None = 30.0) -> T:
        """Run a coroutine on the board loop and block until it finishes."""
        fut = asyncio.run_coroutine_threadsafe(coro, self.loop)
        return fut.result(timeout=timeout)

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Failed to signal board stop (loop closed).", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_board_in_background(state: AppState) -> BoardBackgroundRunner | None:
    """
    Start the board's event loop in a background thread.

    The console REPL is blocking (input()), while the store, the backend and
    the change feed are async and want their own event loop.
    """
    started = threading.Event()
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        started.set()

        try:
            loop.run_until_complete(_run_board(state, stop_event, ready))
        finally:
            with contextlib.suppress(Exception):
                loop.run_until_complete(loop.shutdown_asyncgens())
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="wing-board-loop", daemon=True)
    t.start()

    started.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Board thread did not initialize properly.")
        return None

    logger.info("Board background thread started.")
    return BoardBackgroundRunner(thread=t, loop=loop, stop_event=stop_event, ready=ready)
