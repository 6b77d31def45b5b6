# src/flowhub/cli/background.py

from __future__ import annotations

"""
Background event loop of one tab.

The console REPL is blocking (input()), while delivery polling, countdown
ticking and reminder checks are async. They run on their own event loop in a
daemon thread; the REPL talks to them only through AppState.
"""

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass

from ..connectors.http_api import DashboardApi
from ..connectors.store_feed import StoreDismissalEndpoint, StoreNotificationFeed
from ..core.ports import DismissalEndpoint, NotificationFeed, TaskRepo
from ..core.state import AppState
from ..countdown.engine import CountdownBoard
from ..delivery.coordinator import DeliveryCoordinator, run_delivery_poller
from ..delivery.dismissal import DismissalReporter
from ..tasks.reminder_scheduler import run_reminder_scheduler

logger = logging.getLogger(__name__)


async def run_board_sync(board: CountdownBoard, store: TaskRepo, *, interval_seconds: float = 2.0) -> None:
    """
    Keep the countdown board in step with the task list.

    To stop, cancel the coroutine/task.
    """
    sleep_s = max(0.2, float(interval_seconds))

    while True:
        try:
            tasks = await asyncio.to_thread(store.list_tasks)
            board.sync(tasks)
        except Exception:
            logger.exception("countdown board sync failed")

        await asyncio.sleep(sleep_s)


def build_coordinator(state: AppState, endpoint: DismissalEndpoint) -> DeliveryCoordinator:
    s = state.settings
    return DeliveryCoordinator(
        tab_id=state.tab_id,
        lock_store=state.lock_store,
        notifier=state.notifier,
        reporter=DismissalReporter(endpoint, memory=s.processed_cap),
        icon=s.notification_icon,
        auto_close_seconds=s.notification_auto_close_seconds,
        release_delay_seconds=s.lock_release_delay_seconds,
        failure_hold_seconds=s.lock_failure_hold_seconds,
        processed_cap=s.processed_cap,
    )


async def _run_tab(state: AppState, stop_event: asyncio.Event) -> None:
    s = state.settings

    api: DashboardApi | None = None
    feed: NotificationFeed
    endpoint: DismissalEndpoint
    if s.api_base_url:
        api = DashboardApi(s.api_base_url, user_id=s.user_id, timeout_seconds=s.http_timeout_seconds)
        feed, endpoint = api.feed, api.dismissals
    else:
        feed = StoreNotificationFeed(state.task_store)
        endpoint = StoreDismissalEndpoint(state.task_store)

    coordinator = build_coordinator(state, endpoint)
    state.coordinator = coordinator

    jobs = [
        asyncio.create_task(
            run_delivery_poller(coordinator, feed, interval_seconds=s.poll_interval_seconds),
            name="delivery-poller",
        ),
        asyncio.create_task(
            run_board_sync(state.board, state.task_store, interval_seconds=s.poll_interval_seconds),
            name="board-sync",
        ),
    ]
    if s.reminders_enabled:
        jobs.append(
            asyncio.create_task(
                run_reminder_scheduler(
                    state.task_store,
                    interval_seconds=s.reminder_interval_seconds,
                    offsets_minutes=s.reminder_offsets_minutes,
                ),
                name="reminder-scheduler",
            )
        )

    logger.info("Tab %s running %d background jobs", state.tab_id, len(jobs))
    try:
        await stop_event.wait()
    except asyncio.CancelledError:
        logger.info("Tab background loop cancelled.")
    finally:
        for job in jobs:
            job.cancel()
        await asyncio.gather(*jobs, return_exceptions=True)

        await coordinator.aclose()
        await state.board.aclose()
        if api is not None:
            await api.aclose()


@dataclass(slots=True)
class TabBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal background stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_tab_in_background(state: AppState) -> TabBackgroundRunner | None:
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_tab(state, stop_event))
        except Exception:
            logger.exception("Tab background loop crashed.")
        finally:
            with contextlib.suppress(Exception):
                loop.stop()
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="flowhub-tab", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Background thread did not initialize properly.")
        return None

    logger.info("Background thread started.")
    return TabBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
