# src/flowhub/delivery/coordinator.py

from __future__ import annotations

"""
At-most-once OS notification delivery across concurrently open tabs.

Every tab polls the same notification feed. For each deliverable record the
tabs race for a lock entry in a shared store that only offers plain
get/set/remove:

1. read the lock; another owner -> skip
2. write our tab id
3. read it back; someone else's id -> lost the race, skip
4. confirmed -> display, then report dismissal and release the lock later

Correctness rests on the read-back in step 3, not on the write. The stable
per-record notification tag lets the OS coalesce any residual duplicate.

If the lock store is unavailable every tab delivers on its own (degraded mode).
"""

import asyncio
import logging
from collections.abc import Iterable
from enum import StrEnum

from ..core.errors import LockStoreUnavailable
from ..core.ports import LockStore, NotificationFeed, NotificationHandle, Notifier
from ..tasks.task_models import NotificationRecord
from .dismissal import DismissalReporter
from .lock_store import lock_key
from .processed import ProcessedIds

logger = logging.getLogger(__name__)

DEFAULT_BODY = "Task reminder"


def notification_tag(record_id: str) -> str:
    return f"flowhub-notification-{record_id}"


class DeliveryOutcome(StrEnum):
    DELIVERED = "delivered"
    ALREADY_PROCESSED = "already_processed"
    NOT_DELIVERABLE = "not_deliverable"
    DISMISSED = "dismissed"
    CLAIMED_ELSEWHERE = "claimed_elsewhere"
    LOST_RACE = "lost_race"
    DISPLAY_FAILED = "display_failed"


class _Claim(StrEnum):
    WON = "won"
    HELD_ELSEWHERE = "held_elsewhere"
    LOST = "lost"
    NO_LOCK_STORE = "no_lock_store"


class DeliveryCoordinator:
    """
    Delivery side of one tab.

    `tab_id` is the tab's opaque identity, generated once at startup by the
    caller. Timers (auto-close, lock release) run as tracked asyncio tasks and
    are cancelled by `aclose()`, which then removes any lock entry this tab
    still owns.
    """

    def __init__(
        self,
        *,
        tab_id: str,
        lock_store: LockStore | None,
        notifier: Notifier,
        reporter: DismissalReporter,
        icon: str = "",
        auto_close_seconds: float = 10.0,
        release_delay_seconds: float = 5.0,
        failure_hold_seconds: float = 15.0,
        processed_cap: int = 100,
    ) -> None:
        if not tab_id:
            raise ValueError("tab_id is required")
        self.tab_id = tab_id
        self._lock_store = lock_store
        self._notifier = notifier
        self._reporter = reporter
        self._icon = icon
        self._auto_close_s = max(0.0, float(auto_close_seconds))
        self._release_delay_s = max(0.0, float(release_delay_seconds))
        self._failure_hold_s = max(self._release_delay_s, float(failure_hold_seconds))
        self._processed = ProcessedIds(cap=processed_cap)
        self._pending: set[asyncio.Task[None]] = set()
        # Record ids whose lock entry this tab wrote and has not removed yet.
        self._held: set[str] = set()
        self._degraded = lock_store is None

        if self._degraded:
            logger.warning("No shared lock store; tab %s delivers independently", tab_id)

    @property
    def degraded(self) -> bool:
        return self._degraded

    @property
    def processed(self) -> ProcessedIds:
        return self._processed

    @property
    def pending_timers(self) -> int:
        return len(self._pending)

    # ---- main entry points ----

    async def process(self, records: Iterable[NotificationRecord]) -> dict[str, DeliveryOutcome]:
        """Handle one poll result. Returns the outcome per record id."""
        batch = list(records)
        outcomes: dict[str, DeliveryOutcome] = {}
        for record in batch:
            outcomes[record.id] = await self.process_record(record)

        dropped = self._processed.prune(r.id for r in batch)
        if dropped:
            logger.debug("Processed-id set pruned %d ids", dropped)
        return outcomes

    async def process_record(self, record: NotificationRecord) -> DeliveryOutcome:
        if record.id in self._processed:
            return DeliveryOutcome.ALREADY_PROCESSED

        if record.is_dismissed:
            self._processed.add(record.id)
            return DeliveryOutcome.DISMISSED

        if not record.deliverable:
            self._processed.add(record.id)
            return DeliveryOutcome.NOT_DELIVERABLE

        claim = await self._claim(record.id)
        if claim == _Claim.HELD_ELSEWHERE:
            self._processed.add(record.id)
            logger.debug("Record %s already claimed by another tab", record.id)
            return DeliveryOutcome.CLAIMED_ELSEWHERE

        if claim == _Claim.LOST:
            self._processed.add(record.id)
            logger.info("Lost claim race for record %s; deferring to winner", record.id)
            return DeliveryOutcome.LOST_RACE

        # Also true in degraded mode when our write landed before the store failed.
        holds_lock = record.id in self._held
        # Marked before display so this tab's own next poll never repeats it.
        self._processed.add(record.id)

        try:
            handle = self._notifier.show(
                title=record.title,
                body=record.description or DEFAULT_BODY,
                icon=self._icon,
                tag=notification_tag(record.id),
                require_interaction=True,
            )
        except Exception:
            logger.exception("OS notification failed record=%s; not retrying in this tab", record.id)
            if holds_lock:
                self._spawn(self._release_later(record.id, self._failure_hold_s), f"release-{record.id}")
            return DeliveryOutcome.DISPLAY_FAILED

        logger.info("Notification shown record=%s title=%r tab=%s", record.id, record.title, self.tab_id)
        self._spawn(self._close_later(handle, record.id), f"autoclose-{record.id}")
        self._spawn(self._report_and_release(record.id, holds_lock), f"dismiss-{record.id}")
        return DeliveryOutcome.DELIVERED

    async def aclose(self) -> None:
        pending = list(self._pending)
        self._pending.clear()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        # Lock entries never expire; drop the ones whose release timer was cancelled.
        held = sorted(self._held)
        for record_id in held:
            await self._release(record_id)
        if held:
            logger.info("Released %d held lock(s) on close tab=%s", len(held), self.tab_id)

    async def __aenter__(self) -> DeliveryCoordinator:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def wait_idle(self) -> None:
        """Wait until every scheduled timer has fired (tests, graceful shutdown)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ---- lock protocol ----

    async def _claim(self, record_id: str) -> _Claim:
        if self._lock_store is None:
            return _Claim.NO_LOCK_STORE

        key = lock_key(record_id)
        try:
            owner = await self._lock_store.get(key)
            if owner is not None and owner != self.tab_id:
                self._mark_store_ok()
                return _Claim.HELD_ELSEWHERE

            await self._lock_store.set(key, self.tab_id)
            self._held.add(record_id)
            confirmed = await self._lock_store.get(key)
        except LockStoreUnavailable:
            self._mark_store_down()
            return _Claim.NO_LOCK_STORE

        self._mark_store_ok()
        if confirmed != self.tab_id:
            self._held.discard(record_id)
            return _Claim.LOST
        return _Claim.WON

    async def _release(self, record_id: str) -> None:
        if self._lock_store is None:
            return
        key = lock_key(record_id)
        try:
            # Only remove our own claim; a later owner keeps theirs.
            if await self._lock_store.get(key) == self.tab_id:
                await self._lock_store.remove(key)
                logger.debug("Released lock record=%s", record_id)
        except LockStoreUnavailable:
            logger.warning("Lock release failed record=%s (store unavailable)", record_id)
            return
        self._held.discard(record_id)

    def _mark_store_down(self) -> None:
        if not self._degraded:
            logger.warning("Shared lock store unavailable; tab %s delivers independently", self.tab_id)
        self._degraded = True

    def _mark_store_ok(self) -> None:
        if self._degraded and self._lock_store is not None:
            logger.info("Shared lock store reachable again; tab %s coordinating", self.tab_id)
            self._degraded = False

    # ---- timers ----

    def _spawn(self, coro, name: str) -> None:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _close_later(self, handle: NotificationHandle, record_id: str) -> None:
        await asyncio.sleep(self._auto_close_s)
        try:
            handle.close()
        except Exception:
            logger.debug("Closing notification failed record=%s", record_id, exc_info=True)

    async def _report_and_release(self, record_id: str, holds_lock: bool) -> None:
        ok = await self._reporter.report(record_id)
        if not holds_lock:
            return
        if ok:
            await self._release_later(record_id, self._release_delay_s)
            return

        # The record stays in the feed; holding the lock longer keeps other tabs from showing it again.
        logger.warning(
            "Dismissal not acknowledged record=%s; holding lock for %.1fs",
            record_id,
            self._failure_hold_s,
        )
        await self._release_later(record_id, self._failure_hold_s)

    async def _release_later(self, record_id: str, delay: float) -> None:
        await asyncio.sleep(delay)
        await self._release(record_id)


async def run_delivery_poller(
        coordinator: DeliveryCoordinator,
        feed: NotificationFeed,
        *,
        interval_seconds: float = 5.0,
) -> None:
    """
    Simple polling loop for one tab.

    Every interval_seconds:
    - fetch the notification feed
    - hand the records to the coordinator

    A failed poll or a crashing batch is logged and retried on the next tick.
    To stop the poller, cancel the coroutine/task.
    """
    sleep_s = max(0.2, float(interval_seconds))

    while True:
        try:
            records = await feed.fetch()
        except Exception:
            logger.exception("notification feed poll failed")
            records = []

        if records:
            try:
                await coordinator.process(records)
            except Exception:
                logger.exception("delivery batch failed tab=%s", coordinator.tab_id)

        await asyncio.sleep(sleep_s)
