# src/flowhub/countdown/engine.py

from __future__ import annotations

"""
Per-task countdown state machine.

States:
- COMPLETED    task is done; display "Completed"; ticking stops
- NO_DEADLINE  nothing to count towards; ticking stops until a due date is set
- COUNTING     deadline ahead; largest-unit-first remaining time
- OVERDUE      deadline passed; elapsed time + "overdue"; keeps ticking

The tick source is recreated only when the task status changes (or a stopped
countdown receives a deadline), never on every tick.
"""

import logging
import math
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum

from ..deadlines.memo import DeadlineMemo
from ..deadlines.priority import is_urgent
from ..tasks.task_models import Task, TaskStatus
from .ticker import Ticker

logger = logging.getLogger(__name__)

COMPLETED_TEXT = "Completed"
NO_DEADLINE_TEXT = "No deadline set"
# Stored timestamps round-trip through float seconds.
DUE_EDIT_TOLERANCE = timedelta(seconds=1)


class CountdownState(StrEnum):
    NO_DEADLINE = "no_deadline"
    COUNTING = "counting"
    OVERDUE = "overdue"
    COMPLETED = "completed"


@dataclass(slots=True, frozen=True)
class CountdownSnapshot:
    state: CountdownState
    display: str
    urgent: bool

    @property
    def stops_ticking(self) -> bool:
        return self.state in (CountdownState.COMPLETED, CountdownState.NO_DEADLINE)


def _split(delta: timedelta) -> tuple[int, int, int, int]:
    total = max(0, math.floor(delta.total_seconds()))
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes, seconds = divmod(rem, 60)
    return days, hours, minutes, seconds


def format_remaining(delta: timedelta) -> str:
    days, hours, minutes, seconds = _split(delta)
    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m {seconds}s"
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


def format_overdue(elapsed: timedelta) -> str:
    # One unit coarser than the forward countdown.
    days, hours, minutes, _ = _split(elapsed)
    if days > 0:
        return f"{days}d {hours}h overdue"
    if hours > 0:
        return f"{hours}h {minutes}m overdue"
    return f"{minutes}m overdue"


def evaluate_countdown(*, status: TaskStatus, deadline: datetime | None, now: datetime) -> CountdownSnapshot:
    if status == TaskStatus.COMPLETED:
        return CountdownSnapshot(CountdownState.COMPLETED, COMPLETED_TEXT, urgent=False)

    if deadline is None:
        return CountdownSnapshot(CountdownState.NO_DEADLINE, NO_DEADLINE_TEXT, urgent=False)

    urgent = is_urgent(deadline, now)
    if now < deadline:
        return CountdownSnapshot(CountdownState.COUNTING, format_remaining(deadline - now), urgent)
    return CountdownSnapshot(CountdownState.OVERDUE, format_overdue(now - deadline), urgent)


ChangeCallback = Callable[[str, CountdownSnapshot], None]


def _local_now() -> datetime:
    return datetime.now().astimezone()


class TaskCountdown:
    """Live countdown for one task, driven by its own Ticker."""

    def __init__(
        self,
        task_id: str,
        *,
        status: TaskStatus,
        deadline: datetime | None,
        clock: Callable[[], datetime] = _local_now,
        interval_seconds: float = 1.0,
        on_change: ChangeCallback | None = None,
    ) -> None:
        self.task_id = task_id
        self._status = status
        self._deadline = deadline
        self._clock = clock
        self._interval = interval_seconds
        self._on_change = on_change
        self._ticker: Ticker | None = None
        self._snapshot: CountdownSnapshot | None = None
        self.restarts = 0

    @property
    def status(self) -> TaskStatus:
        return self._status

    @property
    def deadline(self) -> datetime | None:
        return self._deadline

    @property
    def snapshot(self) -> CountdownSnapshot | None:
        return self._snapshot

    @property
    def running(self) -> bool:
        return self._ticker is not None and self._ticker.running

    def start(self) -> None:
        self._restart()

    def update_status(self, status: TaskStatus) -> None:
        if status == self._status:
            return
        logger.debug("Countdown status change task_id=%s %s -> %s", self.task_id, self._status, status)
        self._status = status
        self._restart()

    def set_deadline(self, deadline: datetime | None) -> None:
        if deadline == self._deadline:
            return
        self._deadline = deadline
        if self.running:
            self._tick()
        else:
            self._restart()

    def close(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None

    async def aclose(self) -> None:
        ticker, self._ticker = self._ticker, None
        if ticker is not None:
            await ticker.aclose()

    def _tick(self) -> bool:
        snap = evaluate_countdown(status=self._status, deadline=self._deadline, now=self._clock())
        if snap != self._snapshot:
            self._snapshot = snap
            if self._on_change is not None:
                self._on_change(self.task_id, snap)
        return snap.stops_ticking

    def _restart(self) -> None:
        self.close()
        self.restarts += 1
        if self._tick():
            return
        self._ticker = Ticker(self._tick, interval_seconds=self._interval, name=f"countdown-{self.task_id}")
        self._ticker.start()


class CountdownBoard:
    """
    Countdowns for the current task list.

    `sync()` is called with each fresh task listing: new tasks get a countdown,
    status/deadline changes are forwarded, vanished tasks are torn down.
    """

    def __init__(
        self,
        memo: DeadlineMemo,
        *,
        clock: Callable[[], datetime] = _local_now,
        interval_seconds: float = 1.0,
    ) -> None:
        self._memo = memo
        self._clock = clock
        self._interval = interval_seconds
        self._entries: dict[str, TaskCountdown] = {}
        self._snapshots: dict[str, CountdownSnapshot] = {}
        self._lock = threading.Lock()

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, task_id: str) -> TaskCountdown | None:
        return self._entries.get(task_id)

    def snapshots(self) -> dict[str, CountdownSnapshot]:
        with self._lock:
            return dict(self._snapshots)

    def _record(self, task_id: str, snap: CountdownSnapshot) -> None:
        with self._lock:
            self._snapshots[task_id] = snap

    def sync(self, tasks: Iterable[Task]) -> None:
        live = {t.id: t for t in tasks}

        for task_id in [tid for tid in self._entries if tid not in live]:
            self.remove(task_id)
        self._memo.prune(live)

        for task in live.values():
            self._adopt_stored_due(task)
            deadline = self._memo.resolve(task)
            entry = self._entries.get(task.id)
            if entry is None:
                entry = TaskCountdown(
                    task.id,
                    status=task.status,
                    deadline=deadline,
                    clock=self._clock,
                    interval_seconds=self._interval,
                    on_change=self._record,
                )
                self._entries[task.id] = entry
                entry.start()
                continue

            entry.set_deadline(deadline)
            entry.update_status(task.status)

    def _adopt_stored_due(self, task: Task) -> None:
        # A stored due date that differs from the memo was edited elsewhere (another tab's /due).
        if task.due_at is None or task.id not in self._memo:
            return
        known = self._memo.peek(task.id)
        if known is not None and abs(known - task.due_at) < DUE_EDIT_TOLERANCE:
            return
        self._memo.set_explicit(task.id, task.due_at)

    def remove(self, task_id: str) -> None:
        entry = self._entries.pop(task_id, None)
        if entry is not None:
            entry.close()
        with self._lock:
            self._snapshots.pop(task_id, None)

    async def aclose(self) -> None:
        entries = list(self._entries.values())
        self._entries.clear()
        for entry in entries:
            await entry.aclose()
        with self._lock:
            self._snapshots.clear()

    async def __aenter__(self) -> CountdownBoard:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
