# src/flowhub/tasks/reminder_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

A small polling loop that:
- plans reminder rows for open tasks with a future due date,
- claims due reminders (best-effort) and turns them into deliverable
  notification records,
- promotes stored task priorities as deadlines approach.

It never shows anything itself: the records it creates are picked up by the
delivery poller of whichever tab wins the claim.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from ..core.ports import ReminderRepo
from ..deadlines.priority import classify_priority
from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_OFFSETS_MINUTES = (60, 30, 15, 10, 5)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def offset_label(minutes: int) -> str:
    if minutes % 60 == 0:
        hours = minutes // 60
        return "1 hour" if hours == 1 else f"{hours} hours"
    return "1 minute" if minutes == 1 else f"{minutes} minutes"


def plan_reminders(
        repo: ReminderRepo,
        task: Task,
        *,
        now: datetime,
        offsets_minutes: Iterable[int] = DEFAULT_OFFSETS_MINUTES,
) -> int:
    """Plan the still-future reminders of one task. Returns how many were new."""
    if task.status == TaskStatus.COMPLETED or task.due_at is None or task.due_at <= now:
        return 0

    planned = 0
    for offset in offsets_minutes:
        if offset <= 0:
            continue
        remind_at = task.due_at - timedelta(minutes=offset)
        if remind_at <= now:
            continue
        if repo.plan_reminder(task.id, offset_minutes=offset, remind_at=remind_at):
            planned += 1
    if planned:
        logger.debug("Planned %d reminders task_id=%s due=%s", planned, task.id, task.due_at)
    return planned


def promote_priorities(repo: ReminderRepo, tasks: Iterable[Task], *, now: datetime) -> int:
    """Raise stored priorities to the tier their deadline now implies. Never demotes."""
    promoted = 0
    for task in tasks:
        if task.status == TaskStatus.COMPLETED or task.due_at is None:
            continue
        tier = classify_priority(task.due_at, now)
        if tier.rank >= task.priority.rank:
            continue
        repo.update_task_fields(task.id, priority=tier)
        promoted += 1
        remaining = int((task.due_at - now).total_seconds() // 60)
        logger.info(
            "Promoted task id=%s %r from %s to %s (%d minutes remaining)",
            task.id,
            task.title,
            task.priority,
            tier,
            remaining,
        )
    return promoted


def build_reminder_text(task: Task, label: str) -> tuple[str, str]:
    title = f"Task due in {label}"
    details = task.description.strip() or "Click to view task details."
    return title, f'Task "{task.title}" is due in {label}. {details}'


def send_due_reminders(repo: ReminderRepo, *, now: datetime, batch_limit: int = 32) -> list[str]:
    """Claim due reminders and emit a notification record for each. Returns record ids."""
    created: list[str] = []

    for row in repo.list_due_reminders(now=now, limit=batch_limit):
        reminder_id = int(row["id"])
        if not repo.try_claim_reminder(reminder_id):
            continue

        task = repo.get_task(str(row["task_id"]))
        if task is None or task.status == TaskStatus.COMPLETED:
            logger.debug("Dropping reminder id=%s; task gone or completed", reminder_id)
            continue

        label = offset_label(int(row["offset_minutes"]))
        title, description = build_reminder_text(task, label)
        record_id = repo.add_notification(
            title=title,
            description=description,
            deliverable=True,
            task_id=task.id,
            meta={
                "taskId": task.id,
                "reminderType": label,
                "taskTitle": task.title,
                "taskPriority": task.priority.value,
            },
        )
        created.append(record_id)
        logger.info("Reminder queued record=%s task_id=%s (%s)", record_id, task.id, label)

    return created


def run_reminder_check(
        repo: ReminderRepo,
        *,
        now: datetime,
        offsets_minutes: Iterable[int] = DEFAULT_OFFSETS_MINUTES,
) -> list[str]:
    offsets = list(offsets_minutes)
    tasks = repo.list_open_tasks_with_due()
    for task in tasks:
        plan_reminders(repo, task, now=now, offsets_minutes=offsets)
    promote_priorities(repo, tasks, now=now)
    return send_due_reminders(repo, now=now)


async def run_reminder_scheduler(
        repo: ReminderRepo,
        *,
        interval_seconds: float = 60.0,
        offsets_minutes: Iterable[int] = DEFAULT_OFFSETS_MINUTES,
        clock: Callable[[], datetime] = _local_now,
) -> None:
    """
    Simple polling scheduler.

    Every interval_seconds runs one reminder check in a worker thread (SQLite
    calls block). A failing check is logged and retried on the next tick.

    To stop the scheduler, cancel the coroutine/task.
    """
    sleep_s = max(0.5, float(interval_seconds))
    offsets = list(offsets_minutes)

    while True:
        try:
            await asyncio.to_thread(run_reminder_check, repo, now=clock(), offsets_minutes=offsets)
        except Exception:
            logger.exception("reminder check failed")

        await asyncio.sleep(sleep_s)
