# src/flowhub/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the lock store, the feed, the OS notification capability and the
dismissal endpoint swappable, and makes testing easier.
"""

from datetime import datetime
from typing import Any, Awaitable, Protocol

from ..tasks.task_models import NotificationRecord, Priority, Task, TaskStatus


class KeyValueStore(Protocol):
    """Plain synchronous string key-value store (no compare-and-swap)."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> None: ...
    def remove(self, key: str) -> None: ...


class LockStore(Protocol):
    """
    Cross-tab shared store for delivery locks.

    Only plain reads and writes are available. Implementations raise
    LockStoreUnavailable when the backing storage cannot be reached.
    """

    def get(self, key: str) -> Awaitable[str | None]: ...
    def set(self, key: str, value: str) -> Awaitable[None]: ...
    def remove(self, key: str) -> Awaitable[None]: ...


class NotificationFeed(Protocol):
    """Polled source of notification records (dashboard API or local store)."""

    def fetch(self) -> Awaitable[list[NotificationRecord]]: ...


class DismissalEndpoint(Protocol):
    """Server-side dismissal. Assumed idempotent."""

    def dismiss(self, notification_id: str) -> Awaitable[None]: ...


class NotificationHandle(Protocol):
    def close(self) -> None: ...


class Notifier(Protocol):
    """
    OS-level notification capability.

    `tag` is stable per record so the OS can coalesce duplicates;
    `require_interaction` asks the OS to keep the notification visible.
    Raises NotificationError when the capability is denied or unavailable.
    """

    def show(
            self,
            *,
            title: str,
            body: str,
            icon: str,
            tag: str,
            require_interaction: bool = True,
    ) -> NotificationHandle: ...


class TaskRepo(Protocol):
    def add_task(
            self,
            *,
            title: str,
            description: str = "",
            due_at: datetime | None = None,
            priority: Priority = Priority.NORMAL,
            status: TaskStatus = TaskStatus.PENDING,
            meta: dict[str, Any] | None = None,
    ) -> str: ...

    def get_task(self, task_id: str) -> Task | None: ...
    def list_tasks(self, *, include_completed: bool = True, limit: int = 200) -> list[Task]: ...
    def update_task_fields(
            self,
            task_id: str,
            *,
            status: TaskStatus | None = None,
            due_at: datetime | None = None,
            priority: Priority | None = None,
    ) -> None: ...
    def delete_task(self, task_id: str) -> None: ...


class ReminderRepo(Protocol):
    def list_open_tasks_with_due(self, *, limit: int = 200) -> list[Task]: ...
    def plan_reminder(self, task_id: str, *, offset_minutes: int, remind_at: datetime) -> bool: ...
    def list_due_reminders(self, *, now: datetime, limit: int = 32) -> list[Any]: ...
    def try_claim_reminder(self, reminder_id: int) -> bool: ...
    def get_task(self, task_id: str) -> Task | None: ...
    def update_task_fields(
            self,
            task_id: str,
            *,
            status: TaskStatus | None = None,
            due_at: datetime | None = None,
            priority: Priority | None = None,
    ) -> None: ...
    def add_notification(
            self,
            *,
            title: str,
            description: str,
            deliverable: bool,
            task_id: str | None = None,
            meta: dict[str, Any] | None = None,
    ) -> str: ...
