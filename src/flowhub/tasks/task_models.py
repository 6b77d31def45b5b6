# src/flowhub/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any


class TaskStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


class Priority(StrEnum):
    """Urgency tier. `rank` orders tiers from most to least urgent."""

    URGENT = "urgent"
    IMPORTANT = "important"
    NORMAL = "normal"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.NORMAL
        try:
            return cls(raw)
        except ValueError:
            return cls.NORMAL


_PRIORITY_RANK = {Priority.URGENT: 0, Priority.IMPORTANT: 1, Priority.NORMAL: 2}


@dataclass(slots=True)
class Task:
    id: str
    title: str
    description: str
    status: TaskStatus
    priority: Priority
    created_at: datetime
    due_at: datetime | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """Text the deadline parser reads: title followed by description."""
        return f"{self.title} {self.description or ''}".strip()


@dataclass(slots=True, frozen=True)
class NotificationRecord:
    """
    Read-only view of one entry of the polled notification feed.

    `deliverable` means "should become an OS-level notification", as opposed to
    records that are only shown inside the dashboard.
    """

    id: str
    title: str
    description: str
    created_at: datetime | None
    is_dismissed: bool
    deliverable: bool
    task_id: str | None = None
    meta: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> NotificationRecord:
        """
        Build a record from the dashboard API JSON shape.

        Older servers flag deliverable records with `metadata.browserNotification`;
        both spellings are accepted.
        """
        meta = raw.get("metadata") or {}
        if not isinstance(meta, dict):
            meta = {}

        deliverable = meta.get("deliverable")
        if deliverable is None:
            deliverable = meta.get("browserNotification", False)

        task_id = meta.get("taskId")
        return cls(
            id=str(raw["id"]),
            title=str(raw.get("title") or ""),
            description=str(raw.get("description") or ""),
            created_at=_parse_iso(raw.get("createdAt")),
            is_dismissed=bool(raw.get("isDismissed", False)),
            deliverable=bool(deliverable),
            task_id=str(task_id) if task_id is not None else None,
            meta=meta,
        )


def _parse_iso(raw: Any) -> datetime | None:
    if not raw or not isinstance(raw, str):
        return None
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        return None
