# src/flowhub/deadlines/priority.py

from __future__ import annotations

from datetime import datetime, timedelta

from ..tasks.task_models import Priority

URGENT_WINDOW = timedelta(hours=3)
IMPORTANT_WINDOW = timedelta(hours=24)


def classify_priority(deadline: datetime | None, now: datetime) -> Priority:
    """
    Urgency tier from time-to-deadline.

    Never cached: the deadline is fixed but `now` keeps moving.

    - no deadline              -> normal
    - delta < 3h (or overdue)  -> urgent
    - 3h <= delta <= 24h       -> important
    - delta > 24h              -> normal
    """
    if deadline is None:
        return Priority.NORMAL

    delta = deadline - now
    if delta < URGENT_WINDOW:
        return Priority.URGENT
    if delta <= IMPORTANT_WINDOW:
        return Priority.IMPORTANT
    return Priority.NORMAL


def is_urgent(deadline: datetime | None, now: datetime) -> bool:
    """Highlight flag: approaching within the urgency window, or already overdue."""
    return classify_priority(deadline, now) is Priority.URGENT
