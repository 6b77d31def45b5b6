# tests/test_priority.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from flowhub.deadlines.priority import classify_priority, is_urgent
from flowhub.tasks.task_models import Priority

NOW = datetime(2024, 1, 3, 14, 0, tzinfo=timezone.utc)


def test_boundaries_around_three_hours() -> None:
    assert classify_priority(NOW + timedelta(hours=3), NOW) == Priority.IMPORTANT
    assert classify_priority(NOW + timedelta(hours=2, minutes=59, seconds=59), NOW) == Priority.URGENT
    assert classify_priority(NOW - timedelta(seconds=1), NOW) == Priority.URGENT


def test_boundaries_around_a_day() -> None:
    assert classify_priority(NOW + timedelta(hours=24), NOW) == Priority.IMPORTANT
    assert classify_priority(NOW + timedelta(hours=24, seconds=1), NOW) == Priority.NORMAL


def test_no_deadline_is_normal() -> None:
    assert classify_priority(None, NOW) == Priority.NORMAL
    assert is_urgent(None, NOW) is False


def test_tier_moves_with_now() -> None:
    deadline = NOW + timedelta(hours=5)
    assert classify_priority(deadline, NOW) == Priority.IMPORTANT
    assert classify_priority(deadline, NOW + timedelta(hours=2, minutes=30)) == Priority.URGENT


def test_urgent_flag_covers_overdue() -> None:
    assert is_urgent(NOW - timedelta(days=2), NOW) is True
    assert is_urgent(NOW + timedelta(hours=1), NOW) is True
    assert is_urgent(NOW + timedelta(hours=4), NOW) is False


def test_rank_orders_tiers() -> None:
    assert Priority.URGENT.rank < Priority.IMPORTANT.rank < Priority.NORMAL.rank
    assert Priority.from_db("bogus") == Priority.NORMAL
