# tests/test_deadline_memo.py

from __future__ import annotations

from datetime import datetime, timedelta

from flowhub.core.kv_store import InMemoryKeyValueStore
from flowhub.deadlines.memo import PERSISTED_KEY_PREFIX, DeadlineMemo
from flowhub.tasks.task_models import Priority, Task, TaskStatus

from .fakes import FakeClock


def _task(task_id: str, title: str, created_at: datetime, due_at: datetime | None = None) -> Task:
    return Task(
        id=task_id,
        title=title,
        description="",
        status=TaskStatus.PENDING,
        priority=Priority.NORMAL,
        created_at=created_at,
        due_at=due_at,
    )


def test_resolve_is_fixed_while_time_advances(base_time: datetime) -> None:
    clock = FakeClock(base_time)
    memo = DeadlineMemo(clock=clock)
    task = _task("1", "Follow up in 30 minutes", created_at=base_time)

    first = memo.resolve(task)
    assert first == base_time + timedelta(minutes=30)

    for _ in range(3):
        clock.advance(minutes=10)
        assert memo.resolve(task) == first


def test_no_deadline_result_is_memoized_but_not_persisted(base_time: datetime) -> None:
    kv = InMemoryKeyValueStore()
    memo = DeadlineMemo(persisted=kv)
    task = _task("7", "Buy milk", created_at=base_time)

    assert memo.resolve(task) is None
    assert "7" in memo
    assert kv.get(PERSISTED_KEY_PREFIX + "7") is None

    # A later description edit must not re-trigger parsing.
    task.description = "in 2 hours"
    assert memo.resolve(task) is None


def test_explicit_due_at_skips_parsing(base_time: datetime) -> None:
    due = base_time + timedelta(days=2)
    memo = DeadlineMemo()
    assert memo.resolve(_task("2", "Fix prod ASAP", created_at=base_time, due_at=due)) == due


def test_persisted_value_survives_restart(base_time: datetime) -> None:
    kv = InMemoryKeyValueStore()
    task = _task("3", "Draft memo in 2 hours", created_at=base_time)
    first = DeadlineMemo(persisted=kv).resolve(task)

    # Same observer restarts; a different base would parse differently.
    task.created_at = base_time + timedelta(hours=5)
    assert DeadlineMemo(persisted=kv).resolve(task) == first


def test_unparseable_persisted_value_is_a_cache_miss(base_time: datetime) -> None:
    kv = InMemoryKeyValueStore()
    kv.set(PERSISTED_KEY_PREFIX + "4", "not-a-date")
    memo = DeadlineMemo(persisted=kv)

    result = memo.resolve(_task("4", "Call in 15 minutes", created_at=base_time))
    assert result == base_time + timedelta(minutes=15)
    assert kv.get(PERSISTED_KEY_PREFIX + "4") == result.isoformat()


def test_set_explicit_overrides_and_forget_clears(base_time: datetime) -> None:
    kv = InMemoryKeyValueStore()
    memo = DeadlineMemo(persisted=kv)
    task = _task("5", "Report tomorrow", created_at=base_time)
    memo.resolve(task)

    new_due = base_time + timedelta(days=3)
    memo.set_explicit("5", new_due)
    assert memo.resolve(task) == new_due
    assert kv.get(PERSISTED_KEY_PREFIX + "5") == new_due.isoformat()

    memo.forget("5")
    assert "5" not in memo
    assert kv.get(PERSISTED_KEY_PREFIX + "5") is None


def test_prune_drops_vanished_tasks(base_time: datetime) -> None:
    memo = DeadlineMemo()
    for tid in ("a", "b", "c"):
        memo.resolve(_task(tid, "in 1 hour", created_at=base_time))

    assert memo.prune(["b"]) == 2
    assert len(memo) == 1
    assert memo.peek("b") == base_time + timedelta(hours=1)
    assert memo.peek("a") is None
