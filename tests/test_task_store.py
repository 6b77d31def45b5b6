# tests/test_task_store.py

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from flowhub.core.kv_store import SqliteKeyValueStore
from flowhub.delivery.lock_store import SqliteLockStore, lock_key
from flowhub.tasks.task_models import Priority, TaskStatus
from flowhub.tasks.task_store import TaskStore


def test_task_add_get_update_delete(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    due = datetime.now().astimezone().replace(microsecond=0) + timedelta(hours=4)

    task_id = store.add_task(title="Prepare board deck", description="friday", due_at=due)
    task = store.get_task(task_id)
    assert task is not None
    assert task.title == "Prepare board deck"
    assert task.text == "Prepare board deck friday"
    assert task.status == TaskStatus.PENDING
    assert task.priority == Priority.NORMAL
    assert task.due_at == due

    store.update_task_fields(task_id, status=TaskStatus.IN_PROGRESS, priority=Priority.IMPORTANT)
    task = store.get_task(task_id)
    assert task.status == TaskStatus.IN_PROGRESS
    assert task.priority == Priority.IMPORTANT
    assert task.due_at == due

    store.delete_task(task_id)
    assert store.get_task(task_id) is None
    assert store.count_tasks() == 0


def test_list_filters_completed_and_open_with_due(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    now = datetime.now().astimezone()
    a = store.add_task(title="a", due_at=now + timedelta(hours=1))
    b = store.add_task(title="b", status=TaskStatus.COMPLETED, due_at=now + timedelta(hours=2))
    c = store.add_task(title="c")

    assert {t.id for t in store.list_tasks()} == {a, b, c}
    assert {t.id for t in store.list_tasks(include_completed=False)} == {a, c}
    assert [t.id for t in store.list_open_tasks_with_due()] == [a]


def test_add_task_requires_title(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    with pytest.raises(ValueError):
        store.add_task(title="   ")


def test_notifications_roundtrip_and_idempotent_dismiss(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    rid = store.add_notification(
        title="Task due in 1 hour",
        description="Q3 review",
        deliverable=True,
        task_id="12",
        meta={"reminderType": "1 hour"},
    )
    store.add_notification(title="Weekly digest", description="", deliverable=False)

    open_records = store.list_notifications()
    assert len(open_records) == 2
    rec = next(r for r in open_records if r.id == rid)
    assert rec.deliverable is True
    assert rec.task_id == "12"
    assert rec.meta == {"reminderType": "1 hour"}

    assert store.dismiss_notification(rid) is True
    assert store.dismiss_notification(rid) is False
    assert rid not in {r.id for r in store.list_notifications()}
    assert len(store.list_notifications(include_dismissed=True)) == 2


def test_reminder_planning_is_unique_and_claim_once(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    now = datetime.now().astimezone()
    task_id = store.add_task(title="Send contract", due_at=now + timedelta(minutes=20))

    assert store.plan_reminder(task_id, offset_minutes=15, remind_at=now + timedelta(minutes=5)) is True
    assert store.plan_reminder(task_id, offset_minutes=15, remind_at=now + timedelta(minutes=5)) is False

    assert store.list_due_reminders(now=now) == []
    due = store.list_due_reminders(now=now + timedelta(minutes=6))
    assert len(due) == 1

    rem_id = int(due[0]["id"])
    assert store.try_claim_reminder(rem_id) is True
    assert store.try_claim_reminder(rem_id) is False
    assert store.list_due_reminders(now=now + timedelta(minutes=6)) == []


def test_kv_namespaces_are_isolated(tmp_path: Path) -> None:
    db = tmp_path / "shared.sqlite3"
    locks = SqliteKeyValueStore(db, namespace="locks")
    memo = SqliteKeyValueStore(db, namespace="deadlines")

    locks.set("k", "tab-a")
    locks.set("k", "tab-b")
    assert locks.get("k") == "tab-b"
    assert memo.get("k") is None
    assert locks.keys() == ["k"]

    locks.remove("k")
    locks.remove("k")
    assert locks.get("k") is None


@pytest.mark.asyncio
async def test_sqlite_lock_store_is_shared_between_instances(tmp_path: Path) -> None:
    db = tmp_path / "shared.sqlite3"
    tab_a = SqliteLockStore(db)
    tab_b = SqliteLockStore(db)

    await tab_a.set(lock_key("1"), "tab-a")
    assert await tab_b.get(lock_key("1")) == "tab-a"
    await tab_b.remove(lock_key("1"))
    assert await tab_a.get(lock_key("1")) is None
