# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from flowhub.core.kv_store import InMemoryKeyValueStore
from flowhub.core.state import AppState
from flowhub.countdown.engine import CountdownBoard
from flowhub.deadlines.memo import DeadlineMemo
from flowhub.delivery.lock_store import InMemoryLockStore
from flowhub.tasks.task_store import TaskStore

from .fakes import FakeNotifier


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="flowhub-test",
        log_level="DEBUG",
        # Remote API off: the local store is the feed
        api_base_url="",
        user_id="",
        http_timeout_seconds=1.0,
        # Paths (tmp per test run)
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        shared_db_path=tmp_path / "shared.sqlite3",
        # Delivery (short timers)
        desktop_notifications=False,
        notification_icon="",
        poll_interval_seconds=0.2,
        notification_auto_close_seconds=0.01,
        lock_release_delay_seconds=0.01,
        lock_failure_hold_seconds=0.05,
        processed_cap=100,
        tick_interval_seconds=0.01,
        reminders_enabled=False,
        reminder_interval_seconds=60.0,
        reminder_offsets_minutes=[60, 30, 15, 10, 5],
    )


@pytest.fixture()
def base_time() -> datetime:
    # Wednesday
    return datetime(2024, 1, 3, 14, 0, tzinfo=timezone.utc)


@pytest.fixture()
def task_store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def state(settings: SimpleNamespace, task_store: TaskStore) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep a real SQLite TaskStore here because its correctness is part
    of what we want to test.
    """
    memo = DeadlineMemo(persisted=InMemoryKeyValueStore())
    return AppState(
        settings=settings,
        tab_id="tab-test",
        task_store=task_store,
        memo=memo,
        board=CountdownBoard(memo, interval_seconds=settings.tick_interval_seconds),
        notifier=FakeNotifier(),
        lock_store=InMemoryLockStore(),
    )
