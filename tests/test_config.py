# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from flowhub.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("FLOWHUB_API_BASE_URL", "FLOWHUB_REMINDERS_ENABLED", "FLOWHUB_DATA_DIR", "FLOWHUB_SHARED_DB_PATH"):
        monkeypatch.delenv(name, raising=False)

    s = Settings.from_env()
    assert s.poll_interval_seconds == 5.0
    assert s.notification_auto_close_seconds == 10.0
    assert s.lock_release_delay_seconds == 5.0
    assert s.lock_failure_hold_seconds == 15.0
    assert s.processed_cap == 100
    assert s.reminder_offsets_minutes == [60, 30, 15, 10, 5]
    assert s.reminders_enabled is True
    assert s.shared_db_path == Path(".local/flowhub") / "shared.sqlite3"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("FLOWHUB_API_BASE_URL", "https://dash.example.com/")
    monkeypatch.setenv("FLOWHUB_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FLOWHUB_POLL_INTERVAL_SECONDS", "1")
    monkeypatch.setenv("FLOWHUB_PROCESSED_CAP", "not-a-number")
    monkeypatch.setenv("FLOWHUB_REMINDER_OFFSETS_MINUTES", "45, 20 x 5")
    monkeypatch.setenv("FLOWHUB_DESKTOP_NOTIFICATIONS", "off")

    s = Settings.from_env()
    assert s.api_base_url == "https://dash.example.com"
    assert s.reminders_enabled is False
    assert s.tasks_db_path == tmp_path / "tasks.sqlite3"
    assert s.poll_interval_seconds == 1.0
    assert s.processed_cap == 100
    assert s.reminder_offsets_minutes == [45, 20, 5]
    assert s.desktop_notifications is False
