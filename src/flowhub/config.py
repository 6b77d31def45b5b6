# src/flowhub/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole process (one process == one dashboard tab).
- No secrets required at import time.
- Every tunable of the delivery/countdown core has an env override.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "FLOWHUB"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally. Safe no-op when python-dotenv is missing."""
    try:
        from dotenv import load_dotenv
    except ImportError:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int_list(name: str, default: list[int]) -> list[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    out: list[int] = []
    for part in raw.replace(",", " ").split():
        try:
            out.append(int(part))
        except ValueError:
            continue
    return out or list(default)


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Remote dashboard API (optional) ----
    api_base_url: str
    user_id: str
    http_timeout_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    shared_db_path: Path

    # ---- Delivery ----
    desktop_notifications: bool
    notification_icon: str
    poll_interval_seconds: float
    notification_auto_close_seconds: float
    lock_release_delay_seconds: float
    lock_failure_hold_seconds: float
    processed_cap: int

    # ---- Countdown ----
    tick_interval_seconds: float

    # ---- Reminders ----
    reminders_enabled: bool
    reminder_interval_seconds: float
    reminder_offsets_minutes: list[int]

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "flowhub")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        api_base_url = _env(_k("API_BASE_URL"), "").strip().rstrip("/")
        user_id = _env(_k("USER_ID"), "").strip()
        http_timeout_seconds = _env_float(_k("HTTP_TIMEOUT_SECONDS"), 10.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/flowhub"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        # Every tab process of one session must point at the same file.
        shared_db_path = _env_path(_k("SHARED_DB_PATH"), data_dir / "shared.sqlite3")

        desktop_notifications = _env_bool(_k("DESKTOP_NOTIFICATIONS"), True)
        notification_icon = _env(_k("NOTIFICATION_ICON"), "")
        poll_interval_seconds = _env_float(_k("POLL_INTERVAL_SECONDS"), 5.0)
        notification_auto_close_seconds = _env_float(_k("NOTIFICATION_AUTO_CLOSE_SECONDS"), 10.0)
        lock_release_delay_seconds = _env_float(_k("LOCK_RELEASE_DELAY_SECONDS"), 5.0)
        lock_failure_hold_seconds = _env_float(_k("LOCK_FAILURE_HOLD_SECONDS"), 15.0)
        processed_cap = _env_int(_k("PROCESSED_CAP"), 100)

        tick_interval_seconds = _env_float(_k("TICK_INTERVAL_SECONDS"), 1.0)

        reminders_enabled = _env_bool(_k("REMINDERS_ENABLED"), not api_base_url)
        reminder_interval_seconds = _env_float(_k("REMINDER_INTERVAL_SECONDS"), 60.0)
        reminder_offsets_minutes = _env_int_list(_k("REMINDER_OFFSETS_MINUTES"), [60, 30, 15, 10, 5])

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_base_url=api_base_url,
            user_id=user_id,
            http_timeout_seconds=http_timeout_seconds,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            shared_db_path=shared_db_path,
            desktop_notifications=desktop_notifications,
            notification_icon=notification_icon,
            poll_interval_seconds=poll_interval_seconds,
            notification_auto_close_seconds=notification_auto_close_seconds,
            lock_release_delay_seconds=lock_release_delay_seconds,
            lock_failure_hold_seconds=lock_failure_hold_seconds,
            processed_cap=processed_cap,
            tick_interval_seconds=tick_interval_seconds,
            reminders_enabled=reminders_enabled,
            reminder_interval_seconds=reminder_interval_seconds,
            reminder_offsets_minutes=reminder_offsets_minutes,
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env; use config_local.py only for safe machine-specific switches.
try:
    import config_local as _config_local  # type: ignore

    if hasattr(_config_local, "DESKTOP_NOTIFICATIONS"):
        object.__setattr__(SETTINGS, "desktop_notifications", bool(_config_local.DESKTOP_NOTIFICATIONS))
    if hasattr(_config_local, "REMINDERS_ENABLED"):
        object.__setattr__(SETTINGS, "reminders_enabled", bool(_config_local.REMINDERS_ENABLED))
except ImportError:
    pass


def get_settings() -> Settings:
    return SETTINGS
