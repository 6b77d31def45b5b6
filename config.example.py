# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Use:
- .env (local, gitignored)
- config_local.py (local safe overrides, gitignored)

Every tab process of one session must share FLOWHUB_SHARED_DB_PATH; that file
holds the delivery locks and the persisted deadline memo.
"""

ENV_VARS = {
    # App / logging
    "FLOWHUB_APP_NAME": "App name shown on OS notifications (default: flowhub).",
    "FLOWHUB_LOG_LEVEL": "Console logging level (default: INFO).",
    # Remote dashboard (optional)
    "FLOWHUB_API_BASE_URL": "Dashboard API base URL; empty => use the local task store as feed.",
    "FLOWHUB_USER_ID": "userId query parameter sent with feed polls.",
    "FLOWHUB_HTTP_TIMEOUT_SECONDS": "HTTP timeout for feed/dismiss calls (default: 10).",
    # Paths (gitignored)
    "FLOWHUB_DATA_DIR": "Local data directory (default: .local/flowhub).",
    "FLOWHUB_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    "FLOWHUB_SHARED_DB_PATH": "Shared lock/memo SQLite path (default: <data_dir>/shared.sqlite3).",
    # Delivery
    "FLOWHUB_DESKTOP_NOTIFICATIONS": "Use OS notifications via plyer (true/false, default: true).",
    "FLOWHUB_NOTIFICATION_ICON": "Optional icon path for OS notifications.",
    "FLOWHUB_POLL_INTERVAL_SECONDS": "Feed poll interval (default: 5).",
    "FLOWHUB_NOTIFICATION_AUTO_CLOSE_SECONDS": "Close a shown notification after N seconds (default: 10).",
    "FLOWHUB_LOCK_RELEASE_DELAY_SECONDS": "Grace period before releasing a lock (default: 5).",
    "FLOWHUB_LOCK_FAILURE_HOLD_SECONDS": "Lock hold when dismissal failed (default: 15).",
    "FLOWHUB_PROCESSED_CAP": "Max remembered processed record ids (default: 100).",
    # Countdown
    "FLOWHUB_TICK_INTERVAL_SECONDS": "Countdown tick interval (default: 1).",
    # Reminders
    "FLOWHUB_REMINDERS_ENABLED": "Run the reminder scheduler (default: on when no API URL is set).",
    "FLOWHUB_REMINDER_INTERVAL_SECONDS": "Reminder check interval (default: 60).",
    "FLOWHUB_REMINDER_OFFSETS_MINUTES": "Comma/space separated offsets before due (default: 60,30,15,10,5).",
}
