# src/flowhub/tasks/task_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from datetime import datetime
from pathlib import Path
from typing import Any

from .task_models import NotificationRecord, Priority, Task, TaskStatus

logger = logging.getLogger(__name__)


def _to_ts(dt: datetime | None) -> float | None:
    return dt.timestamp() if dt is not None else None


def _from_ts(ts: float | None) -> datetime | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(float(ts)).astimezone()


class TaskStore:
    """
    SQLite store for tasks, notification records and reminder rows.

    Stands in for the dashboard server when no remote API is configured:
    the console tab reads its notification feed from here and dismisses
    records here.

    The schema is migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    status TEXT NOT NULL DEFAULT 'pending',
                    priority TEXT NOT NULL DEFAULT 'normal',
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL,
                    due_at REAL,
                    meta TEXT NOT NULL DEFAULT '{}'
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS notifications (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    created_at REAL NOT NULL,
                    is_dismissed INTEGER NOT NULL DEFAULT 0,
                    deliverable INTEGER NOT NULL DEFAULT 0,
                    task_id TEXT,
                    meta TEXT NOT NULL DEFAULT '{}'
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS reminders (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id TEXT NOT NULL,
                    offset_minutes INTEGER NOT NULL,
                    remind_at REAL NOT NULL,
                    sent INTEGER NOT NULL DEFAULT 0,
                    UNIQUE(task_id, offset_minutes)
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("priority", "TEXT NOT NULL DEFAULT 'normal'")
            add_col("due_at", "REAL")
            add_col("meta", "TEXT NOT NULL DEFAULT '{}'")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status_due ON tasks(status, due_at)")
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_notifications_open "
                "ON notifications(is_dismissed, created_at)"
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_reminders_due ON reminders(sent, remind_at)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _meta_to_str(meta: dict[str, Any] | None) -> str:
        if not meta:
            return "{}"
        try:
            return json.dumps(meta, ensure_ascii=False)
        except (TypeError, ValueError):
            logger.exception("Failed to JSON-encode meta; storing {}.")
            return "{}"

    @staticmethod
    def _str_to_meta(s: str | None) -> dict[str, Any]:
        if not s:
            return {}
        try:
            val = json.loads(s)
            return val if isinstance(val, dict) else {}
        except ValueError:
            return {}

    def _row_to_task(self, row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            description=str(row["description"] or ""),
            status=TaskStatus.from_db(row["status"]),
            priority=Priority.from_db(row["priority"]),
            created_at=_from_ts(row["created_at"] or 0.0),
            due_at=_from_ts(row["due_at"]),
            meta=self._str_to_meta(row["meta"]),
        )

    def _row_to_notification(self, row: sqlite3.Row) -> NotificationRecord:
        return NotificationRecord(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            description=str(row["description"] or ""),
            created_at=_from_ts(row["created_at"]),
            is_dismissed=bool(row["is_dismissed"]),
            deliverable=bool(row["deliverable"]),
            task_id=row["task_id"],
            meta=self._str_to_meta(row["meta"]),
        )

    # ---- tasks ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    def add_task(
        self,
        *,
        title: str,
        description: str = "",
        due_at: datetime | None = None,
        priority: Priority = Priority.NORMAL,
        status: TaskStatus = TaskStatus.PENDING,
        meta: dict[str, Any] | None = None,
        created_at: datetime | None = None,
    ) -> str:
        if not title or not title.strip():
            raise ValueError("title is required")

        now = time.time()
        created_ts = _to_ts(created_at) if created_at is not None else now

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO tasks(title, description, status, priority, created_at, updated_at, due_at, meta)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    title.strip(),
                    (description or "").strip(),
                    status.value,
                    priority.value,
                    created_ts,
                    now,
                    _to_ts(due_at),
                    self._meta_to_str(meta),
                ),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task_id = str(rowid)
            logger.debug("Task added id=%s status=%s due_at=%s", task_id, status.value, due_at)
            return task_id
        finally:
            conn.close()

    def get_task(self, task_id: str) -> Task | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def list_tasks(self, *, include_completed: bool = True, limit: int = 200) -> list[Task]:
        sql = "SELECT * FROM tasks"
        if not include_completed:
            sql += " WHERE status != 'completed'"
        sql += " ORDER BY COALESCE(due_at, created_at) ASC, id ASC LIMIT ?"

        conn = self._get_conn()
        try:
            return [self._row_to_task(r) for r in conn.execute(sql, (int(limit),)).fetchall()]
        finally:
            conn.close()

    def list_open_tasks_with_due(self, *, limit: int = 200) -> list[Task]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT *
                FROM tasks
                WHERE status != 'completed'
                  AND due_at IS NOT NULL
                ORDER BY due_at ASC
                    LIMIT ?
                """,
                (int(limit),),
            ).fetchall()
            return [self._row_to_task(r) for r in rows]
        finally:
            conn.close()

    def update_task_fields(
        self,
        task_id: str,
        *,
        status: TaskStatus | None = None,
        due_at: datetime | None = None,
        priority: Priority | None = None,
    ) -> None:
        fields: list[str] = []
        params: list[Any] = []

        if status is not None:
            fields.append("status = ?")
            params.append(status.value)

        if due_at is not None:
            fields.append("due_at = ?")
            params.append(_to_ts(due_at))

        if priority is not None:
            fields.append("priority = ?")
            params.append(priority.value)

        if not fields:
            return

        fields.append("updated_at = ?")
        params.append(time.time())
        params.append(int(task_id))

        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?"

        conn = self._get_conn()
        try:
            conn.execute(sql, params)
            conn.commit()
        finally:
            conn.close()

    def delete_task(self, task_id: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM reminders WHERE task_id = ?", (str(task_id),))
            conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            conn.commit()
        finally:
            conn.close()

    # ---- notifications ----

    def add_notification(
        self,
        *,
        title: str,
        description: str,
        deliverable: bool,
        task_id: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> str:
        if not title or not title.strip():
            raise ValueError("title is required")

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO notifications(title, description, created_at, is_dismissed, deliverable, task_id, meta)
                VALUES (?, ?, ?, 0, ?, ?, ?)
                """,
                (
                    title.strip(),
                    description or "",
                    time.time(),
                    1 if deliverable else 0,
                    task_id,
                    self._meta_to_str(meta),
                ),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for notifications insert")
            logger.debug("Notification added id=%s deliverable=%s task_id=%s", rowid, deliverable, task_id)
            return str(rowid)
        finally:
            conn.close()

    def list_notifications(self, *, include_dismissed: bool = False, limit: int = 50) -> list[NotificationRecord]:
        sql = "SELECT * FROM notifications"
        if not include_dismissed:
            sql += " WHERE is_dismissed = 0"
        sql += " ORDER BY created_at DESC, id DESC LIMIT ?"

        conn = self._get_conn()
        try:
            return [self._row_to_notification(r) for r in conn.execute(sql, (int(limit),)).fetchall()]
        finally:
            conn.close()

    def dismiss_notification(self, notification_id: str) -> bool:
        """
        Mark a record dismissed. Idempotent.

        Returns True if this call changed the row, False if it was already
        dismissed or does not exist.
        """
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE notifications SET is_dismissed = 1 WHERE id = ? AND is_dismissed = 0",
                (int(notification_id),),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    # ---- reminders ----

    def plan_reminder(self, task_id: str, *, offset_minutes: int, remind_at: datetime) -> bool:
        """Insert a reminder row once per (task, offset). Returns True if newly planned."""
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                INSERT OR IGNORE INTO reminders(task_id, offset_minutes, remind_at, sent)
                VALUES (?, ?, ?, 0)
                """,
                (str(task_id), int(offset_minutes), _to_ts(remind_at)),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def list_due_reminders(self, *, now: datetime, limit: int = 32) -> list[sqlite3.Row]:
        conn = self._get_conn()
        try:
            return conn.execute(
                """
                SELECT *
                FROM reminders
                WHERE sent = 0
                  AND remind_at <= ?
                ORDER BY remind_at ASC
                    LIMIT ?
                """,
                (_to_ts(now), int(limit)),
            ).fetchall()
        finally:
            conn.close()

    def try_claim_reminder(self, reminder_id: int) -> bool:
        """
        Best-effort claim to avoid sending a reminder twice.

        Atomically transitions sent 0 -> 1; returns True if this caller won.
        """
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE reminders SET sent = 1 WHERE id = ? AND sent = 0",
                (int(reminder_id),),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def clear_reminders(self, task_id: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM reminders WHERE task_id = ?", (str(task_id),))
            conn.commit()
        finally:
            conn.close()
