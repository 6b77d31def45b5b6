# src/flowhub/deadlines/memo.py

from __future__ import annotations

"""
Per-task memo of resolved deadlines.

A deadline parsed from free text must not be recomputed against a moving "now"
(relative phrases like "in 30 minutes" would drift forward on every tick).
Each task id therefore resolves exactly once; the entry (including a "no
deadline" result) is fixed until the user explicitly sets a due date.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime

from ..core.ports import KeyValueStore
from ..tasks.task_models import Task
from .parser import parse_deadline

logger = logging.getLogger(__name__)

PERSISTED_KEY_PREFIX = "task_parsed_time_"


def _local_now() -> datetime:
    return datetime.now().astimezone()


class DeadlineMemo:
    """
    Resolution order for a task seen for the first time:
    1. explicit `due_at` on the task (no text parsing),
    2. a previously persisted parse result (restart of the same observer),
    3. parse title + description with the task's creation time as base.

    `persisted` is optional; without it the memo lives for the process only.
    """

    def __init__(
        self,
        *,
        persisted: KeyValueStore | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self._entries: dict[str, datetime | None] = {}
        self._persisted = persisted
        self._clock = clock
        self._lock = threading.Lock()

    def __contains__(self, task_id: object) -> bool:
        with self._lock:
            return task_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def peek(self, task_id: str) -> datetime | None:
        """Memoized value without resolving (None for unknown ids too)."""
        with self._lock:
            return self._entries.get(task_id)

    def resolve(self, task: Task) -> datetime | None:
        with self._lock:
            if task.id in self._entries:
                return self._entries[task.id]

            if task.due_at is not None:
                self._entries[task.id] = task.due_at
                return task.due_at

            stored = self._load_persisted(task.id)
            if stored is not None:
                self._entries[task.id] = stored
                return stored

            base = task.created_at or self._clock()
            parsed = parse_deadline(task.text, base)
            self._entries[task.id] = parsed
            if parsed is not None:
                self._store_persisted(task.id, parsed)

            logger.debug("Deadline resolved task_id=%s deadline=%s", task.id, parsed)
            return parsed

    def set_explicit(self, task_id: str, due_at: datetime | None) -> None:
        """A user edit of the due date overwrites the memo; text is never re-parsed."""
        with self._lock:
            self._entries[task_id] = due_at
            if due_at is None:
                self._remove_persisted(task_id)
            else:
                self._store_persisted(task_id, due_at)
        logger.info("Deadline set explicitly task_id=%s deadline=%s", task_id, due_at)

    def forget(self, task_id: str) -> None:
        with self._lock:
            self._entries.pop(task_id, None)
            self._remove_persisted(task_id)

    def prune(self, live_ids: Iterable[str]) -> int:
        """Drop entries for tasks that no longer exist. Returns number removed."""
        live = set(live_ids)
        with self._lock:
            stale = [tid for tid in self._entries if tid not in live]
            for tid in stale:
                del self._entries[tid]
                self._remove_persisted(tid)
        if stale:
            logger.debug("Deadline memo pruned %d entries", len(stale))
        return len(stale)

    # ---- persisted layer ----

    def _load_persisted(self, task_id: str) -> datetime | None:
        if self._persisted is None:
            return None
        key = PERSISTED_KEY_PREFIX + task_id
        try:
            raw = self._persisted.get(key)
        except Exception:
            logger.warning("Persisted deadline read failed task_id=%s", task_id, exc_info=True)
            return None

        if not raw or raw in ("null", "undefined"):
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            # Unreadable value: drop it and fall through to a fresh parse.
            logger.info("Discarding unparseable persisted deadline task_id=%s value=%r", task_id, raw)
            self._remove_persisted(task_id)
            return None

    def _store_persisted(self, task_id: str, deadline: datetime) -> None:
        if self._persisted is None:
            return
        try:
            self._persisted.set(PERSISTED_KEY_PREFIX + task_id, deadline.isoformat())
        except Exception:
            logger.warning("Persisted deadline write failed task_id=%s", task_id, exc_info=True)

    def _remove_persisted(self, task_id: str) -> None:
        if self._persisted is None:
            return
        try:
            self._persisted.remove(PERSISTED_KEY_PREFIX + task_id)
        except Exception:
            logger.warning("Persisted deadline remove failed task_id=%s", task_id, exc_info=True)
