# src/flowhub/connectors/store_feed.py

from __future__ import annotations

"""Feed and dismissal endpoint backed by the local TaskStore (no dashboard server)."""

import asyncio

from ..tasks.task_models import NotificationRecord
from ..tasks.task_store import TaskStore


class StoreNotificationFeed:
    def __init__(self, store: TaskStore, *, limit: int = 50) -> None:
        self._store = store
        self._limit = limit

    async def fetch(self) -> list[NotificationRecord]:
        return await asyncio.to_thread(self._store.list_notifications, include_dismissed=False, limit=self._limit)


class StoreDismissalEndpoint:
    def __init__(self, store: TaskStore) -> None:
        self._store = store

    async def dismiss(self, notification_id: str) -> None:
        # Unknown or already-dismissed ids are fine; dismissal is idempotent.
        await asyncio.to_thread(self._store.dismiss_notification, notification_id)
