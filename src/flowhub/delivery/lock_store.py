# src/flowhub/delivery/lock_store.py

from __future__ import annotations

"""
Lock stores for the delivery coordinator.

A lock entry maps a notification id to the opaque id of the tab that claimed
it. Entries have no TTL: the coordinator removes them explicitly after a grace
window.
"""

import asyncio
import logging
import sqlite3
from pathlib import Path

from ..core.errors import LockStoreUnavailable
from ..core.kv_store import SqliteKeyValueStore

logger = logging.getLogger(__name__)

LOCK_KEY_PREFIX = "notification-lock-"


def lock_key(notification_id: str) -> str:
    return f"{LOCK_KEY_PREFIX}{notification_id}"


class InMemoryLockStore:
    """Lock store shared by coordinators living in the same process."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class SqliteLockStore:
    """
    Lock store on a shared SQLite file, one connection per call.

    Blocking SQLite calls run in a worker thread so a slow disk never stalls the
    tab's event loop. Any sqlite3.Error becomes LockStoreUnavailable.
    """

    def __init__(self, db_path: str | Path, *, namespace: str = "delivery-locks") -> None:
        try:
            self._kv = SqliteKeyValueStore(db_path, namespace=namespace)
        except sqlite3.Error as exc:
            raise LockStoreUnavailable(f"cannot open lock store at {db_path}") from exc
        logger.info("SqliteLockStore ready db=%s namespace=%s", db_path, namespace)

    async def get(self, key: str) -> str | None:
        try:
            return await asyncio.to_thread(self._kv.get, key)
        except sqlite3.Error as exc:
            raise LockStoreUnavailable(f"lock read failed key={key}") from exc

    async def set(self, key: str, value: str) -> None:
        try:
            await asyncio.to_thread(self._kv.set, key, value)
        except sqlite3.Error as exc:
            raise LockStoreUnavailable(f"lock write failed key={key}") from exc

    async def remove(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._kv.remove, key)
        except sqlite3.Error as exc:
            raise LockStoreUnavailable(f"lock remove failed key={key}") from exc
