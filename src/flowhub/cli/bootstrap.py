# src/flowhub/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- gives this process its tab identity,
- wires concrete implementations into AppState (store/memo/board/lock store/notifier).
"""

from __future__ import annotations

import logging
import uuid

from ..config import get_settings
from ..connectors.console_notifier import ConsoleNotifier
from ..connectors.desktop_notifier import PlyerNotifier
from ..core.errors import LockStoreUnavailable
from ..core.kv_store import SqliteKeyValueStore
from ..core.ports import LockStore, Notifier
from ..core.state import AppState
from ..countdown.engine import CountdownBoard
from ..deadlines.memo import DeadlineMemo
from ..delivery.lock_store import SqliteLockStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.shared_db_path.parent.mkdir(parents=True, exist_ok=True)


def new_tab_id() -> str:
    return uuid.uuid4().hex


def build_notifier(settings) -> Notifier:
    if settings.desktop_notifications:
        return PlyerNotifier(
            app_name=settings.app_name,
            timeout_seconds=int(settings.notification_auto_close_seconds),
        )
    return ConsoleNotifier()


def build_lock_store(settings) -> LockStore | None:
    try:
        return SqliteLockStore(settings.shared_db_path)
    except LockStoreUnavailable:
        # The coordinator runs degraded without one.
        logger.exception("Shared lock store unavailable at %s", settings.shared_db_path)
        return None


def create_initial_state(*, settings=None, tab_id: str | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    memo = DeadlineMemo(persisted=SqliteKeyValueStore(settings.shared_db_path, namespace="deadlines"))
    board = CountdownBoard(memo, interval_seconds=settings.tick_interval_seconds)

    state = AppState(
        settings=settings,
        tab_id=tab_id or new_tab_id(),
        task_store=TaskStore(settings.tasks_db_path),
        memo=memo,
        board=board,
        notifier=build_notifier(settings),
        lock_store=build_lock_store(settings),
    )
    logger.info("Tab %s initialised (source=%s)", state.tab_id, settings.api_base_url or "local store")
    return state
