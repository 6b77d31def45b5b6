# src/flowhub/core/state.py

from __future__ import annotations

"""
Application state container.

AppState holds the wired dependencies of one tab so connectors and commands
do not reach for globals. The delivery coordinator is created by the
background runner (it needs the feed/dismissal adapters that live on that
runner's event loop) and attached here once running.
"""

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..countdown.engine import CountdownBoard
from ..deadlines.memo import DeadlineMemo
from ..tasks.task_store import TaskStore
from .ports import LockStore, Notifier

if TYPE_CHECKING:
    from ..delivery.coordinator import DeliveryCoordinator


@dataclass(slots=True)
class AppState:
    # Runtime settings (config.Settings in production, SimpleNamespace in tests).
    settings: Any

    tab_id: str
    task_store: TaskStore
    memo: DeadlineMemo
    board: CountdownBoard
    notifier: Notifier
    lock_store: LockStore | None = None

    coordinator: DeliveryCoordinator | None = None

    # Guards command handling against the background thread.
    lock: threading.Lock = field(default_factory=threading.Lock)
