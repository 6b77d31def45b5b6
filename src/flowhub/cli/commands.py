# src/flowhub/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..countdown.engine import evaluate_countdown
from ..deadlines.parser import parse_deadline
from ..deadlines.priority import classify_priority
from ..tasks.task_models import Priority, Task, TaskStatus

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

DUE_FORMAT = "%Y-%m-%d %H:%M"


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str, emit: CommandEmitter | None = None) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _now() -> datetime:
    return datetime.now().astimezone()


def _fmt_dt(dt: datetime | None) -> str:
    return dt.strftime(DUE_FORMAT) if dt is not None else "-"


def _find_task(state: AppState, raw_id: str) -> Task | None:
    if not raw_id.isdigit():
        return None
    return state.task_store.get_task(raw_id)


def _countdown_text(state: AppState, task: Task, now: datetime) -> str:
    snap = state.board.snapshots().get(task.id)
    if snap is None:
        snap = evaluate_countdown(status=task.status, deadline=state.memo.peek(task.id) or task.due_at, now=now)
    return f"{snap.display} (!)" if snap.urgent else snap.display


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    s = state.settings
    coord = state.coordinator
    if coord is None:
        delivery = "starting"
    elif coord.degraded:
        delivery = "DEGRADED (no shared lock store)"
    else:
        delivery = "coordinated"
    processed = len(coord.processed) if coord is not None else 0
    source = s.api_base_url or "local store"
    return (
        "Status:\n"
        f"  Tab: {state.tab_id}\n"
        f"  Feed: {source}\n"
        f"  Delivery: {delivery} (processed={processed})\n"
        f"  Reminders: {'ON' if s.reminders_enabled else 'OFF'}\n"
        f"  Tasks: {state.task_store.count_tasks()} (countdowns live: {len(state.board)})"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <text>  -> create a task; a deadline in the text is resolved once and stored
    """
    text = " ".join(args).strip()
    if not text:
        return "Usage: /add <task text>"

    task_id = state.task_store.add_task(title=text)
    task = state.task_store.get_task(task_id)
    if task is None:
        return "Task vanished right after creation."

    deadline = state.memo.resolve(task)
    if deadline is None:
        return f"Task #{task_id} added (no deadline found)."

    priority = classify_priority(deadline, _now())
    state.task_store.update_task_fields(task_id, due_at=deadline, priority=priority)
    logger.debug("Task #%s deadline=%s priority=%s", task_id, deadline, priority)
    return f"Task #{task_id} added, due {_fmt_dt(deadline)} [{priority}]."


def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = state.task_store.list_tasks()
    if not tasks:
        return "No tasks."

    now = _now()
    lines = ["Tasks:"]
    for t in tasks:
        lines.append(
            f"  #{t.id} [{t.priority}] [{t.status}] {t.title} | due {_fmt_dt(t.due_at)} | {_countdown_text(state, t, now)}"
        )
    return "\n".join(lines)


def cmd_due(state: AppState, args: list[str]) -> str:
    """
    /due <id> <YYYY-MM-DD HH:MM>  -> set the due date explicitly (text is not re-parsed)
    """
    if len(args) < 3:
        return "Usage: /due <id> <YYYY-MM-DD HH:MM>"

    task = _find_task(state, args[0])
    if task is None:
        return f"No task #{args[0]}."

    try:
        due_at = datetime.strptime(f"{args[1]} {args[2]}", DUE_FORMAT).astimezone()
    except ValueError:
        return f"Cannot read date {' '.join(args[1:3])!r}; expected YYYY-MM-DD HH:MM."

    priority = classify_priority(due_at, _now())
    state.task_store.update_task_fields(task.id, due_at=due_at, priority=priority)
    state.task_store.clear_reminders(task.id)
    state.memo.set_explicit(task.id, due_at)
    return f"Task #{task.id} due {_fmt_dt(due_at)} [{priority}]."


def _set_status(state: AppState, args: list[str], status: TaskStatus, verb: str) -> str:
    if not args:
        return f"Usage: /{verb} <id>"
    task = _find_task(state, args[0])
    if task is None:
        return f"No task #{args[0]}."
    if task.status == status:
        return f"Task #{task.id} is already {status}."
    state.task_store.update_task_fields(task.id, status=status)
    return f"Task #{task.id}: {task.status} -> {status}."


def cmd_start(state: AppState, args: list[str]) -> str:
    return _set_status(state, args, TaskStatus.IN_PROGRESS, "start")


def cmd_done(state: AppState, args: list[str]) -> str:
    return _set_status(state, args, TaskStatus.COMPLETED, "done")


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete <id>"
    task = _find_task(state, args[0])
    if task is None:
        return f"No task #{args[0]}."
    state.task_store.delete_task(task.id)
    state.memo.forget(task.id)
    return f"Task #{task.id} deleted."


def cmd_notify(state: AppState, args: list[str]) -> str:
    """
    /notify <title>  -> queue a deliverable notification record in the local store
    """
    title = " ".join(args).strip()
    if not title:
        return "Usage: /notify <title>"
    if state.settings.api_base_url:
        return "This tab polls a remote dashboard; /notify only writes to the local store."
    record_id = state.task_store.add_notification(
        title=title,
        description="",
        deliverable=True,
        meta={"source": "console"},
    )
    return f"Notification #{record_id} queued; one open tab will show it."


def cmd_exit(state: AppState, args: list[str]) -> str:
    # The console loop intercepts /exit before dispatch; listed here for /help.
    return "Use /exit from the console prompt to quit."


def cmd_parse(state: AppState, args: list[str]) -> str:
    text = " ".join(args).strip()
    if not text:
        return "Usage: /parse <text>"
    now = _now()
    deadline = parse_deadline(text, now)
    if deadline is None:
        return "No deadline found."
    priority: Priority = classify_priority(deadline, now)
    snap = evaluate_countdown(status=TaskStatus.PENDING, deadline=deadline, now=now)
    return f"Deadline: {deadline.strftime('%a ' + DUE_FORMAT)} [{priority}] {snap.display}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show tab identity, feed and delivery mode.")
registry.register("add", cmd_add, help_text="Create a task: /add <text> (deadline read from text).")
registry.register("tasks", cmd_tasks, help_text="List tasks with live countdowns.", aliases=["ls"])
registry.register("due", cmd_due, help_text="Set a due date: /due <id> <YYYY-MM-DD HH:MM>.")
registry.register("start", cmd_start, help_text="Mark a task in progress: /start <id>.")
registry.register("done", cmd_done, help_text="Mark a task completed: /done <id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("notify", cmd_notify, help_text="Queue a test notification: /notify <title>.")
registry.register("parse", cmd_parse, help_text="Show what deadline a text resolves to: /parse <text>.")
registry.register("exit", cmd_exit, help_text="Quit this tab.", aliases=["quit"])
