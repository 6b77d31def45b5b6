# src/flowhub/connectors/console_notifier.py

from __future__ import annotations

from datetime import datetime


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class _PrintedHandle:
    def __init__(self, tag: str) -> None:
        self.tag = tag
        self.closed = False

    def close(self) -> None:
        self.closed = True


class ConsoleNotifier:
    """Fallback notifier: prints the notification to the terminal."""

    def show(
            self,
            *,
            title: str,
            body: str,
            icon: str,
            tag: str,
            require_interaction: bool = True,
    ) -> _PrintedHandle:
        print(f"\n[{_ts_local()}] [NOTIFY] {title}: {body}", flush=True)
        return _PrintedHandle(tag)
