# src/flowhub/connectors/desktop_notifier.py

from __future__ import annotations

import logging

from ..core.errors import NotificationError

logger = logging.getLogger(__name__)


class _ToastHandle:
    """
    plyer toasts cannot be closed programmatically; the OS expires them after
    the timeout passed at show time. close() only records the request.
    """

    def __init__(self, tag: str) -> None:
        self.tag = tag
        self.closed = False

    def close(self) -> None:
        self.closed = True


class PlyerNotifier:
    """OS notifications through plyer (Windows toast, macOS, libnotify)."""

    def __init__(self, *, app_name: str = "flowhub", timeout_seconds: int = 10) -> None:
        self._app_name = app_name
        self._timeout = max(1, int(timeout_seconds))

    def show(
            self,
            *,
            title: str,
            body: str,
            icon: str,
            tag: str,
            require_interaction: bool = True,
    ) -> _ToastHandle:
        try:
            from plyer import notification

            notification.notify(
                title=title,
                message=body,
                app_name=self._app_name,
                app_icon=icon or "",
                # plyer has no "sticky" flag; the longest timeout is the closest.
                timeout=self._timeout,
            )
        except Exception as exc:
            raise NotificationError(f"OS notification unavailable: {exc}") from exc

        logger.debug("Toast shown tag=%s require_interaction=%s", tag, require_interaction)
        return _ToastHandle(tag)
