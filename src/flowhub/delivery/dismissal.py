# src/flowhub/delivery/dismissal.py

from __future__ import annotations

import logging

from ..core.ports import DismissalEndpoint
from .processed import ProcessedIds

logger = logging.getLogger(__name__)


class DismissalReporter:
    """
    Tells the originating server that a record has been displayed.

    Fire-and-forget from the caller's point of view: failures are logged and
    reported as False, never raised, and never retried here. A record already
    acknowledged by this tab is not reported again.
    """

    def __init__(self, endpoint: DismissalEndpoint, *, memory: int = 100) -> None:
        self._endpoint = endpoint
        self._acknowledged = ProcessedIds(cap=memory)

    def already_reported(self, notification_id: str) -> bool:
        return notification_id in self._acknowledged

    async def report(self, notification_id: str) -> bool:
        if notification_id in self._acknowledged:
            logger.debug("Dismissal already reported id=%s", notification_id)
            return True

        try:
            await self._endpoint.dismiss(notification_id)
        except Exception:
            logger.warning("Dismissal report failed id=%s", notification_id, exc_info=True)
            return False

        self._acknowledged.add(notification_id)
        self._acknowledged.prune()
        logger.info("Dismissed notification id=%s", notification_id)
        return True
