# src/flowhub/connectors/http_api.py

from __future__ import annotations

"""
Dashboard HTTP API adapters.

- GET   {base}/api/notifications?userId=<id>     -> list of notification records
- PATCH {base}/api/notifications/<id>/dismiss    -> idempotent dismissal

Both adapters share one httpx.AsyncClient owned by the caller (or by
`DashboardApi`), so connection pooling works across polls.
"""

import logging
from typing import Any

import httpx

from ..core.errors import DismissalError, FeedError
from ..tasks.task_models import NotificationRecord

logger = logging.getLogger(__name__)


class HttpNotificationFeed:
    def __init__(self, client: httpx.AsyncClient, *, user_id: str = "") -> None:
        self._client = client
        self._user_id = user_id

    async def fetch(self) -> list[NotificationRecord]:
        params = {"userId": self._user_id} if self._user_id else None
        try:
            resp = await self._client.get("/api/notifications", params=params)
            resp.raise_for_status()
            payload: Any = resp.json()
        except httpx.HTTPError as exc:
            raise FeedError(f"notification feed request failed: {exc}") from exc
        except ValueError as exc:
            raise FeedError("notification feed returned invalid JSON") from exc

        if isinstance(payload, dict):
            payload = payload.get("notifications", [])
        if not isinstance(payload, list):
            raise FeedError(f"unexpected feed payload type: {type(payload).__name__}")

        records: list[NotificationRecord] = []
        for raw in payload:
            if not isinstance(raw, dict):
                continue
            try:
                records.append(NotificationRecord.from_api(raw))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed notification record: %r", raw)
        return records


class HttpDismissalEndpoint:
    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def dismiss(self, notification_id: str) -> None:
        try:
            resp = await self._client.patch(f"/api/notifications/{notification_id}/dismiss")
        except httpx.HTTPError as exc:
            raise DismissalError(f"dismiss request failed id={notification_id}: {exc}") from exc

        # Already gone on the server side counts as dismissed.
        if resp.status_code == 404:
            logger.debug("Dismiss target missing id=%s; treating as dismissed", notification_id)
            return
        if resp.is_error:
            raise DismissalError(f"dismiss rejected id={notification_id} status={resp.status_code}")


class DashboardApi:
    """Owns the shared AsyncClient for both adapters."""

    def __init__(
        self,
        base_url: str,
        *,
        user_id: str = "",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )
        self.feed = HttpNotificationFeed(self.client, user_id=user_id)
        self.dismissals = HttpDismissalEndpoint(self.client)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> DashboardApi:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
