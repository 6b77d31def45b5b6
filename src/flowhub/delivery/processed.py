# src/flowhub/delivery/processed.py

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable


class ProcessedIds:
    """
    Insertion-ordered set of record ids this tab has already handled.

    Capped: dismissed records leave the feed and never come back, so only ids
    that are no longer in the live feed are pruned. While the feed still lists
    more than `cap` handled records the set grows past the cap; forgetting a
    live id would show that record again on the next poll.
    """

    def __init__(self, cap: int = 100) -> None:
        self._cap = max(1, int(cap))
        self._ids: OrderedDict[str, None] = OrderedDict()

    @property
    def cap(self) -> int:
        return self._cap

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, record_id: str) -> None:
        self._ids[record_id] = None
        self._ids.move_to_end(record_id)

    def prune(self, live_ids: Iterable[str] | None = None) -> int:
        """
        Shrink back towards the cap, oldest first. Returns the number of ids dropped.

        With `live_ids`, ids still in the feed are never dropped. Without it
        (no feed to compare against) the oldest ids go until the cap holds.
        """
        if len(self._ids) <= self._cap:
            return 0

        before = len(self._ids)
        live = set(live_ids) if live_ids is not None else None
        for rid in list(self._ids):
            if len(self._ids) <= self._cap:
                break
            if live is None or rid not in live:
                del self._ids[rid]

        return before - len(self._ids)
