# tests/test_dismissal.py

from __future__ import annotations

from pathlib import Path

import pytest

from flowhub.connectors.store_feed import StoreDismissalEndpoint, StoreNotificationFeed
from flowhub.delivery.coordinator import DeliveryCoordinator, DeliveryOutcome
from flowhub.delivery.dismissal import DismissalReporter
from flowhub.delivery.lock_store import SqliteLockStore
from flowhub.delivery.processed import ProcessedIds
from flowhub.tasks.task_store import TaskStore

from .fakes import FakeDismissalEndpoint, FakeNotifier


@pytest.mark.asyncio
async def test_reporter_success_failure_and_memory() -> None:
    endpoint = FakeDismissalEndpoint()
    reporter = DismissalReporter(endpoint)

    assert await reporter.report("1") is True
    assert reporter.already_reported("1")
    assert await reporter.report("1") is True
    assert endpoint.calls == ["1"]

    endpoint.fail = True
    assert await reporter.report("2") is False
    assert not reporter.already_reported("2")


def test_processed_ids_prefers_dropping_ids_outside_the_feed() -> None:
    ids = ProcessedIds(cap=2)
    for rid in ("a", "b", "c"):
        ids.add(rid)

    assert ids.prune(live_ids=["a", "c"]) == 1
    assert "a" in ids and "c" in ids and "b" not in ids

    ids.add("d")
    assert ids.prune() == 1
    assert "a" not in ids


def test_processed_ids_keep_every_live_id_past_the_cap() -> None:
    ids = ProcessedIds(cap=2)
    for rid in ("a", "b", "c", "d"):
        ids.add(rid)

    assert ids.prune(live_ids=["a", "b", "c", "d"]) == 0
    assert len(ids) == 4

    assert ids.prune(live_ids=["c", "d"]) == 2
    assert "a" not in ids and "b" not in ids


@pytest.mark.asyncio
async def test_dismissing_twice_is_harmless_and_never_redisplays(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    rid = store.add_notification(title="Task due in 10 minutes", description="", deliverable=True)

    endpoint = StoreDismissalEndpoint(store)
    await endpoint.dismiss(rid)
    await endpoint.dismiss(rid)
    assert store.dismiss_notification(rid) is False

    feed = StoreNotificationFeed(store)
    assert await feed.fetch() == []

    notifier = FakeNotifier()
    tab = DeliveryCoordinator(
        tab_id="tab-late",
        lock_store=SqliteLockStore(tmp_path / "shared.sqlite3"),
        notifier=notifier,
        reporter=DismissalReporter(endpoint),
    )
    async with tab:
        records = store.list_notifications(include_dismissed=True)
        outcomes = await tab.process(records)

    assert outcomes == {rid: DeliveryOutcome.DISMISSED}
    assert notifier.shown == []


@pytest.mark.asyncio
async def test_store_backed_tabs_share_sqlite_locks(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "tasks.sqlite3")
    rid = store.add_notification(title="Standup", description="in 5 minutes", deliverable=True)
    feed = StoreNotificationFeed(store)
    shared = tmp_path / "shared.sqlite3"

    notifier_a, notifier_b = FakeNotifier(), FakeNotifier()
    tab_a = DeliveryCoordinator(
        tab_id="tab-a",
        lock_store=SqliteLockStore(shared),
        notifier=notifier_a,
        reporter=DismissalReporter(StoreDismissalEndpoint(store)),
        auto_close_seconds=0.01,
        release_delay_seconds=0.05,
    )
    tab_b = DeliveryCoordinator(
        tab_id="tab-b",
        lock_store=SqliteLockStore(shared),
        notifier=notifier_b,
        reporter=DismissalReporter(StoreDismissalEndpoint(store)),
    )

    records = await feed.fetch()
    assert [r.id for r in records] == [rid]

    assert (await tab_a.process(records))[rid] == DeliveryOutcome.DELIVERED
    assert (await tab_b.process(records))[rid] == DeliveryOutcome.CLAIMED_ELSEWHERE

    await tab_a.wait_idle()
    assert await feed.fetch() == []
    assert len(notifier_a.shown) + len(notifier_b.shown) == 1

    await tab_a.aclose()
    await tab_b.aclose()
