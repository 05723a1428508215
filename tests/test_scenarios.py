"""End-to-end flows against the in-memory catalog service."""

from __future__ import annotations

import random

import httpx
import pytest

from conftest import build_settings
from fake_remote import FakeStore, any_watched, build_app
from watchlist.client import WatchlistClient, create_client
from watchlist.models import ItemDraft


def _open(store: FakeStore, **overrides):
    return create_client(
        build_settings(**overrides), transport=httpx.ASGITransport(app=build_app(store))
    )


def _season_numbers(client: WatchlistClient, series_id: str) -> list[int]:
    return [season.season_number for season in client.state.find(series_id).seasons]


@pytest.mark.anyio("asyncio")
async def test_start_loads_catalog_notifications_and_recommendations() -> None:
    store = FakeStore()
    store.add("MOVIE", {"title": "Heat", "addedBy": "Ana"})
    store.add("MOVIE", {"title": "Up", "addedBy": "Ben"})
    store.notifications["n1"] = {"id": "n1", "seriesTitle": "Dark", "message": "New season"}

    async with _open(store) as client:
        view = client.view()

        assert [row.title for row in view.items] == ["Heat", "Up"]
        assert view.contributors == ("Ana", "Ben")
        assert [notification.id for notification in client.state.notifications] == ["n1"]
        assert {pick.title for pick in client.state.recommendations.items} == {"Heat", "Up"}

        await client.select_contributor("Ben")

        assert [row.title for row in client.view().items] == ["Up"]
        assert client.view().contributors == ("Ana", "Ben")
        assert [pick.title for pick in client.state.recommendations.items] == ["Up"]


@pytest.mark.anyio("asyncio")
async def test_series_status_follows_the_store_rollup() -> None:
    """Watching two of three seasons leaves the series as the store says."""

    store = FakeStore()
    async with _open(store) as client:
        created = await client.mutations.create_item(
            ItemDraft(content_type="SERIES", title="Dark", season_count=3)
        )
        assert created is not None
        series_id = created.id

        await client.mutations.toggle_season(series_id, 1)
        await client.mutations.toggle_season(series_id, 2)

        row = client.view().items[0]
        assert row.watch_status == "UNWATCHED"
        assert (row.rollup.watched_count, row.rollup.total) == (2, 3)

    lenient = FakeStore(rollup=any_watched)
    async with _open(lenient) as client:
        created = await client.mutations.create_item(
            ItemDraft(content_type="SERIES", title="Dark", season_count=3)
        )
        await client.mutations.toggle_season(created.id, 1)

        assert client.view().items[0].watch_status == "WATCHED"


@pytest.mark.anyio("asyncio")
async def test_season_numbers_stay_contiguous() -> None:
    store = FakeStore()
    rng = random.Random(7)
    async with _open(store) as client:
        created = await client.mutations.create_item(
            ItemDraft(content_type="SERIES", title="Lost", season_count=2)
        )
        series_id = created.id

        for _ in range(25):
            if rng.random() < 0.5:
                await client.refresh.add_season(series_id)
            else:
                await client.refresh.remove_season(series_id)
            numbers = _season_numbers(client, series_id)
            assert numbers == list(range(1, len(numbers) + 1))
            assert numbers


@pytest.mark.anyio("asyncio")
async def test_removing_last_season_is_rejected_by_the_store() -> None:
    store = FakeStore()
    async with _open(store) as client:
        created = await client.mutations.create_item(
            ItemDraft(content_type="SERIES", title="Chernobyl", season_count=1)
        )

        assert not client.view().items[0].can_remove_season
        assert await client.refresh.remove_season(created.id) is None

        assert client.state.errors() == [
            "Failed to remove season. Series must contain at least one season"
        ]
        assert _season_numbers(client, created.id) == [1]


@pytest.mark.anyio("asyncio")
async def test_priority_flows_to_the_store() -> None:
    store = FakeStore()
    async with _open(store) as client:
        created = await client.mutations.create_item(ItemDraft(title="Heat"))

        client.mutations.increment_priority(created.id)
        client.mutations.increment_priority(created.id)
        client.mutations.decrement_priority(created.id)
        await client.mutations.drain()

        assert store.items[created.id]["priority"] == 1
        assert client.view().items[0].priority_stars == "⭐"


@pytest.mark.anyio("asyncio")
async def test_soft_delete_then_reload() -> None:
    store = FakeStore()
    async with _open(store) as client:
        heat = await client.mutations.create_item(ItemDraft(title="Heat"))
        await client.mutations.create_item(ItemDraft(title="Up"))

        assert await client.mutations.delete_item(heat.id)

        row = client.view().items[0]
        assert (row.id, row.deleted, row.actions_enabled) == (heat.id, True, False)

        await client.catalog.reload()
        assert [row.title for row in client.view().items] == ["Up"]


@pytest.mark.anyio("asyncio")
async def test_mutating_a_vanished_item_reloads() -> None:
    store = FakeStore()
    async with _open(store) as client:
        heat = await client.mutations.create_item(ItemDraft(title="Heat"))
        del store.items[heat.id]

        assert await client.mutations.toggle_watch_status(heat.id) is None

        assert client.state.errors() == [
            f"Failed to update watch status. Item not found with id: {heat.id}"
        ]
        assert client.state.items == []


@pytest.mark.anyio("asyncio")
async def test_bulk_refresh_and_notification_dismissal() -> None:
    store = FakeStore()
    async with _open(store) as client:
        dark = await client.mutations.create_item(
            ItemDraft(content_type="SERIES", title="Dark", season_count=2)
        )
        store.items[dark.id]["hasNewSeasons"] = True
        store.notifications["n1"] = {
            "id": "n1",
            "seriesId": dark.id,
            "seriesTitle": "Dark",
            "message": "1 new season available",
        }
        store.refresh_result = {"totalProcessed": 1, "updatedCount": 1, "failureCount": 0}

        await client.refresh.refresh_all()

        assert client.view().items[0].show_new_season_badge
        assert [notification.id for notification in client.state.notifications] == ["n1"]
        assert client.state.notices[-1].message == "Checked 1 series: 1 updated, 0 failed."

        await client.mutations.delete_item(dark.id)
        assert await client.dismiss_notification("n1") is True
        assert client.state.notifications == []
        assert await client.dismiss_notification("n1") is True
