"""New-season refresh tests."""

from __future__ import annotations

import asyncio

import pytest

from conftest import Engine, make_series
from watchlist.models import BulkRefreshResult, Notification
from watchlist.services.gateway import RemoteError
from watchlist.services.refresh import summarize_refresh


def test_summary_wording() -> None:
    assert (
        summarize_refresh(BulkRefreshResult(totalProcessed=10, updatedCount=0, failureCount=0))
        == "Checked 10 series. No new seasons found."
    )
    assert (
        summarize_refresh(BulkRefreshResult(totalProcessed=10, updatedCount=2, failureCount=1))
        == "Checked 10 series: 2 updated, 1 failed."
    )


@pytest.mark.anyio("asyncio")
async def test_nothing_new_is_informational_and_skips_reload(engine: Engine) -> None:
    engine.gateway.script(
        "refresh_all_series",
        BulkRefreshResult(totalProcessed=10, updatedCount=0, failureCount=0),
    )

    result = await engine.refresh.refresh_all()

    assert result is not None
    assert [(notice.level, notice.message) for notice in engine.state.notices] == [
        ("info", "Checked 10 series. No new seasons found.")
    ]
    assert engine.gateway.calls_to("list_catalog") == []
    assert engine.gateway.calls_to("list_notifications") == []
    assert not engine.refresh.running


@pytest.mark.anyio("asyncio")
async def test_updates_reload_catalog_and_notifications(engine: Engine) -> None:
    engine.gateway.script(
        "refresh_all_series",
        BulkRefreshResult(totalProcessed=4, updatedCount=1, failureCount=1),
    )
    engine.gateway.default("list_catalog", [make_series("s1", hasNewSeasons=True)])
    engine.gateway.default(
        "list_notifications",
        [Notification(id="n1", seriesId="s1", seriesTitle="Dark", message="1 new season")],
    )

    await engine.refresh.refresh_all()

    assert engine.state.find("s1").has_new_seasons
    assert [notification.id for notification in engine.state.notifications] == ["n1"]
    assert engine.state.notices[-1].level == "success"
    assert engine.state.notices[-1].message == "Checked 4 series: 1 updated, 1 failed."


@pytest.mark.anyio("asyncio")
async def test_concurrent_bulk_refresh_is_a_no_op(engine: Engine) -> None:
    release = asyncio.Event()

    async def slow() -> BulkRefreshResult:
        await release.wait()
        return BulkRefreshResult(totalProcessed=1)

    engine.gateway.script("refresh_all_series", slow)

    first = asyncio.create_task(engine.refresh.refresh_all())
    await asyncio.sleep(0)
    assert engine.refresh.running

    assert await engine.refresh.refresh_all() is None
    release.set()
    assert (await first) is not None

    assert len(engine.gateway.calls_to("refresh_all_series")) == 1
    assert not engine.refresh.running


@pytest.mark.anyio("asyncio")
async def test_bulk_refresh_failure_is_reported(engine: Engine) -> None:
    engine.gateway.script("refresh_all_series", RemoteError("metadata provider unavailable", 503))

    assert await engine.refresh.refresh_all() is None

    assert engine.state.errors() == [
        "Failed to check series for new seasons. metadata provider unavailable"
    ]
    assert not engine.refresh.running


@pytest.mark.anyio("asyncio")
async def test_removing_the_only_season_surfaces_store_message(engine: Engine) -> None:
    engine.state.replace_catalog([make_series("s1", seasons=1)])
    engine.gateway.default("list_catalog", [make_series("s1", seasons=1)])
    engine.gateway.script(
        "remove_season", RemoteError("Series must contain at least one season", 400)
    )

    assert await engine.refresh.remove_season("s1") is None

    assert engine.state.errors() == [
        "Failed to remove season. Series must contain at least one season"
    ]
    assert len(engine.state.find("s1").seasons) == 1


@pytest.mark.anyio("asyncio")
async def test_add_and_refresh_single_series(engine: Engine) -> None:
    engine.state.replace_catalog([make_series("s1", seasons=2)])
    engine.gateway.script("add_season", make_series("s1", seasons=3, contentType=None))
    engine.gateway.script("refresh_series", make_series("s1", seasons=4, hasNewSeasons=True))

    added = await engine.refresh.add_season("s1")
    refreshed = await engine.refresh.refresh_series("s1")

    assert added is not None and added.content_type == "SERIES"
    assert [season.season_number for season in added.seasons] == [1, 2, 3]
    assert refreshed is not None and len(engine.state.find("s1").seasons) == 4


@pytest.mark.anyio("asyncio")
async def test_scheduled_refresh_runs_until_stopped(engine: Engine) -> None:
    engine.gateway.default("refresh_all_series", BulkRefreshResult(totalProcessed=0))

    engine.refresh.start(0.01)
    await asyncio.sleep(0.05)
    await engine.refresh.stop()
    calls = len(engine.gateway.calls_to("refresh_all_series"))
    await asyncio.sleep(0.03)

    assert calls >= 1
    assert len(engine.gateway.calls_to("refresh_all_series")) == calls


@pytest.mark.anyio("asyncio")
async def test_guard_holds_until_reload_finishes(engine: Engine) -> None:
    release = asyncio.Event()

    async def slow_listing(**filters):
        await release.wait()
        return [make_series("s1", hasNewSeasons=True)]

    engine.gateway.script(
        "refresh_all_series",
        BulkRefreshResult(totalProcessed=2, updatedCount=1, failureCount=0),
    )
    engine.gateway.script("list_catalog", slow_listing)

    first = asyncio.create_task(engine.refresh.refresh_all())
    await asyncio.sleep(0)
    assert engine.gateway.calls_to("list_catalog")
    assert engine.refresh.running

    assert await engine.refresh.refresh_all() is None
    release.set()
    assert (await first) is not None

    assert len(engine.gateway.calls_to("refresh_all_series")) == 1
    assert engine.state.notices[-1].message == "Checked 2 series: 1 updated, 0 failed."
    assert not engine.refresh.running
