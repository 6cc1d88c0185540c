"""Tests for aggregation strategies and dashboard snapshots."""
import pytest

from apk_tracker.services.aggregator import (
    AggregationStrategy,
    AppStats,
    DashboardService,
    resolve_strategy,
    tally_per_app,
)
from apk_tracker.services.gateway import AppNotFoundError, InvalidRequestError

from conftest import add_app


def test_resolve_strategy():
    assert resolve_strategy("COUNT") is AggregationStrategy.COUNT
    assert resolve_strategy(AggregationStrategy.BULK) is AggregationStrategy.BULK
    with pytest.raises(InvalidRequestError):
        resolve_strategy("join")


def test_tally_ignores_unknown_keys():
    apps = [{"app_key": "apk_1_a"}, {"app_key": "apk_2_b"}]
    installs = [{"app_key": "apk_1_a"}, {"app_key": "apk_1_a"}, {"app_key": "apk_x_x"}]
    opens = [{"app_key": "apk_2_b"}]
    stats = tally_per_app(apps, installs, opens)
    assert stats == {
        "apk_1_a": AppStats(installs=2, opens=0),
        "apk_2_b": AppStats(installs=0, opens=1),
    }


@pytest.mark.parametrize("strategy", ["count", "bulk"])
async def test_snapshot_counts_and_totals(gateway, seeded, strategy):
    service = DashboardService(gateway, strategy=strategy)
    dashboard = await service.snapshot()

    assert dashboard.strategy == strategy
    assert dashboard.total_apps == 2
    by_key = {a.app_key: a for a in dashboard.apps}
    assert (by_key["apk_1_abc"].installs, by_key["apk_1_abc"].opens) == (3, 5)
    assert (by_key["apk_2_def"].installs, by_key["apk_2_def"].opens) == (1, 0)
    # Orphaned rows are not attributed to any app
    assert dashboard.total_installs == 4
    assert dashboard.total_opens == 5
    assert dashboard.stale is False


async def test_strategies_agree(gateway, seeded):
    service = DashboardService(gateway)
    counted = await service.snapshot("count")
    bulk = await service.snapshot("bulk")
    assert counted.model_dump(exclude={"strategy"}) == bulk.model_dump(exclude={"strategy"})


async def test_totals_equal_sum_of_rows(gateway, seeded):
    dashboard = await DashboardService(gateway).snapshot()
    assert dashboard.total_installs == sum(a.installs for a in dashboard.apps)
    assert dashboard.total_opens == sum(a.opens for a in dashboard.apps)


async def test_empty_dashboard(dashboard_service):
    dashboard = await dashboard_service.snapshot()
    assert dashboard.total_apps == 0
    assert dashboard.apps == []


async def test_new_app_shows_zero_counts(gateway, dashboard_service):
    app = await gateway.insert_app("Demo", "com.x.demo")
    dashboard = await dashboard_service.snapshot()
    row = dashboard.apps[0]
    assert row.app_key == app["app_key"]
    assert (row.installs, row.opens) == (0, 0)


async def test_refresh_keeps_last_snapshot_on_failure(gateway, seeded, caplog):
    service = DashboardService(gateway)
    good = await service.refresh()

    seeded.apps.fail()
    stale = await service.refresh()

    assert stale.stale is True
    assert "not reachable" in stale.error
    assert stale.apps == good.apps
    assert stale.total_installs == good.total_installs
    assert "Error fetching apps" in caplog.text

    seeded.apps.recover()
    fresh = await service.refresh()
    assert fresh.stale is False
    assert fresh.error is None


async def test_stale_refresh_reports_requested_strategy(gateway, seeded):
    service = DashboardService(gateway, strategy="count")
    await service.refresh()

    seeded.apps.fail()
    stale = await service.refresh("bulk")
    assert stale.stale is True
    assert stale.strategy == "bulk"


async def test_refresh_without_previous_snapshot(gateway, collections):
    collections.installs.fail()
    add_app(collections, 1, "apk_1_abc")
    dashboard = await DashboardService(gateway).refresh()
    assert dashboard.stale is True
    assert dashboard.apps == []
    assert dashboard.total_apps == 0


async def test_refresh_rejects_unknown_strategy(dashboard_service):
    with pytest.raises(InvalidRequestError):
        await dashboard_service.refresh("join")


async def test_counts_for_app(dashboard_service, seeded):
    counts = await dashboard_service.counts_for_app(1)
    assert counts.app_key == "apk_1_abc"
    assert (counts.installs, counts.opens) == (3, 5)

    with pytest.raises(AppNotFoundError):
        await dashboard_service.counts_for_app(9)
