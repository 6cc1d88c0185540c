"""
Install/open aggregation and dashboard snapshots for APK Tracker.

Two strategies produce the same per-app counts:

- count: one count query per app and child collection, issued concurrently
- bulk: fetch every install/open row once and tally keys locally

Totals are sums of the per-app counts, so rows whose key matches no app are
not counted.
"""
import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from ..models import AppCountsResponse, AppWithStats, DashboardResponse
from .gateway import DataGateway, InvalidRequestError

logger = logging.getLogger(__name__)


class AggregationStrategy(str, Enum):
    COUNT = "count"
    BULK = "bulk"


@dataclass
class AppStats:
    installs: int = 0
    opens: int = 0


def resolve_strategy(strategy) -> AggregationStrategy:
    """Accept an AggregationStrategy or its string value."""
    if isinstance(strategy, AggregationStrategy):
        return strategy
    try:
        return AggregationStrategy((strategy or "").lower())
    except ValueError:
        raise InvalidRequestError(f"Unknown aggregation strategy '{strategy}'. Expected 'count' or 'bulk'")


async def count_per_app(gateway: DataGateway, apps: List[dict]) -> Dict[str, AppStats]:
    """Per-app count queries against the backend."""

    async def stats_for(app: dict):
        key = app["app_key"]
        installs, opens = await asyncio.gather(
            gateway.count_by_key("installs", key),
            gateway.count_by_key("opens", key)
        )
        return key, AppStats(installs=installs, opens=opens)

    results = await asyncio.gather(*[stats_for(app) for app in apps])
    return dict(results)


def tally_per_app(apps: List[dict], installs: Iterable[dict], opens: Iterable[dict]) -> Dict[str, AppStats]:
    """Client-side join of already fetched child rows onto apps by key."""
    install_counts = Counter(row.get("app_key") for row in installs)
    open_counts = Counter(row.get("app_key") for row in opens)
    return {
        app["app_key"]: AppStats(
            installs=install_counts.get(app["app_key"], 0),
            opens=open_counts.get(app["app_key"], 0)
        )
        for app in apps
    }


def build_dashboard(
    apps: List[dict],
    stats: Dict[str, AppStats],
    strategy: AggregationStrategy
) -> DashboardResponse:
    """Attach counts to each app row and compute the three totals."""
    rows = []
    for app in apps:
        app_stats = stats.get(app["app_key"], AppStats())
        base = DataGateway.to_app_response(app)
        rows.append(AppWithStats(
            **base.model_dump(),
            installs=app_stats.installs,
            opens=app_stats.opens
        ))

    return DashboardResponse(
        total_apps=len(rows),
        total_installs=sum(row.installs for row in rows),
        total_opens=sum(row.opens for row in rows),
        apps=rows,
        strategy=strategy.value
    )


class DashboardService:
    """Fetch, aggregate and cache the dashboard view."""

    def __init__(self, gateway: DataGateway, strategy=None):
        """
        Args:
            gateway: DataGateway to read from
            strategy: Default aggregation strategy (config default if None)
        """
        if strategy is None:
            from ..config import AGGREGATION_STRATEGY
            strategy = AGGREGATION_STRATEGY
        self.gateway = gateway
        self.strategy = resolve_strategy(strategy)
        self.last_snapshot: Optional[DashboardResponse] = None

    async def aggregate(self, apps: List[dict], strategy=None) -> Dict[str, AppStats]:
        """Per-app stats for an already fetched app list."""
        strategy = resolve_strategy(strategy) if strategy is not None else self.strategy
        if strategy == AggregationStrategy.COUNT:
            return await count_per_app(self.gateway, apps)

        installs, opens = await asyncio.gather(
            self.gateway.list_installs(),
            self.gateway.list_opens()
        )
        return tally_per_app(apps, installs, opens)

    async def snapshot(self, strategy=None) -> DashboardResponse:
        """
        Fetch all apps and their counts.

        Raises:
            BackendError: If any fetch fails
        """
        strategy = resolve_strategy(strategy) if strategy is not None else self.strategy
        apps = await self.gateway.list_apps()
        stats = await self.aggregate(apps, strategy)
        dashboard = build_dashboard(apps, stats, strategy)
        self.last_snapshot = dashboard
        return dashboard

    async def refresh(self, strategy=None) -> DashboardResponse:
        """
        Like snapshot(), but a fetch failure is logged and the previous
        snapshot (or an empty one) is returned marked stale. No retry.
        """
        strategy = resolve_strategy(strategy) if strategy is not None else self.strategy
        try:
            return await self.snapshot(strategy)
        except InvalidRequestError:
            raise
        except Exception as e:
            logger.error(f"Error fetching apps: {e}")
            previous = self.last_snapshot or DashboardResponse(strategy=strategy.value)
            return previous.model_copy(update={"stale": True, "error": str(e), "strategy": strategy.value})

    async def counts_for_app(self, app_id: int) -> AppCountsResponse:
        """Install/open counts for one app via count queries."""
        app = await self.gateway.get_app(app_id)
        stats = (await count_per_app(self.gateway, [app]))[app["app_key"]]
        return AppCountsResponse(
            id=app["id"],
            app_key=app["app_key"],
            installs=stats.installs,
            opens=stats.opens
        )
