"""Refreshable read model over the lending pipeline and market status."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from ..config import AppConfig
from ..errors import UpstreamError
from ..interfaces.market_source import MarketSource
from ..lending.client import MorphoClient
from ..lending.fetcher import MarketFetcher
from ..lending.ranking import rank
from ..models import FilterConfig, Market, MarketStatusSnapshot
from ..status.aggregator import MarketStatusAggregator

logger = logging.getLogger(__name__)

MARKETS_ERROR = "Failed to fetch markets"


class MarketBoard:
    """Holds the latest markets and status snapshot for a display layer.

    Each refresh builds new immutable state and publishes it with a single
    assignment, so readers see either the previous state or the new one.
    """

    def __init__(
        self,
        config: AppConfig,
        source: MarketSource | None = None,
        aggregator: MarketStatusAggregator | None = None,
    ) -> None:
        self._config = config
        self._fetcher = MarketFetcher(
            source or MorphoClient(config.morpho),
            page_size=config.morpho.page_size,
            max_markets=config.morpho.max_markets,
        )
        self._aggregator = aggregator or MarketStatusAggregator(config.market_status)

        self._markets: tuple[Market, ...] = ()
        self._markets_refreshed_at: datetime | None = None
        self._markets_error: str | None = None

        self._snapshot: MarketStatusSnapshot | None = None
        self._status_cycles_started = 0
        self._status_cycle_published = 0

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def markets(self) -> tuple[Market, ...]:
        return self._markets

    @property
    def markets_refreshed_at(self) -> datetime | None:
        return self._markets_refreshed_at

    @property
    def markets_error(self) -> str | None:
        return self._markets_error

    @property
    def snapshot(self) -> MarketStatusSnapshot | None:
        return self._snapshot

    def default_filter(self) -> FilterConfig:
        return self._config.ranking.filter_config()

    def ranked(self, filter_config: FilterConfig | None = None) -> list[Market]:
        """Rank the currently published markets."""
        return rank(self._markets, filter_config or self.default_filter())

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    async def refresh_markets(self) -> bool:
        """Re-fetch every market; keeps the previous set on failure."""
        try:
            markets = await self._fetcher.fetch_markets()
        except UpstreamError as e:
            logger.error("Market refresh failed: %s", e)
            self._markets_error = MARKETS_ERROR
            return False

        self._markets = markets
        self._markets_refreshed_at = datetime.now(timezone.utc)
        self._markets_error = None
        logger.info("Published %d markets", len(markets))
        return True

    async def refresh_status(self) -> MarketStatusSnapshot:
        """Take a new snapshot and publish it unless a newer one already was."""
        self._status_cycles_started += 1
        cycle = self._status_cycles_started

        snapshot = await self._aggregator.snapshot()

        if cycle > self._status_cycle_published:
            self._snapshot = snapshot
            self._status_cycle_published = cycle
        else:
            logger.debug(
                "Discarding status cycle %d (cycle %d already published)",
                cycle,
                self._status_cycle_published,
            )
        return snapshot

    async def run_status_loop(
        self,
        interval_seconds: int | None = None,
        iterations: int | None = None,
        on_refresh: Callable[[MarketStatusSnapshot], None] | None = None,
    ) -> None:
        """Refresh the status snapshot on a fixed interval."""
        interval = interval_seconds or self._config.market_status.refresh_interval_seconds
        logger.info("Starting market status refresh (every %d seconds)", interval)

        completed = 0
        while iterations is None or completed < iterations:
            try:
                snapshot = await self.refresh_status()
                if on_refresh is not None:
                    on_refresh(snapshot)
            except Exception as e:
                logger.error("Error in status refresh loop: %s", e)
            completed += 1
            if iterations is None or completed < iterations:
                await asyncio.sleep(interval)
