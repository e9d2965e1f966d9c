"""Paginated market retrieval."""
from __future__ import annotations

import logging
from typing import Any

from ..errors import UpstreamError
from ..interfaces.market_source import MarketSource
from ..models import Market
from .normalizer import normalize

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000
DEFAULT_MAX_MARKETS = 5000


async def fetch_all_markets(
    source: MarketSource,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_markets: int = DEFAULT_MAX_MARKETS,
) -> list[dict[str, Any]]:
    """Page through the listing until it is exhausted.

    Stops on an empty page, on a page shorter than ``page_size``, or once
    ``max_markets`` items have accumulated. The cursor advances by the
    number of items actually returned.

    Raises:
        UpstreamError: if the first page cannot be fetched. Failures on
            later pages end pagination and keep what was already read.
    """
    markets: list[dict[str, Any]] = []
    skip = 0

    while True:
        logger.debug("Fetching markets: skip=%d first=%d", skip, page_size)
        try:
            items = await source.request_markets(page_size, skip)
        except UpstreamError:
            if skip == 0:
                raise
            logger.warning(
                "Market page at skip=%d failed, keeping %d markets",
                skip,
                len(markets),
                exc_info=True,
            )
            break

        if not items:
            break

        markets.extend(items)
        skip += len(items)

        if len(items) < page_size:
            break
        if len(markets) >= max_markets:
            logger.warning(
                "Stopping pagination at %d markets (cap %d)", len(markets), max_markets
            )
            break

    logger.info("Fetched %d markets", len(markets))
    return markets


class MarketFetcher:
    """Fetch every market from a source and normalize it."""

    def __init__(
        self,
        source: MarketSource,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_markets: int = DEFAULT_MAX_MARKETS,
    ) -> None:
        self._source = source
        self._page_size = page_size
        self._max_markets = max_markets

    async def fetch_markets(self) -> tuple[Market, ...]:
        raw = await fetch_all_markets(self._source, self._page_size, self._max_markets)
        records = [item for item in raw if isinstance(item, dict)]
        if len(records) < len(raw):
            logger.warning("Skipping %d malformed market records", len(raw) - len(records))
        return tuple(normalize(item) for item in records)
