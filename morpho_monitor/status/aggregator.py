"""Best-effort market-status snapshot assembled from independent feeds."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import TypeVar

from ..config import MarketStatusConfig
from ..models import CryptoQuote, MarketStatusSnapshot
from . import parser
from .sources import StatusSources

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MarketStatusAggregator:
    """Query every status feed concurrently and degrade field by field.

    ``snapshot`` never raises on source failures: a feed that errors,
    returns a non-200 status or an unparsable payload only blanks its own
    fields. Cancellation still propagates to the caller.
    """

    def __init__(
        self,
        config: MarketStatusConfig,
        sources: StatusSources | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._config = config
        self._sources = sources or StatusSources.from_config(config)
        self._clock = clock

    @staticmethod
    async def _guard(name: str, fetch: Awaitable[T], fallback: T) -> T:
        try:
            return await fetch
        except Exception as e:
            logger.warning("Market status source '%s' unavailable: %s", name, e)
            return fallback

    async def _crypto(self) -> tuple[CryptoQuote, ...]:
        return parser.parse_crypto_list(await self._sources.crypto.fetch())

    async def _etf_quote(self) -> parser.EtfQuote:
        return parser.parse_etf_quote(await self._sources.etf_quote.fetch())

    async def _etf_nav(self) -> parser.NavReading:
        reading = parser.parse_nav(await self._sources.etf_nav.fetch())
        if reading.nav is None:
            logger.warning("NAV not found in product page; layout may have changed")
        return reading

    async def _futures(self) -> float | None:
        futures = self._config.futures
        price = parser.select_futures_price(
            await self._sources.futures.fetch(), futures.exchange, futures.symbol
        )
        if price is None:
            logger.info("No %s quote on %s", futures.symbol, futures.exchange)
        return price

    async def snapshot(self) -> MarketStatusSnapshot:
        """Fetch all feeds and return one structurally complete snapshot."""
        crypto, quote, nav, futures_price = await asyncio.gather(
            self._guard("crypto", self._crypto(), ()),
            self._guard("etf_quote", self._etf_quote(), parser.EtfQuote(None, None)),
            self._guard("etf_nav", self._etf_nav(), parser.NavReading(None, None)),
            self._guard("futures", self._futures(), None),
        )

        now = self._clock()
        is_open = parser.is_market_open(
            now,
            self._config.timezone,
            self._config.open_time,
            self._config.close_time,
        )

        snapshot = MarketStatusSnapshot(
            is_open=is_open,
            ibit_price=quote.price,
            ibit_change=quote.change,
            ibit_nav=nav.nav,
            ibit_nav_date=nav.as_of,
            coinbase_btc_price=futures_price,
            crypto=crypto,
            fetched_at=now,
        )
        logger.info(
            "Market status: open=%s price=%s nav=%s perp=%s coins=%d",
            snapshot.is_open,
            snapshot.ibit_price,
            snapshot.ibit_nav,
            snapshot.coinbase_btc_price,
            len(snapshot.crypto),
        )
        return snapshot
