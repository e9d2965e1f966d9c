"""HTTP quote sources for the market-status snapshot."""
from __future__ import annotations

import logging
import ssl
from abc import ABC, abstractmethod
from typing import Any

import aiohttp
import certifi

from ..config import MarketStatusConfig
from ..errors import SourceUnavailableError
from ..interfaces.quote_source import QuoteSource

logger = logging.getLogger(__name__)


class _HttpSource(ABC):
    """GET one URL with a certifi-backed TLS context; subclasses decode the body."""

    def __init__(
        self,
        name: str,
        url: str,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        timeout: int = 15,
    ) -> None:
        self._name = name
        self.url = url
        self.params = dict(params or {})
        self.headers = dict(headers or {})
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self._name

    async def fetch(self) -> Any:
        logger.debug("Fetching %s from %s", self._name, self.url)
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.get(
                self.url,
                params=self.params or None,
                headers=self.headers or None,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status != 200:
                    raise SourceUnavailableError(
                        f"{self._name} returned HTTP {response.status}"
                    )
                return await self._read(response)

    @abstractmethod
    async def _read(self, response: aiohttp.ClientResponse) -> Any:
        """Decode a 200 response body."""


class JsonQuoteSource(_HttpSource):
    """Structured source: returns the decoded JSON body."""

    async def _read(self, response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except ValueError as e:
            raise SourceUnavailableError(f"{self.name} returned invalid JSON") from e


class DocumentQuoteSource(_HttpSource):
    """Unstructured source: returns the page text for pattern extraction."""

    async def _read(self, response: aiohttp.ClientResponse) -> Any:
        return await response.text()


class StatusSources:
    """The four feeds behind one snapshot."""

    def __init__(
        self,
        crypto: QuoteSource,
        etf_quote: QuoteSource,
        etf_nav: QuoteSource,
        futures: QuoteSource,
    ) -> None:
        self.crypto = crypto
        self.etf_quote = etf_quote
        self.etf_nav = etf_nav
        self.futures = futures

    @classmethod
    def from_config(cls, config: MarketStatusConfig) -> StatusSources:
        browser_headers = {"User-Agent": config.user_agent}
        return cls(
            crypto=JsonQuoteSource(
                "crypto",
                config.crypto.url,
                params={
                    "vs_currency": config.crypto.vs_currency,
                    "order": "market_cap_desc",
                    "per_page": str(config.crypto.per_page),
                    "page": "1",
                    "sparkline": "false",
                },
                timeout=config.timeout,
            ),
            etf_quote=JsonQuoteSource(
                "etf_quote",
                config.etf.quote_url,
                headers=browser_headers,
                timeout=config.timeout,
            ),
            etf_nav=DocumentQuoteSource(
                "etf_nav",
                config.etf.nav_url,
                headers={
                    **browser_headers,
                    "Accept": "text/html,application/xhtml+xml",
                    "Accept-Language": "en-US,en;q=0.9",
                },
                timeout=config.timeout,
            ),
            futures=JsonQuoteSource(
                "futures",
                config.futures.url,
                timeout=config.timeout,
            ),
        )
