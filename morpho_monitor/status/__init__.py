"""Market-status snapshot: ETF, NAV, futures and crypto spot feeds."""
from .aggregator import MarketStatusAggregator
from .sources import DocumentQuoteSource, JsonQuoteSource, StatusSources

__all__ = [
    "DocumentQuoteSource",
    "JsonQuoteSource",
    "MarketStatusAggregator",
    "StatusSources",
]
