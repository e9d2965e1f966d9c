"""Protocol interfaces for the Morpho monitor."""
from .market_source import MarketSource
from .quote_source import QuoteSource

__all__ = ["MarketSource", "QuoteSource"]
