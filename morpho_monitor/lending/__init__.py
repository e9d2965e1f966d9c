"""Lending market pipeline: fetch, normalize, filter and rank."""
from .client import MorphoClient
from .fetcher import MarketFetcher, fetch_all_markets
from .normalizer import liquidity, net_apy, normalize
from .ranking import rank

__all__ = [
    "MarketFetcher",
    "MorphoClient",
    "fetch_all_markets",
    "liquidity",
    "net_apy",
    "normalize",
    "rank",
]
