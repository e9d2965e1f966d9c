"""Market filter and ranking pipeline — pure functions, no I/O.

Stages run in a fixed order, each narrowing the working set:

    collateral present → borrow asset → min liquidity →
    collateral family → search → stable sort by net APY

No stage mutates its input; ``rank`` always returns a new list.
"""
from __future__ import annotations

from collections.abc import Sequence

from ..models import NO_COLLATERAL_SYMBOL, FilterConfig, Market
from .normalizer import liquidity, net_apy


def has_collateral(market: Market) -> bool:
    collateral = market.collateral_asset
    return collateral is not None and collateral.symbol != NO_COLLATERAL_SYMBOL


def filter_collateral_present(markets: Sequence[Market]) -> list[Market]:
    """Drop idle markets and the ``N/A`` collateral sentinel."""
    return [m for m in markets if has_collateral(m)]


def matches_borrow_asset(market: Market, config: FilterConfig) -> bool:
    symbol = market.loan_asset.symbol.upper()
    if config.borrow_asset == "ANY":
        return any(stable.upper() in symbol for stable in config.stable_symbols)
    wanted = config.borrow_asset.upper()
    if config.strict_borrow_match:
        return symbol == wanted
    return wanted in symbol


def filter_borrow_asset(
    markets: Sequence[Market], config: FilterConfig
) -> list[Market]:
    return [m for m in markets if matches_borrow_asset(m, config)]


def filter_min_liquidity(
    markets: Sequence[Market], min_liquidity_usd: float
) -> list[Market]:
    """Keep markets strictly above the threshold.

    Loan assets are stablecoins here, so one unit is treated as $1.
    """
    return [
        m for m in markets if m.state is not None and liquidity(m) > min_liquidity_usd
    ]


def in_collateral_family(market: Market, config: FilterConfig) -> bool:
    if market.collateral_asset is None:
        return False
    family = config.collateral_family
    symbol = market.collateral_asset.symbol.upper()

    prefixes = config.excluded_prefixes.get(family, ())
    if any(symbol.startswith(prefix.upper()) for prefix in prefixes):
        return False

    # substring match picks up wrapped/staked variants (wstETH, cbBTC)
    members = config.collateral_families.get(family, ())
    return any(symbol == token.upper() or token.upper() in symbol for token in members)


def filter_collateral_family(
    markets: Sequence[Market], config: FilterConfig
) -> list[Market]:
    if config.collateral_family == "ALL":
        return list(markets)
    return [m for m in markets if in_collateral_family(m, config)]


def matches_search(market: Market, query: str) -> bool:
    needle = query.lower()
    if needle in market.loan_asset.symbol.lower():
        return True
    collateral = market.collateral_asset
    return collateral is not None and needle in collateral.symbol.lower()


def filter_search(markets: Sequence[Market], query: str) -> list[Market]:
    query = query.strip()
    if not query:
        return list(markets)
    return [m for m in markets if matches_search(m, query)]


def sort_by_net_apy(markets: Sequence[Market]) -> list[Market]:
    """Lowest net borrowing cost first; ``sorted`` keeps ties in input order."""
    return sorted(markets, key=net_apy)


def rank(markets: Sequence[Market], config: FilterConfig) -> list[Market]:
    """Filter ``markets`` by ``config`` and order them by net APY."""
    result = filter_collateral_present(markets)
    result = filter_borrow_asset(result, config)
    result = filter_min_liquidity(result, config.min_liquidity_usd)
    result = filter_collateral_family(result, config)
    result = filter_search(result, config.search_query)
    return sort_by_net_apy(result)
