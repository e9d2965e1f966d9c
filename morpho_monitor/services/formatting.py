"""Text rendering for ranked markets and market-status snapshots."""
from __future__ import annotations

from collections.abc import Sequence

from ..lending.normalizer import liquidity, net_apy, total_reward_apr
from ..models import CryptoQuote, Market, MarketStatusSnapshot

CHAIN_NAMES: dict[int, str] = {
    1: "Ethereum",
    8453: "Base",
    10: "Optimism",
    42161: "Arbitrum",
    56: "BSC",
    137: "Polygon",
    250: "Fantom",
    43114: "Avalanche",
    100: "Gnosis",
    1101: "Polygon zkEVM",
    59144: "Linea",
    534352: "Scroll",
    5000: "Mantle",
    11155111: "Sepolia",
    130: "Unichain",
    747474: "Katana",
    999: "Hyperliquid",
}

STABLECOIN_SYMBOLS = ("usdt", "usdc", "dai", "fdusd", "tusd", "usde")

NOT_AVAILABLE = "N/A"


def chain_name(chain_id: int) -> str:
    return CHAIN_NAMES.get(chain_id, f"#{chain_id}")


def format_money(value: float) -> str:
    """Compact dollar amount, e.g. 1_250_000 → '$1.25M'."""
    if value >= 1e9:
        return f"${value / 1e9:.2f}B"
    if value >= 1e6:
        return f"${value / 1e6:.2f}M"
    if value >= 1e3:
        return f"${value / 1e3:.0f}K"
    return f"${value:.2f}"


def format_percent(value: float) -> str:
    """Ratio as a percentage, e.g. 0.0512 → '5.12%'."""
    return f"{value * 100:.2f}%"


def format_price(value: float | None) -> str:
    return f"${value:,.2f}" if value is not None else NOT_AVAILABLE


def format_change(value: float | None, suffix: str = "") -> str:
    if value is None:
        return NOT_AVAILABLE
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.2f}{suffix}"


def short_key(unique_key: str) -> str:
    if len(unique_key) > 12:
        return f"{unique_key[:6]}...{unique_key[-4:]}"
    return unique_key


def utilization_band(utilization: float) -> str:
    if utilization > 0.9:
        return "high"
    if utilization > 0.75:
        return "elevated"
    return "normal"


def volatile_crypto(
    crypto: Sequence[CryptoQuote], stablecoins: Sequence[str] = STABLECOIN_SYMBOLS
) -> list[CryptoQuote]:
    """Drop BTC and stablecoins, keeping market-cap order."""
    excluded = {s.lower() for s in stablecoins} | {"btc"}
    return [c for c in crypto if c.symbol.lower() not in excluded]


def render_market_table(markets: Sequence[Market]) -> str:
    """Fixed-width table of ranked markets."""
    header = (
        f"{'#':>3}  {'Market Pair':<24} {'Chain':<13} {'Liquidity':>10} "
        f"{'Util.':>8}  {'Net APY':>8}"
    )
    lines = [header, "-" * len(header)]
    for i, market in enumerate(markets, start=1):
        util = market.state.utilization if market.state else 0.0
        rewards = " (inc. rewards)" if total_reward_apr(market) > 0 else ""
        flag = " !" if utilization_band(util) == "high" else ""
        lines.append(
            f"{i:>3}  {market.pair:<24} {chain_name(market.chain_id):<13} "
            f"{format_money(liquidity(market)):>10} "
            f"{format_percent(util):>8}{flag:<2}{format_percent(net_apy(market)):>8}"
            f"{rewards}  {short_key(market.unique_key)}"
        )
    if not markets:
        lines.append("No markets match the current filters.")
    return "\n".join(lines)


def render_status(
    snapshot: MarketStatusSnapshot, top: int = 3, alts: int = 8
) -> str:
    """Multi-line market-status summary; missing fields print as N/A.

    The ``top`` largest volatile coins get a line each, the next ``alts``
    share one compact line.
    """
    nav_date = f" (as of {snapshot.ibit_nav_date})" if snapshot.ibit_nav_date else ""
    lines = [
        f"Market Status (NYSE): {'OPEN' if snapshot.is_open else 'CLOSED'}",
        f"IBIT: {format_price(snapshot.ibit_price)}  "
        f"{format_change(snapshot.ibit_change)} today",
        f"IBIT NAV: {format_price(snapshot.ibit_nav)}{nav_date}",
        f"Coinbase BTC-PERP: {format_price(snapshot.coinbase_btc_price)}",
    ]
    volatile = volatile_crypto(snapshot.crypto)
    movers = volatile[:top]
    if movers:
        lines.append("")
        for coin in movers:
            lines.append(
                f"{coin.name:<12} {format_price(coin.current_price):>14}  "
                f"{format_change(coin.price_change_percentage_24h, '%')}"
            )
    alt_coins = volatile[top : top + alts]
    if alt_coins:
        lines.append(
            "Alts: "
            + " | ".join(
                f"{coin.symbol.upper()} "
                f"{format_change(coin.price_change_percentage_24h, '%')}"
                for coin in alt_coins
            )
        )
    return "\n".join(lines)
