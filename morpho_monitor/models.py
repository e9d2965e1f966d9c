"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

BORROW_ASSETS = ("ANY", "USDC", "USDT")
COLLATERAL_FAMILIES = ("ALL", "BTC", "ETH")

DEFAULT_STABLE_SYMBOLS: tuple[str, ...] = ("USDC", "USDT")
DEFAULT_FAMILY_SYMBOLS: dict[str, tuple[str, ...]] = {
    "BTC": ("BTC", "CBTC", "WBTC", "CBBTC", "TACBTC"),
    "ETH": ("ETH", "WETH"),
}
# Pendle PT tokens, GMX GM pools and GLV vaults
DEFAULT_EXCLUDED_PREFIXES: dict[str, tuple[str, ...]] = {
    "ETH": ("PT-", "GM:", "GLV"),
}

NO_COLLATERAL_SYMBOL = "N/A"


def _amount_str(amount: Decimal | None) -> str | None:
    return str(amount) if amount is not None else None


@dataclass(frozen=True)
class Token:
    """ERC-20 token as quoted by the lending API."""

    address: str
    symbol: str
    decimals: int

    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address, "symbol": self.symbol, "decimals": self.decimals}


@dataclass(frozen=True)
class MarketReward:
    """Incentive that offsets the cost of borrowing."""

    borrow_apr: float
    asset_symbol: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"borrowApr": self.borrow_apr, "asset": {"symbol": self.asset_symbol}}


@dataclass(frozen=True)
class MarketState:
    """Point-in-time market state.

    ``supply_assets`` and ``borrow_assets`` are raw fixed-point integers
    scaled by the loan asset's decimals, or ``None`` when the upstream
    value could not be parsed.
    """

    borrow_apy: float = 0.0
    utilization: float = 0.0
    supply_assets: Decimal | None = None
    borrow_assets: Decimal | None = None
    rewards: tuple[MarketReward, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """API-shaped dict; raw amounts stay exact integer strings."""
        return {
            "borrowApy": self.borrow_apy,
            "utilization": self.utilization,
            "supplyAssets": _amount_str(self.supply_assets),
            "borrowAssets": _amount_str(self.borrow_assets),
            "rewards": [r.to_dict() for r in self.rewards],
        }


@dataclass(frozen=True)
class Market:
    """Single Morpho Blue lending market."""

    unique_key: str
    loan_asset: Token
    collateral_asset: Token | None
    state: MarketState | None
    chain_id: int

    @property
    def pair(self) -> str:
        collateral = (
            self.collateral_asset.symbol
            if self.collateral_asset
            else NO_COLLATERAL_SYMBOL
        )
        return f"{self.loan_asset.symbol}/{collateral}"

    def to_dict(self) -> dict[str, Any]:
        """Same shape as a ``markets.items`` entry of the Morpho API."""
        return {
            "uniqueKey": self.unique_key,
            "loanAsset": self.loan_asset.to_dict(),
            "collateralAsset": (
                self.collateral_asset.to_dict() if self.collateral_asset else None
            ),
            "state": self.state.to_dict() if self.state else None,
            "morphoBlue": {"chain": {"id": self.chain_id}},
        }


@dataclass(frozen=True)
class FilterConfig:
    """User selection plus the curated symbol lists that drive ranking."""

    borrow_asset: str = "ANY"
    collateral_family: str = "ALL"
    search_query: str = ""
    min_liquidity_usd: float = 200_000.0
    stable_symbols: tuple[str, ...] = DEFAULT_STABLE_SYMBOLS
    strict_borrow_match: bool = True
    collateral_families: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_FAMILY_SYMBOLS)
    )
    excluded_prefixes: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_EXCLUDED_PREFIXES)
    )

    def __post_init__(self) -> None:
        if self.borrow_asset not in BORROW_ASSETS:
            raise ValueError(
                f"Unknown borrow asset '{self.borrow_asset}' "
                f"(expected one of {', '.join(BORROW_ASSETS)})"
            )
        if self.collateral_family not in COLLATERAL_FAMILIES:
            raise ValueError(
                f"Unknown collateral family '{self.collateral_family}' "
                f"(expected one of {', '.join(COLLATERAL_FAMILIES)})"
            )


@dataclass(frozen=True)
class CryptoQuote:
    """Spot price entry from the crypto market list."""

    id: str
    symbol: str
    name: str
    current_price: float | None
    price_change_percentage_24h: float | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "name": self.name,
            "current_price": self.current_price,
            "price_change_percentage_24h": self.price_change_percentage_24h,
        }


@dataclass(frozen=True)
class MarketStatusSnapshot:
    """Best-effort composite of cross-market pricing signals.

    Each numeric field is independently nullable: a failed source only
    blanks its own fields.
    """

    is_open: bool
    ibit_price: float | None = None
    ibit_change: float | None = None
    ibit_nav: float | None = None
    ibit_nav_date: str | None = None
    coinbase_btc_price: float | None = None
    crypto: tuple[CryptoQuote, ...] = ()
    fetched_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "isOpen": self.is_open,
            "ibitPrice": self.ibit_price,
            "ibitChange": self.ibit_change,
            "ibitNav": self.ibit_nav,
            "ibitNavDate": self.ibit_nav_date,
            "coinbaseBtcPrice": self.coinbase_btc_price,
            "crypto": [c.to_dict() for c in self.crypto],
            "fetchedAt": self.fetched_at.isoformat() if self.fetched_at else None,
        }
