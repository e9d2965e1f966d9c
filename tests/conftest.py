"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any

import pytest

from morpho_monitor.config import (
    AppConfig,
    MarketStatusConfig,
    MorphoConfig,
    RankingConfig,
)
from morpho_monitor.lending.normalizer import normalize
from morpho_monitor.models import FilterConfig, Market

USDC_DECIMALS = 6


# ---------------------------------------------------------------------------
# Raw API market builder
# ---------------------------------------------------------------------------


def raw_market(
    key: str = "0xmarket",
    loan: str = "USDC",
    collateral: str | None = "WBTC",
    borrow_apy: float = 0.05,
    rewards: list[float] | None = None,
    supply: float = 5_000_000,
    borrow: float = 1_000_000,
    decimals: int = USDC_DECIMALS,
    chain_id: int = 1,
    utilization: float = 0.2,
) -> dict[str, Any]:
    """Build one market as returned by the Morpho GraphQL API.

    ``supply`` and ``borrow`` are given in whole loan-asset units and
    scaled up to raw fixed-point strings.
    """
    scale = 10**decimals
    return {
        "uniqueKey": key,
        "loanAsset": {"address": f"0x{loan.lower()}", "symbol": loan, "decimals": decimals},
        "collateralAsset": (
            {"address": f"0x{collateral.lower()}", "symbol": collateral, "decimals": 8}
            if collateral is not None
            else None
        ),
        "state": {
            "borrowApy": borrow_apy,
            "utilization": utilization,
            "supplyAssets": str(int(supply * scale)),
            "borrowAssets": str(int(borrow * scale)),
            "rewards": [
                {"borrowApr": apr, "asset": {"symbol": "MORPHO"}}
                for apr in (rewards or [])
            ],
        },
        "morphoBlue": {"chain": {"id": chain_id}},
    }


def market(**kwargs: Any) -> Market:
    return normalize(raw_market(**kwargs))


@pytest.fixture()
def make_market():
    return market


@pytest.fixture()
def make_raw_market():
    return raw_market


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def default_filter() -> FilterConfig:
    return FilterConfig()


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        morpho=MorphoConfig(
            api_url="https://api.example.com/graphql",
            timeout=5,
            page_size=2,
            max_markets=10,
        ),
        ranking=RankingConfig(min_liquidity_usd=200_000.0),
        market_status=MarketStatusConfig(refresh_interval_seconds=1, timeout=5),
    )


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    morpho:
      api_url: "https://api.example.com/graphql"
      timeout: 10
      page_size: 500
      max_markets: 2000
    ranking:
      min_liquidity_usd: 150000
      stable_symbols: [USDC, USDT, pyusd]
      strict_borrow_match: false
      collateral_families:
        BTC: [BTC, WBTC]
        ETH: [ETH, WETH]
      excluded_prefixes:
        ETH: ["PT-"]
    market_status:
      refresh_interval_seconds: 60
      timeout: 8
      timezone: America/New_York
      open_time: "09:30"
      close_time: "16:00"
      etf:
        symbol: IBIT
        quote_url: "https://quotes.example.com/ibit"
        nav_url: "https://nav.example.com/ibit"
      futures:
        exchange: coinbase
        symbol: BTC-PERP
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Market-status payloads
# ---------------------------------------------------------------------------

NAV_HTML = textwrap.dedent("""\
    <div class="header-nav">
      <span class="header-nav-label navAmount">NAV as of Dec 12, 2025</span>
      <span class="header-nav-data">
        $51.13
      </span>
    </div>
""")

NAV_HTML_NO_LABEL = '<div><span class="header-nav-data">$1,051.13</span></div>'


@pytest.fixture()
def nav_html() -> str:
    return NAV_HTML


@pytest.fixture()
def etf_quote_payload() -> dict:
    return {
        "data": {
            "symbol": "IBIT",
            "primaryData": {
                "lastSalePrice": "$51.20",
                "netChange": "-0.90",
                "percentageChange": "-1.73%",
            },
        }
    }


@pytest.fixture()
def derivatives_payload() -> list[dict]:
    return [
        {"market": "Binance (Futures)", "symbol": "BTCUSDT", "price": "97010.1"},
        {"market": "Coinbase International Exchange (Derivatives)", "symbol": "ETH-PERP", "price": "3501.2"},
        {"market": "Coinbase International Exchange (Derivatives)", "symbol": "BTC-PERP", "price": "97123.45"},
    ]


@pytest.fixture()
def crypto_payload() -> list[dict]:
    return [
        {"id": "bitcoin", "symbol": "btc", "name": "Bitcoin", "current_price": 97000, "price_change_percentage_24h": 1.2},
        {"id": "ethereum", "symbol": "eth", "name": "Ethereum", "current_price": 3500.5, "price_change_percentage_24h": -0.5},
        {"id": "tether", "symbol": "usdt", "name": "Tether", "current_price": 1.0, "price_change_percentage_24h": 0.01},
        {"id": "solana", "symbol": "sol", "name": "Solana", "current_price": 210.3, "price_change_percentage_24h": 3.4},
    ]
