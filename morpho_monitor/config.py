"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import time
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv

from .models import (
    DEFAULT_EXCLUDED_PREFIXES,
    DEFAULT_FAMILY_SYMBOLS,
    DEFAULT_STABLE_SYMBOLS,
    FilterConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MorphoConfig:
    api_url: str = "https://blue-api.morpho.org/graphql"
    timeout: int = 30
    page_size: int = 1000
    max_markets: int = 5000


@dataclass(frozen=True)
class RankingConfig:
    min_liquidity_usd: float = 200_000.0
    stable_symbols: tuple[str, ...] = DEFAULT_STABLE_SYMBOLS
    strict_borrow_match: bool = True
    collateral_families: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_FAMILY_SYMBOLS)
    )
    excluded_prefixes: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_EXCLUDED_PREFIXES)
    )

    def filter_config(
        self,
        borrow_asset: str = "ANY",
        collateral_family: str = "ALL",
        search_query: str = "",
    ) -> FilterConfig:
        """Build a FilterConfig for a user selection using these lists."""
        return FilterConfig(
            borrow_asset=borrow_asset,
            collateral_family=collateral_family,
            search_query=search_query,
            min_liquidity_usd=self.min_liquidity_usd,
            stable_symbols=self.stable_symbols,
            strict_borrow_match=self.strict_borrow_match,
            collateral_families=dict(self.collateral_families),
            excluded_prefixes=dict(self.excluded_prefixes),
        )


@dataclass(frozen=True)
class CryptoListConfig:
    url: str = "https://api.coingecko.com/api/v3/coins/markets"
    vs_currency: str = "usd"
    per_page: int = 20


@dataclass(frozen=True)
class EtfConfig:
    symbol: str = "IBIT"
    quote_url: str = "https://api.nasdaq.com/api/quote/IBIT/info?assetclass=etf"
    nav_url: str = (
        "https://www.blackrock.com/us/individual/products/333011/"
        "ishares-bitcoin-trust"
    )


@dataclass(frozen=True)
class FuturesConfig:
    url: str = "https://api.coingecko.com/api/v3/derivatives"
    exchange: str = "coinbase"
    symbol: str = "BTC-PERP"


@dataclass(frozen=True)
class MarketStatusConfig:
    refresh_interval_seconds: int = 30
    timeout: int = 15
    timezone: str = "America/New_York"
    open_time: time = time(9, 30)
    close_time: time = time(16, 0)
    user_agent: str = DEFAULT_USER_AGENT
    crypto: CryptoListConfig = field(default_factory=CryptoListConfig)
    etf: EtfConfig = field(default_factory=EtfConfig)
    futures: FuturesConfig = field(default_factory=FuturesConfig)


@dataclass(frozen=True)
class AppConfig:
    morpho: MorphoConfig = field(default_factory=MorphoConfig)
    ranking: RankingConfig = field(default_factory=RankingConfig)
    market_status: MarketStatusConfig = field(default_factory=MarketStatusConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _parse_time(value: Any, default: time) -> time:
    """Parse ``HH:MM`` strings; YAML may also hand us minutes as an int."""
    if value is None:
        return default
    if isinstance(value, time):
        return value
    if isinstance(value, int):
        # PyYAML 1.1 reads unquoted 09:30 as sexagesimal minutes
        return time(value // 60, value % 60)
    try:
        hour, minute = str(value).split(":")
        return time(int(hour), int(minute))
    except ValueError as e:
        raise ValueError(f"Invalid time of day '{value}' (expected HH:MM)") from e


def _symbol_tuple(raw: Any) -> tuple[str, ...]:
    return tuple(str(s).upper() for s in (raw or []))


def _build_morpho(raw: dict[str, Any]) -> MorphoConfig:
    return MorphoConfig(
        api_url=raw.get("api_url") or MorphoConfig.api_url,
        timeout=int(raw.get("timeout", 30)),
        page_size=int(raw.get("page_size", 1000)),
        max_markets=int(raw.get("max_markets", 5000)),
    )


def _build_ranking(raw: dict[str, Any]) -> RankingConfig:
    families_raw = raw.get("collateral_families")
    prefixes_raw = raw.get("excluded_prefixes")
    return RankingConfig(
        min_liquidity_usd=float(raw.get("min_liquidity_usd", 200_000.0)),
        stable_symbols=_symbol_tuple(
            raw.get("stable_symbols", list(DEFAULT_STABLE_SYMBOLS))
        ),
        strict_borrow_match=bool(raw.get("strict_borrow_match", True)),
        collateral_families=(
            {name.upper(): _symbol_tuple(syms) for name, syms in families_raw.items()}
            if families_raw is not None
            else dict(DEFAULT_FAMILY_SYMBOLS)
        ),
        excluded_prefixes=(
            {name.upper(): _symbol_tuple(p) for name, p in prefixes_raw.items()}
            if prefixes_raw is not None
            else dict(DEFAULT_EXCLUDED_PREFIXES)
        ),
    )


def _build_market_status(raw: dict[str, Any]) -> MarketStatusConfig:
    crypto = raw.get("crypto", {})
    etf = raw.get("etf", {})
    futures = raw.get("futures", {})
    return MarketStatusConfig(
        refresh_interval_seconds=int(raw.get("refresh_interval_seconds", 30)),
        timeout=int(raw.get("timeout", 15)),
        timezone=raw.get("timezone", "America/New_York"),
        open_time=_parse_time(raw.get("open_time"), time(9, 30)),
        close_time=_parse_time(raw.get("close_time"), time(16, 0)),
        user_agent=raw.get("user_agent") or DEFAULT_USER_AGENT,
        crypto=CryptoListConfig(
            url=crypto.get("url", CryptoListConfig.url),
            vs_currency=crypto.get("vs_currency", "usd"),
            per_page=int(crypto.get("per_page", 20)),
        ),
        etf=EtfConfig(
            symbol=etf.get("symbol", "IBIT"),
            quote_url=etf.get("quote_url", EtfConfig.quote_url),
            nav_url=etf.get("nav_url", EtfConfig.nav_url),
        ),
        futures=FuturesConfig(
            url=futures.get("url", FuturesConfig.url),
            exchange=futures.get("exchange", "coinbase"),
            symbol=futures.get("symbol", "BTC-PERP"),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (two levels up from this file).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        morpho=_build_morpho(raw.get("morpho", {})),
        ranking=_build_ranking(raw.get("ranking", {})),
        market_status=_build_market_status(raw.get("market_status", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    morpho = cfg.morpho
    if not morpho.api_url:
        raise ValueError("morpho.api_url must be set")
    if morpho.page_size <= 0:
        raise ValueError("morpho.page_size must be positive")
    if morpho.max_markets < morpho.page_size:
        raise ValueError("morpho.max_markets must be at least morpho.page_size")
    if morpho.timeout <= 0:
        raise ValueError("morpho.timeout must be positive")

    ranking = cfg.ranking
    if ranking.min_liquidity_usd < 0:
        raise ValueError("ranking.min_liquidity_usd cannot be negative")
    if not ranking.stable_symbols:
        raise ValueError("ranking.stable_symbols must list at least one symbol")
    for family in ("BTC", "ETH"):
        if not ranking.collateral_families.get(family):
            raise ValueError(f"ranking.collateral_families has no '{family}' family")

    status = cfg.market_status
    if status.refresh_interval_seconds <= 0:
        raise ValueError("market_status.refresh_interval_seconds must be positive")
    if status.timeout <= 0:
        raise ValueError("market_status.timeout must be positive")
    if status.open_time >= status.close_time:
        raise ValueError("market_status.open_time must be before close_time")
    try:
        ZoneInfo(status.timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValueError(f"Unknown timezone '{status.timezone}'") from e
