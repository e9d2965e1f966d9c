"""Pure parsing functions for market-status feeds — no I/O."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time
from typing import Any
from zoneinfo import ZoneInfo

from ..models import CryptoQuote


@dataclass(frozen=True)
class EtfQuote:
    price: float | None
    change: float | None


@dataclass(frozen=True)
class NavReading:
    nav: float | None
    as_of: str | None


def parse_price_string(value: Any) -> float | None:
    """Parse a display price such as ``"$51,234.20"`` or ``"-0.90"``.

    Malformed values give None rather than raising.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = str(value).replace("$", "").replace(",", "").strip()
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def parse_etf_quote(payload: Any) -> EtfQuote:
    """Extract last sale price and net change from a Nasdaq quote payload.

    Shape: ``{"data": {"primaryData": {"lastSalePrice": "$51.20",
    "netChange": "-0.90"}}}``
    """
    if not isinstance(payload, dict):
        raise ValueError("ETF quote payload is not an object")
    data = payload.get("data")
    primary = data.get("primaryData") if isinstance(data, dict) else None
    if not isinstance(primary, dict):
        primary = {}
    return EtfQuote(
        price=parse_price_string(primary.get("lastSalePrice")),
        change=parse_price_string(primary.get("netChange")),
    )


# "NAV as of Dec 12, 2025"
_NAV_DATE_RE = re.compile(r"NAV as of\s+([A-Za-z]{3}\s+\d{1,2},\s+\d{4})", re.I)
_NAV_PRICE_RE = re.compile(
    r'NAV as of[^<]*</span>\s*<span class="header-nav-data">\s*\$([\d,.]+)', re.I
)
_NAV_PRICE_FALLBACK_RE = re.compile(r'class="header-nav-data">\s*\$([\d,.]+)', re.I)


def parse_nav(html: str) -> NavReading:
    """Scrape the fund NAV and its date from the product page.

    Best-effort: tries the pattern anchored on the "NAV as of" label first,
    then the bare ``header-nav-data`` span. Returns None fields when the
    page layout no longer matches.
    """
    date_match = _NAV_DATE_RE.search(html)
    as_of = date_match.group(1) if date_match else None

    price_match = _NAV_PRICE_RE.search(html) or _NAV_PRICE_FALLBACK_RE.search(html)
    nav = parse_price_string(price_match.group(1)) if price_match else None

    return NavReading(nav=nav, as_of=as_of)


def select_futures_price(
    derivatives: Any, exchange: str = "coinbase", symbol: str = "BTC-PERP"
) -> float | None:
    """Pick the price of ``symbol`` on ``exchange`` from a derivatives list.

    The exchange is matched as a case-insensitive substring of ``market``;
    the instrument symbol must match exactly.
    """
    if not isinstance(derivatives, list):
        raise ValueError("Derivatives payload is not a list")
    exchange = exchange.lower()
    for entry in derivatives:
        if not isinstance(entry, dict):
            continue
        market = str(entry.get("market") or "").lower()
        if exchange in market and entry.get("symbol") == symbol:
            return parse_price_string(entry.get("price"))
    return None


def parse_crypto_list(payload: Any) -> tuple[CryptoQuote, ...]:
    """Convert a coin market list into CryptoQuotes, keeping upstream order."""
    if not isinstance(payload, list):
        raise ValueError("Crypto market payload is not a list")
    quotes: list[CryptoQuote] = []
    for entry in payload:
        if not isinstance(entry, dict) or not entry.get("symbol"):
            continue
        quotes.append(
            CryptoQuote(
                id=str(entry.get("id") or ""),
                symbol=str(entry["symbol"]),
                name=str(entry.get("name") or ""),
                current_price=parse_price_string(entry.get("current_price")),
                price_change_percentage_24h=parse_price_string(
                    entry.get("price_change_percentage_24h")
                ),
            )
        )
    return tuple(quotes)


def is_market_open(
    now: datetime,
    timezone: str = "America/New_York",
    open_time: time = time(9, 30),
    close_time: time = time(16, 0),
) -> bool:
    """Regular-session check: Mon-Fri, open <= local time < close.

    Exchange holidays are not considered. Naive datetimes are taken as UTC.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=ZoneInfo("UTC"))
    local = now.astimezone(ZoneInfo(timezone))
    if local.weekday() >= 5:
        return False
    return open_time <= local.time() < close_time
