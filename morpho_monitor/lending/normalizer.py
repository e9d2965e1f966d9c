"""Pure conversion of raw Morpho API markets — no I/O.

Raw amounts arrive as decimal-scaled integer strings. Every coercion here
returns ``None`` instead of raising or producing ``NaN``, and the derived
quantities treat ``None`` as zero liquidity.
"""
from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from typing import Any

from ..models import Market, MarketReward, MarketState, Token

DEFAULT_DECIMALS = 18
# ERC-20 decimals is a uint8
MAX_DECIMALS = 255


def parse_amount(value: Any) -> Decimal | None:
    """Parse a raw fixed-point amount.

    Examples:
        "1500000" → Decimal("1500000")
        "abc" → None
        None → None
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def parse_float(value: Any) -> float | None:
    """Parse a rate or ratio; non-numeric and non-finite values give None."""
    amount = parse_amount(value)
    if amount is None:
        return None
    number = float(amount)
    return number if math.isfinite(number) else None


def parse_int(value: Any) -> int | None:
    amount = parse_amount(value)
    if amount is None or amount != amount.to_integral_value():
        return None
    return int(amount)


def _as_dict(raw: Any) -> dict[str, Any]:
    return raw if isinstance(raw, dict) else {}


def _parse_token(raw: Any) -> Token | None:
    if not isinstance(raw, dict):
        return None
    decimals = parse_int(raw.get("decimals"))
    if decimals is None or not 0 <= decimals <= MAX_DECIMALS:
        decimals = DEFAULT_DECIMALS
    return Token(
        address=str(raw.get("address") or ""),
        symbol=str(raw.get("symbol") or ""),
        decimals=decimals,
    )


def _parse_rewards(raw: Any) -> tuple[MarketReward, ...]:
    rewards: list[MarketReward] = []
    if not isinstance(raw, list):
        return ()
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        apr = parse_float(entry.get("borrowApr"))
        asset = _as_dict(entry.get("asset"))
        rewards.append(
            MarketReward(
                borrow_apr=apr if apr is not None else 0.0,
                asset_symbol=str(asset.get("symbol") or ""),
            )
        )
    return tuple(rewards)


def _parse_state(raw: Any) -> MarketState | None:
    if not isinstance(raw, dict):
        return None
    borrow_apy = parse_float(raw.get("borrowApy"))
    utilization = parse_float(raw.get("utilization"))
    return MarketState(
        borrow_apy=borrow_apy if borrow_apy is not None else 0.0,
        utilization=utilization if utilization is not None else 0.0,
        supply_assets=parse_amount(raw.get("supplyAssets")),
        borrow_assets=parse_amount(raw.get("borrowAssets")),
        rewards=_parse_rewards(raw.get("rewards")),
    )


def normalize(raw: dict[str, Any]) -> Market:
    """Convert one raw API market into a Market.

    Raises:
        TypeError: if ``raw`` is not an object. Nested fields of the wrong
            type are treated as missing.
    """
    if not isinstance(raw, dict):
        raise TypeError(f"Market record is not an object: {raw!r}")
    chain = _as_dict(_as_dict(raw.get("morphoBlue")).get("chain"))
    chain_id = parse_int(chain.get("id"))
    loan_asset = _parse_token(raw.get("loanAsset")) or Token(
        address="", symbol="", decimals=DEFAULT_DECIMALS
    )
    return Market(
        unique_key=str(raw.get("uniqueKey") or ""),
        loan_asset=loan_asset,
        collateral_asset=_parse_token(raw.get("collateralAsset")),
        state=_parse_state(raw.get("state")),
        chain_id=chain_id if chain_id is not None else 0,
    )


# ---------------------------------------------------------------------------
# Derived quantities
# ---------------------------------------------------------------------------


def total_reward_apr(market: Market) -> float:
    if market.state is None:
        return 0.0
    return sum(r.borrow_apr for r in market.state.rewards)


def net_apy(market: Market) -> float:
    """Borrow APY minus reward APR; negative when incentives exceed the rate."""
    if market.state is None:
        return 0.0
    return market.state.borrow_apy - total_reward_apr(market)


def _to_units(raw_amount: Decimal, decimals: int) -> float:
    """Scale a raw amount to token units; out-of-range results give 0.0."""
    try:
        units = float(raw_amount / Decimal(10) ** decimals)
    except ArithmeticError:
        return 0.0
    return units if math.isfinite(units) else 0.0


def liquidity(market: Market) -> float:
    """Unborrowed capacity in loan-asset units.

    liquidity = supply / 10^decimals - borrow / 10^decimals
    """
    state = market.state
    if state is None or state.supply_assets is None or state.borrow_assets is None:
        return 0.0
    try:
        available = state.supply_assets - state.borrow_assets
    except ArithmeticError:
        return 0.0
    return _to_units(available, market.loan_asset.decimals)


def supply(market: Market) -> float:
    """Total supplied amount in loan-asset units."""
    state = market.state
    if state is None or state.supply_assets is None:
        return 0.0
    return _to_units(state.supply_assets, market.loan_asset.decimals)
