"""Market source protocol — paginated lending market listing."""
from typing import Any, Protocol


class MarketSource(Protocol):
    """Abstract interface for a paginated lending market listing."""

    async def request_markets(self, first: int, skip: int) -> list[dict[str, Any]]: ...
