"""Quote source protocol — one external market-status feed."""
from typing import Any, Protocol


class QuoteSource(Protocol):
    """Abstract interface for a single quote feed.

    ``fetch`` returns the decoded JSON payload or the raw document text and
    raises on any failure; callers decide how failures degrade.
    """

    @property
    def name(self) -> str: ...

    async def fetch(self) -> Any: ...
