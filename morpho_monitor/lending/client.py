"""Morpho Blue GraphQL client."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import MorphoConfig
from ..errors import UpstreamError

logger = logging.getLogger(__name__)

GET_MARKETS_QUERY = """
query GetMarkets($first: Int, $skip: Int) {
  markets(first: $first, skip: $skip) {
    items {
      uniqueKey
      loanAsset {
        address
        symbol
        decimals
      }
      collateralAsset {
        address
        symbol
        decimals
      }
      state {
        borrowApy
        utilization
        supplyAssets
        borrowAssets
        rewards {
          borrowApr
          asset {
            symbol
          }
        }
      }
      morphoBlue {
        chain {
          id
        }
      }
    }
  }
}
"""


class MorphoClient:
    """Read lending markets from the Morpho Blue API."""

    def __init__(self, config: MorphoConfig) -> None:
        self.api_url = config.api_url
        self.timeout = config.timeout

    async def graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Run a GraphQL query and return its ``data`` object."""
        payload = {"query": query, "variables": variables}

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    self.api_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise UpstreamError(
                            f"Morpho API returned HTTP {response.status}"
                        )
                    result = await response.json()
        except UpstreamError:
            raise
        except Exception as e:
            raise UpstreamError(f"Morpho API request failed: {e}") from e

        if not isinstance(result, dict):
            raise UpstreamError("Morpho API returned a non-object payload")
        if result.get("errors"):
            raise UpstreamError(f"GraphQL Error: {result['errors']}")

        data = result.get("data")
        if not isinstance(data, dict):
            raise UpstreamError("Morpho API response has no data")
        return data

    async def request_markets(self, first: int, skip: int) -> list[dict[str, Any]]:
        """Fetch one page of markets."""
        data = await self.graphql(GET_MARKETS_QUERY, {"first": first, "skip": skip})
        items = (data.get("markets") or {}).get("items")
        if not isinstance(items, list):
            raise UpstreamError("Morpho API response has no market items")
        return items
