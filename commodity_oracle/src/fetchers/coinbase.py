"""Coinbase Exchange fetcher for commodity-backed tokens.

Endpoint: https://api.exchange.coinbase.com/products/{TOKEN}-{QUOTE}/ticker
Rate Limit: High (no key required)
Commodities: gold via PAX Gold (1 PAXG = 1 troy ounce)
"""

import logging

from .base import BaseFetcher, FetcherError, register_fetcher

logger = logging.getLogger(__name__)

# Commodity symbol -> token tracking one unit of it.
COMMODITY_TOKENS: dict[str, str] = {
    "xau": "PAXG",
}


@register_fetcher
class CoinbaseFetcher(BaseFetcher):
    """Fetcher for Coinbase Exchange API.

    Prices a commodity through the ticker of a token backed one-to-one by
    it. No API key required for the public ticker endpoint.
    """

    name = "coinbase"
    BASE_URL = "https://api.exchange.coinbase.com"

    async def fetch(self, base: str, quote: str) -> float | None:
        """Fetch price from Coinbase Exchange.

        :param base: Commodity symbol (e.g., "xau").
        :param quote: Quote currency (e.g., "usd").
        :returns: Current price or None on failure.
        """
        token = COMMODITY_TOKENS.get(base.lower())
        if token is None:
            logger.warning(f"[coinbase] No commodity token for {base}")
            return None

        symbol = f"{token}-{quote.upper()}"
        url = f"{self.BASE_URL}/products/{symbol}/ticker"

        try:
            response = await self._get(url)
            data = response.json()

            if "price" not in data:
                logger.warning(f"[coinbase] No price in response for {symbol}: {data}")
                return None

            return float(data["price"])

        except FetcherError as e:
            logger.warning(f"[coinbase] Failed to fetch {symbol}: {e}")
            return None
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"[coinbase] Failed to parse response for {symbol}: {e}")
            return None

    def supports_pair(self, base: str, quote: str) -> bool:
        """Check if a token tracks the commodity.

        :param base: Commodity symbol.
        :param quote: Quote currency symbol.
        :returns: True if pair is supported.
        """
        return base.lower() in COMMODITY_TOKENS
