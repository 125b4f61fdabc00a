"""EODHD (End of Day Historical Data) fetcher.

Endpoint: https://eodhd.com/api/real-time/{BASE}{QUOTE}.FOREX
Commodities: spot metals quoted as forex symbols (XAUUSD, XAGUSD, XPTUSD)
API Key: Required
"""

import logging

from .base import BaseFetcher, FetcherError, register_fetcher

logger = logging.getLogger(__name__)


@register_fetcher
class EODHDFetcher(BaseFetcher):
    """Fetcher for the EODHD real-time API.

    Uses the ``{BASE}{QUOTE}.FOREX`` symbol format, which covers spot
    precious metals as well as currencies. API key is REQUIRED.
    """

    name = "eodhd"
    BASE_URL = "https://eodhd.com/api"

    async def fetch(self, base: str, quote: str) -> float | None:
        """Fetch spot price from EODHD.

        :param base: Commodity symbol (e.g., "xau", "xag").
        :param quote: Quote currency (e.g., "usd").
        :returns: Current price or None on failure.
        """
        if not self.has_api_key:
            logger.warning("[eodhd] API key required but not provided")
            return None

        symbol = f"{base.upper()}{quote.upper()}.FOREX"
        url = f"{self.BASE_URL}/real-time/{symbol}"

        try:
            response = await self._get(
                url, params={"api_token": self.api_key, "fmt": "json"}
            )
            data = response.json()

            # EODHD returns 'close' for the current price, "NA" when unknown
            if "close" not in data:
                logger.warning(f"[eodhd] No 'close' in response: {data}")
                return None

            return float(data["close"])

        except FetcherError as e:
            logger.warning(f"[eodhd] Failed to fetch {symbol}: {e}")
            return None
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"[eodhd] Failed to parse response for {symbol}: {e}")
            return None
