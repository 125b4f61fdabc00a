"""
Commodity price fetchers for upstream API sources.

The writer uses a fetcher to obtain the spot price it appends to the ledger.

Usage:
    from commodity_oracle.src.fetchers import get_fetcher, get_available_fetchers

    # Get list of available fetchers
    available = get_available_fetchers()
    # ['coinbase', 'eodhd']

    # Create a fetcher instance
    fetcher = get_fetcher("coinbase")
    price = await fetcher.fetch("xau", "usd")

    # For fetchers requiring API keys
    fetcher = get_fetcher("eodhd", api_key="your-api-key")
"""

# Import base classes and utilities
from .base import (
    FETCHER_REGISTRY,
    BaseFetcher,
    FetcherError,
    FetcherHTTPError,
    get_available_fetchers,
    get_fetcher,
    register_fetcher,
)

# Import all fetcher implementations to trigger registration
from .coinbase import CoinbaseFetcher
from .eodhd import EODHDFetcher

__all__ = [
    # Base classes
    "BaseFetcher",
    "FetcherError",
    "FetcherHTTPError",
    # Registry functions
    "register_fetcher",
    "get_fetcher",
    "get_available_fetchers",
    "FETCHER_REGISTRY",
    # Fetcher implementations
    "CoinbaseFetcher",
    "EODHDFetcher",
]
