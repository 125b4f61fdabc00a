"""Unit tests for the upstream commodity fetchers."""

import asyncio

import httpx
import pytest

from commodity_oracle.src.fetchers import (
    BaseFetcher,
    CoinbaseFetcher,
    EODHDFetcher,
    get_available_fetchers,
    get_fetcher,
)


def run_with_transport(handler, coro_fn):
    """Run a fetcher coroutine against a mocked HTTP transport."""

    async def runner():
        BaseFetcher._shared_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        try:
            return await coro_fn()
        finally:
            await BaseFetcher.close_shared_client()

    return asyncio.run(runner())


class TestFetcherRegistry:
    """Test the fetcher registry."""

    def test_available(self) -> None:
        """Both shipped fetchers should be registered."""
        assert get_available_fetchers() == ["coinbase", "eodhd"]

    def test_get_fetcher_with_key(self) -> None:
        """get_fetcher should pass the API key through."""
        fetcher = get_fetcher("eodhd", api_key="secret")
        assert isinstance(fetcher, EODHDFetcher)
        assert fetcher.has_api_key

    def test_unknown(self) -> None:
        """Unknown fetcher names should raise ValueError."""
        with pytest.raises(ValueError, match="Unknown fetcher"):
            get_fetcher("kitco")


class TestCoinbaseFetcher:
    """Test the Coinbase commodity token fetcher."""

    def test_gold_via_paxg(self) -> None:
        """Gold should be priced through the PAXG ticker."""
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json={"price": "2650.12", "time": "2024-01-01T00:00:00Z"})

        price = run_with_transport(handler, lambda: CoinbaseFetcher().fetch("xau", "usd"))

        assert price == 2650.12
        assert seen == ["/products/PAXG-USD/ticker"]

    def test_unsupported_commodity(self) -> None:
        """Commodities without a token should return None without a request."""
        fetcher = CoinbaseFetcher()

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        assert not fetcher.supports_pair("xag", "usd")
        assert run_with_transport(handler, lambda: fetcher.fetch("xag", "usd")) is None

    def test_http_error(self) -> None:
        """Non-2xx responses should return None."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="unavailable")

        assert run_with_transport(handler, lambda: CoinbaseFetcher().fetch("xau", "usd")) is None

    def test_missing_price(self) -> None:
        """Responses without a price should return None."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"message": "NotFound"})

        assert run_with_transport(handler, lambda: CoinbaseFetcher().fetch("xau", "usd")) is None


class TestEODHDFetcher:
    """Test the EODHD spot metals fetcher."""

    def test_requires_key(self) -> None:
        """Without an API key no request should be made."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        assert run_with_transport(handler, lambda: EODHDFetcher().fetch("xau", "usd")) is None

    def test_forex_symbol(self) -> None:
        """Spot metals should use the {BASE}{QUOTE}.FOREX symbol."""
        seen: list[httpx.URL] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url)
            return httpx.Response(200, json={"code": "XAUUSD.FOREX", "close": 2650.5})

        price = run_with_transport(
            handler, lambda: EODHDFetcher(api_key="secret").fetch("xau", "usd")
        )

        assert price == 2650.5
        assert seen[0].path == "/api/real-time/XAUUSD.FOREX"
        assert seen[0].params["api_token"] == "secret"
        assert seen[0].params["fmt"] == "json"

    def test_unparseable_close(self) -> None:
        """A non-numeric close should return None."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"code": "XAUUSD.FOREX", "close": "NA"})

        assert (
            run_with_transport(handler, lambda: EODHDFetcher(api_key="secret").fetch("xau", "usd"))
            is None
        )
