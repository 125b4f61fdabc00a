"""Unit tests for FeedObserver."""

import asyncio
import logging

import pytest

from commodity_oracle.src.CommodityOracle import CommodityOracle
from commodity_oracle.src.errors import ReferenceFeedError
from commodity_oracle.src.FeedObserver import FeedObserver
from commodity_oracle.src.fetchers import BaseFetcher
from commodity_oracle.src.OracleConfig import OracleConfig
from commodity_oracle.src.ReferenceFeed import ReferenceFeed

WRITER = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
ADMIN = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
OTHER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"

T0 = 1_700_000_000

# Prices are stored with 2 decimals: $1.00 .. $5000.00
CONFIG = OracleConfig(
    min_answer=100,
    max_answer=500_000,
    update_interval=3600,
    heartbeat=86400,
    deviation_threshold=100,
)


class FakeFetcher(BaseFetcher):
    """Fetcher returning queued prices without network access."""

    name = "fake"

    def __init__(self, prices: list[float | None]):
        super().__init__()
        self.prices = list(prices)
        self.requested: list[tuple[str, str]] = []

    async def fetch(self, base: str, quote: str) -> float | None:
        self.requested.append((base, quote))
        return self.prices.pop(0)


class FakeReference(ReferenceFeed):
    """Reference feed with a fixed answer."""

    def __init__(self, price: int, observed_at: int = T0, error: Exception | None = None):
        self.price = price
        self.observed_at = observed_at
        self.error = error

    def fetch_reference(self) -> tuple[int, int]:
        if self.error is not None:
            raise self.error
        return self.price, self.observed_at


def make_observer(
    prices: list[float | None],
    reference: ReferenceFeed | None = None,
    writer: str = WRITER,
) -> tuple[FeedObserver, CommodityOracle]:
    """Create an observer over an oracle initialized at T0."""
    oracle = CommodityOracle()
    oracle.initialize(
        "xau/usd",
        reference or FakeReference(265_000),
        CONFIG,
        WRITER,
        admin_identity=ADMIN,
        now=T0,
    )
    observer = FeedObserver(
        oracle=oracle,
        fetcher=FakeFetcher(prices),
        writer_identity=writer,
        base="XAU",
        quote="USD",
        decimals=2,
        fetch_period=60,
    )
    return observer, oracle


class TestFeedObserverTick:
    """Test single observation ticks."""

    def test_appends_scaled_price(self) -> None:
        """A fetched price should be scaled and appended as the writer."""
        observer, oracle = make_observer([2650.123])

        round_id = asyncio.run(observer.observe_once(now=T0 + 3600))

        assert round_id == 1
        assert oracle.latest().price == 265_012
        assert oracle.latest().timestamp == T0 + 3600
        assert observer.fetcher.requested == [("xau", "usd")]

    def test_scale_rounds(self) -> None:
        """Scaling should round to the nearest unit."""
        observer, _ = make_observer([])
        assert observer.scale(2650.126) == 265_013
        assert observer.scale(2650.0) == 265_000

    def test_missing_price(self) -> None:
        """A failed fetch should not append anything."""
        observer, oracle = make_observer([None])

        assert asyncio.run(observer.observe_once(now=T0 + 3600)) is None
        assert oracle.current_round_id() == 1

    def test_too_soon_skipped(self) -> None:
        """An early tick should be skipped without error."""
        observer, oracle = make_observer([2650.0, 2651.0])

        asyncio.run(observer.observe_once(now=T0 + 3600))
        assert asyncio.run(observer.observe_once(now=T0 + 3660)) is None
        assert oracle.current_round_id() == 2

    def test_out_of_bounds_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """An out-of-bounds price should be logged and skipped."""
        observer, oracle = make_observer([9999.0])

        with caplog.at_level(logging.WARNING):
            assert asyncio.run(observer.observe_once(now=T0 + 3600)) is None

        assert oracle.current_round_id() == 1
        assert "append rejected" in caplog.text

    def test_wrong_writer_rejected(self, caplog: pytest.LogCaptureFixture) -> None:
        """An observer not configured as the writer cannot append."""
        observer, oracle = make_observer([2650.0], writer=OTHER)

        with caplog.at_level(logging.WARNING):
            assert asyncio.run(observer.observe_once(now=T0 + 3600)) is None

        assert oracle.current_round_id() == 1
        assert "not authorized" in caplog.text

    def test_stale_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        """A failed tick on a stale feed should warn about staleness."""
        observer, _ = make_observer([None])

        with caplog.at_level(logging.WARNING):
            asyncio.run(observer.observe_once(now=T0 + 86401))

        assert "feed stale" in caplog.text


class TestFeedObserverReference:
    """Test the reference cross-check."""

    def test_deviation_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        """A price far from the reference should be logged, not rejected."""
        observer, oracle = make_observer([2800.0], FakeReference(265_000, observed_at=T0 + 3600))

        with caplog.at_level(logging.WARNING):
            assert asyncio.run(observer.observe_once(now=T0 + 3600)) == 1

        assert oracle.latest().price == 280_000
        assert "deviates" in caplog.text

    def test_within_threshold(self, caplog: pytest.LogCaptureFixture) -> None:
        """A price close to the reference should not warn."""
        observer, _ = make_observer([2651.0], FakeReference(265_000, observed_at=T0 + 3600))

        with caplog.at_level(logging.WARNING):
            asyncio.run(observer.observe_once(now=T0 + 3600))

        assert "deviates" not in caplog.text

    def test_reference_failure_keeps_round(self, caplog: pytest.LogCaptureFixture) -> None:
        """Reference errors should be logged and the round kept."""
        observer, oracle = make_observer(
            [2650.0], FakeReference(0, error=ReferenceFeedError("rpc down"))
        )

        with caplog.at_level(logging.WARNING):
            assert asyncio.run(observer.observe_once(now=T0 + 3600)) == 1

        assert oracle.current_round_id() == 2
        assert "reference unavailable" in caplog.text

    def test_stale_reference_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """A stale reference should be reported as unavailable."""
        observer, _ = make_observer([2650.0], FakeReference(265_000, observed_at=T0 - 86401))

        with caplog.at_level(logging.WARNING):
            asyncio.run(observer.observe_once(now=T0 + 3600))

        assert "reference unavailable" in caplog.text

    def test_reference_check_disabled(self) -> None:
        """With check_reference off the reference feed is never read."""
        reference = FakeReference(0, error=AssertionError("must not be called"))
        observer, oracle = make_observer([2650.0], reference)
        observer.check_reference = False

        assert asyncio.run(observer.observe_once(now=T0 + 3600)) == 1
        assert oracle.current_round_id() == 2


class TestFeedObserverLoop:
    """Test the per-tick guard used by the run loop."""

    def test_non_finite_price_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Infinite or NaN upstream prices should be dropped before scaling."""
        observer, oracle = make_observer([float("inf"), float("nan")])

        with caplog.at_level(logging.WARNING):
            assert asyncio.run(observer.observe_once(now=T0 + 3600)) is None
            assert asyncio.run(observer.observe_once(now=T0 + 3600)) is None

        assert oracle.current_round_id() == 1
        assert "Non-finite price" in caplog.text

    def test_tick_survives_unexpected_error(self, caplog: pytest.LogCaptureFixture) -> None:
        """An unexpected fetcher failure should be logged, not raised."""
        observer, oracle = make_observer([])

        with caplog.at_level(logging.ERROR):
            assert asyncio.run(observer.tick(now=T0 + 3600)) is None

        assert oracle.current_round_id() == 1
        assert "tick failed" in caplog.text

    def test_tick_after_failure_appends(self) -> None:
        """The next tick should proceed normally after a failed one."""
        observer, oracle = make_observer([2650.0])
        observer.check_reference = False

        async def failing_fetch(base: str, quote: str) -> float | None:
            raise RuntimeError("upstream exploded")

        original = observer.fetcher.fetch
        observer.fetcher.fetch = failing_fetch  # type: ignore[method-assign]
        assert asyncio.run(observer.tick(now=T0 + 3600)) is None

        observer.fetcher.fetch = original  # type: ignore[method-assign]
        assert asyncio.run(observer.tick(now=T0 + 3600)) == 1
        assert oracle.current_round_id() == 2
