"""FeedObserver: Writer loop feeding one commodity oracle.

Each tick the observer:
    1. Fetches the spot price from its upstream fetcher
    2. Scales it to an integer with ``decimals`` places
    3. Appends it to the oracle as the writer
    4. Cross-checks the accepted price against the reference feed
    5. Warns if the ledger has missed its heartbeat

A rejected append is terminal for that tick; the observer simply tries again
on the next one.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import TYPE_CHECKING

from .errors import (
    InvalidReference,
    OutOfBounds,
    ReferenceFeedError,
    StaleReference,
    Suspended,
    TooSoon,
    Unauthorized,
)
from .fetchers import BaseFetcher

if TYPE_CHECKING:
    from .CommodityOracle import CommodityOracle

logger = logging.getLogger(__name__)


class FeedObserver:
    """Periodically appends upstream prices to a commodity oracle.

    :ivar oracle: Initialized oracle to write to.
    :ivar fetcher: Upstream price source.
    :ivar writer_identity: Address the observer writes as.
    :ivar base: Commodity symbol (e.g., "xau").
    :ivar quote: Quote currency symbol (e.g., "usd").
    :ivar decimals: Decimal places of the integer prices stored on the ledger.
    :ivar fetch_period: Seconds between ticks.
    :ivar check_reference: Whether to cross-check against the reference feed.
    """

    def __init__(
        self,
        oracle: CommodityOracle,
        fetcher: BaseFetcher,
        writer_identity: str,
        base: str,
        quote: str,
        decimals: int = 8,
        fetch_period: int = 60,
        check_reference: bool = True,
    ) -> None:
        """Initialize the observer.

        :param oracle: Initialized oracle to write to.
        :param fetcher: Upstream price fetcher.
        :param writer_identity: Writer address used for appends.
        :param base: Commodity symbol.
        :param quote: Quote currency symbol.
        :param decimals: Decimal places of stored prices (default: 8).
        :param fetch_period: Seconds between ticks (minimum: 1, default: 60).
        :param check_reference: Cross-check accepted prices (default: True).
        """
        self.oracle = oracle
        self.fetcher = fetcher
        self.writer_identity = writer_identity
        self.base = base.lower()
        self.quote = quote.lower()
        self.decimals = decimals
        self.fetch_period = max(1, fetch_period)
        self.check_reference = check_reference

    def scale(self, price: float) -> int:
        """Convert a float price to the ledger's integer representation."""
        return int(round(price * (10**self.decimals)))

    async def observe_once(self, now: int | None = None) -> int | None:
        """Run a single fetch-and-append tick.

        :param now: Tick time (default: current time).
        :returns: Assigned round id, or None if nothing was appended.
        """
        now = int(time.time()) if now is None else now

        price = await self.fetcher.fetch(self.base, self.quote)
        if price is not None and not math.isfinite(price):
            logger.warning(
                f"[{self.fetcher.name}] Non-finite price {price} for {self.base}/{self.quote}"
            )
            price = None
        if price is None:
            logger.warning(f"[{self.fetcher.name}] No price for {self.base}/{self.quote}")
            self._warn_if_stale(now)
            return None

        scaled = self.scale(price)
        try:
            round_id = self.oracle.append(self.writer_identity, scaled, now=now)
        except TooSoon as e:
            logger.debug(f"{self.base}/{self.quote}: {e}")
            return None
        except (OutOfBounds, Suspended, Unauthorized) as e:
            logger.warning(f"{self.base}/{self.quote}: append rejected: {e}")
            self._warn_if_stale(now)
            return None

        logger.info(
            f"{self.base}/{self.quote}: ${price:.6f} stored as round {round_id} "
            f"(source={self.fetcher.name})"
        )
        if self.check_reference:
            await self._cross_check(scaled, now)
        return round_id

    async def _cross_check(self, price: int, now: int) -> None:
        """Log how far an accepted price is from the reference feed.

        Deviation is expressed in basis points and compared against the
        config's deviation_threshold. The result is informational only.
        """
        try:
            reference = await asyncio.to_thread(self.oracle.fetch_reference_price, now)
        except (StaleReference, InvalidReference, ReferenceFeedError) as e:
            logger.warning(f"{self.base}/{self.quote}: reference unavailable: {e}")
            return

        deviation_bps = abs(price - reference) * 10_000 // reference
        threshold = self.oracle.get_config().deviation_threshold
        if deviation_bps > threshold:
            logger.warning(
                f"{self.base}/{self.quote}: price {price} deviates {deviation_bps}bps "
                f"from reference {reference} (threshold {threshold}bps)"
            )
        else:
            logger.debug(
                f"{self.base}/{self.quote}: within {deviation_bps}bps of reference"
            )

    def _warn_if_stale(self, now: int) -> None:
        if self.oracle.is_stale(now):
            logger.warning(
                f"{self.base}/{self.quote}: feed stale, last update "
                f"{self.oracle.time_since_update(now)}s ago"
            )

    async def tick(self, now: int | None = None) -> int | None:
        """Run observe_once(), logging any failure instead of raising.

        :param now: Tick time (default: current time).
        :returns: Assigned round id, or None if nothing was appended.
        """
        try:
            return await self.observe_once(now)
        except Exception as exc:
            logger.error(
                f"{self.base}/{self.quote}: tick failed with {exc!r}; retrying next period"
            )
            return None

    async def run(self) -> None:
        """Run the observer loop until cancelled."""
        logger.info(
            f"Starting feed observer for {self.base}/{self.quote} "
            f"(source={self.fetcher.name}, fetch_period={self.fetch_period}s)"
        )
        try:
            while True:
                await self.tick()
                await asyncio.sleep(self.fetch_period)
        finally:
            # Clean up shared HTTP client
            await BaseFetcher.close_shared_client()
