"""ChainlinkReferenceFeed: Reference prices from an AggregatorV3 contract.

Reads ``latestRoundData()`` and returns ``(answer, updatedAt)``. When
``target_decimals`` is set the answer is rescaled from the contract's own
``decimals()`` so it can be compared with ledger prices directly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from web3.exceptions import Web3Exception

from .errors import ReferenceFeedError
from .ReferenceFeed import ReferenceFeed

if TYPE_CHECKING:
    from web3.contract import Contract

logger = logging.getLogger(__name__)


class ChainlinkReferenceFeed(ReferenceFeed):
    """Reference feed backed by an on-chain AggregatorV3 contract.

    :ivar contract: Bound aggregator contract.
    :ivar target_decimals: Decimals to rescale answers to, or None to keep
        the contract's precision.
    """

    def __init__(self, contract: Contract, target_decimals: int | None = None) -> None:
        """Initialize the feed.

        :param contract: AggregatorV3-compatible contract instance.
        :param target_decimals: Optional precision of returned prices.
        """
        self.contract = contract
        self.target_decimals = target_decimals
        self._feed_decimals: int | None = None

    def _call(self, method: str, *args):
        try:
            return getattr(self.contract.functions, method)(*args).call()
        except (Web3Exception, OSError, ValueError) as e:
            raise ReferenceFeedError(f"{method}() failed on {self.contract.address}: {e}") from e

    def _scale(self, answer: int) -> int:
        if self.target_decimals is None:
            return answer
        if self._feed_decimals is None:
            self._feed_decimals = int(self._call("decimals"))
        shift = self.target_decimals - self._feed_decimals
        if shift >= 0:
            return answer * 10**shift
        return answer // 10 ** (-shift)

    def fetch_reference(self) -> tuple[int, int]:
        """Fetch the latest round of the aggregator contract.

        :returns: Tuple of (price, updated_at).
        :raises ReferenceFeedError: If the contract call fails or returns
            malformed data.
        """
        round_data = self._call("latestRoundData")
        try:
            round_id, answer, _started_at, updated_at, _answered = round_data
        except (TypeError, ValueError) as e:
            raise ReferenceFeedError(f"Malformed latestRoundData: {round_data!r}") from e

        price = self._scale(int(answer))
        logger.debug(
            f"Reference round {round_id}: answer={answer}, scaled={price}, "
            f"updated_at={updated_at}"
        )
        return price, int(updated_at)
