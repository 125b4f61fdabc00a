"""Unit tests for reference feed validation and ChainlinkReferenceFeed."""

from unittest.mock import MagicMock

import pytest
from web3.exceptions import Web3Exception

from commodity_oracle.src.ChainlinkReferenceFeed import ChainlinkReferenceFeed
from commodity_oracle.src.errors import InvalidReference, ReferenceFeedError, StaleReference
from commodity_oracle.src.ReferenceFeed import validate_reference

NOW = 1_700_000_000
HEARTBEAT = 3600


def make_contract(round_data: tuple, decimals: int = 8) -> MagicMock:
    """Create a mock AggregatorV3 contract."""
    contract = MagicMock()
    contract.address = "0x214eD9Da11D2fbe465a6fc601a91E62EbEc1a0D6"
    contract.functions.latestRoundData.return_value.call.return_value = round_data
    contract.functions.decimals.return_value.call.return_value = decimals
    return contract


class TestValidateReference:
    """Test validation of adapter output."""

    def test_valid(self) -> None:
        """A fresh positive price should pass through."""
        assert validate_reference(2650, NOW - 10, HEARTBEAT, NOW) == 2650

    def test_boundary_age_accepted(self) -> None:
        """observed_at == now - heartbeat is still fresh."""
        assert validate_reference(2650, NOW - HEARTBEAT, HEARTBEAT, NOW) == 2650

    def test_stale(self) -> None:
        """observed_at < now - heartbeat should raise StaleReference."""
        with pytest.raises(StaleReference):
            validate_reference(2650, NOW - HEARTBEAT - 1, HEARTBEAT, NOW)

    @pytest.mark.parametrize("price", [0, -1])
    def test_non_positive(self, price: int) -> None:
        """Zero or negative prices should raise InvalidReference."""
        with pytest.raises(InvalidReference):
            validate_reference(price, NOW, HEARTBEAT, NOW)

    def test_staleness_checked_first(self) -> None:
        """A stale, non-positive reference reports staleness."""
        with pytest.raises(StaleReference):
            validate_reference(0, NOW - HEARTBEAT - 1, HEARTBEAT, NOW)


class TestChainlinkReferenceFeed:
    """Test reading AggregatorV3 contracts."""

    def test_fetch_reference(self) -> None:
        """Answer and updatedAt should be returned unchanged by default."""
        contract = make_contract((7, 265012345678, NOW - 30, NOW - 20, 7))
        feed = ChainlinkReferenceFeed(contract)

        assert feed.fetch_reference() == (265012345678, NOW - 20)
        contract.functions.decimals.assert_not_called()

    def test_scale_down(self) -> None:
        """Answers should be rescaled to fewer target decimals."""
        contract = make_contract((7, 265012345678, 0, NOW, 7), decimals=8)
        feed = ChainlinkReferenceFeed(contract, target_decimals=6)

        assert feed.fetch_reference() == (2650123456, NOW)

    def test_scale_up(self) -> None:
        """Answers should be rescaled to more target decimals."""
        contract = make_contract((7, 265012345678, 0, NOW, 7), decimals=8)
        feed = ChainlinkReferenceFeed(contract, target_decimals=10)

        assert feed.fetch_reference() == (26501234567800, NOW)

    def test_decimals_read_once(self) -> None:
        """Contract decimals should be cached after the first read."""
        contract = make_contract((7, 100, 0, NOW, 7), decimals=8)
        feed = ChainlinkReferenceFeed(contract, target_decimals=8)

        feed.fetch_reference()
        feed.fetch_reference()

        assert contract.functions.decimals.return_value.call.call_count == 1

    def test_web3_error_wrapped(self) -> None:
        """Web3 failures should surface as ReferenceFeedError."""
        contract = make_contract((7, 100, 0, NOW, 7))
        contract.functions.latestRoundData.return_value.call.side_effect = Web3Exception("revert")
        feed = ChainlinkReferenceFeed(contract)

        with pytest.raises(ReferenceFeedError, match="latestRoundData"):
            feed.fetch_reference()

    def test_connection_error_wrapped(self) -> None:
        """Transport failures should surface as ReferenceFeedError."""
        contract = make_contract((7, 100, 0, NOW, 7))
        contract.functions.latestRoundData.return_value.call.side_effect = ConnectionError("down")
        feed = ChainlinkReferenceFeed(contract)

        with pytest.raises(ReferenceFeedError):
            feed.fetch_reference()

    def test_malformed_round_data(self) -> None:
        """Round data with the wrong shape should raise ReferenceFeedError."""
        contract = make_contract((7, 100))
        feed = ChainlinkReferenceFeed(contract)

        with pytest.raises(ReferenceFeedError, match="Malformed"):
            feed.fetch_reference()
