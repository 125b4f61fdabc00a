"""ContractUtility: Web3 initialization for reading reference feed contracts."""

import os

from web3 import Web3
from web3.contract import Contract

# Minimal AggregatorV3Interface ABI: the read methods used by the oracle.
AGGREGATOR_V3_ABI: list[dict] = [
    {
        "inputs": [],
        "name": "decimals",
        "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "latestRoundData",
        "outputs": [
            {"internalType": "uint80", "name": "roundId", "type": "uint80"},
            {"internalType": "int256", "name": "answer", "type": "int256"},
            {"internalType": "uint256", "name": "startedAt", "type": "uint256"},
            {"internalType": "uint256", "name": "updatedAt", "type": "uint256"},
            {"internalType": "uint80", "name": "answeredInRound", "type": "uint80"},
        ],
        "stateMutability": "view",
        "type": "function",
    },
]


class ContractUtility:
    """Utility for the Web3 connection used by reference feeds.

    :ivar network: Network RPC URL.
    :ivar w3: Configured Web3 instance.
    """

    def __init__(self, network_name: str) -> None:
        """Initialize the contract utility.

        :param network_name: Name of the network to connect to, or an RPC URL.
        """
        networks = {
            "ethereum": "https://eth.llamarpc.com",
            "sepolia": "https://rpc.sepolia.org",
            "localnet": "http://localhost:8545",
        }
        # RPC_URL env var overrides the default for the network
        self.network = os.environ.get("RPC_URL") or networks.get(network_name, network_name)
        self.w3 = Web3(Web3.HTTPProvider(self.network))

    def aggregator(self, address: str) -> Contract:
        """Bind an AggregatorV3-compatible contract at the given address.

        :param address: Contract address.
        :returns: Web3 contract instance.
        """
        return self.w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=AGGREGATOR_V3_ABI
        )
