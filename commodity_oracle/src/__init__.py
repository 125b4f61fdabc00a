"""
Commodity Price Oracle - Round-Indexed Single-Feed Ledger

This module provides a price ledger for one commodity feed:
- OracleConfig / ConfigStore: Validation parameters and their guarded replacement
- AccessGate: Single-writer authorization and the administrative pause flag
- PriceLedger: Append-only round-indexed history with admission checks
- StalenessMonitor: Heartbeat-based staleness
- ReferenceFeed: External reference price interface and its validation
- CommodityOracle: Service facade with one-time initialization
- FeedObserver: Writer loop fed by upstream fetchers
"""

from .AccessGate import AccessGate
from .ChainlinkReferenceFeed import ChainlinkReferenceFeed
from .CommodityOracle import CommodityOracle
from .events import ConfigUpdated, EventEmitter, PriceUpdated
from .FeedObserver import FeedObserver
from .OracleConfig import ConfigStore, OracleConfig
from .PriceLedger import LedgerState, PriceLedger, PriceObservation
from .ReferenceFeed import ReferenceFeed, validate_reference
from .StalenessMonitor import StalenessMonitor

__all__ = [
    "AccessGate",
    "ChainlinkReferenceFeed",
    "CommodityOracle",
    "ConfigStore",
    "ConfigUpdated",
    "EventEmitter",
    "FeedObserver",
    "LedgerState",
    "OracleConfig",
    "PriceLedger",
    "PriceObservation",
    "PriceUpdated",
    "ReferenceFeed",
    "StalenessMonitor",
    "validate_reference",
]
