#!/usr/bin/env python3
"""Commodity Price Oracle.

Records periodic spot prices of a single commodity into a round-indexed
ledger, enforcing bounds and update spacing, and cross-checks accepted
prices against an on-chain reference feed.

Configure via CLI flags or environment variables (CLI args take precedence).
"""

import argparse
import asyncio
import logging
import os
import sys

from .src.AccessGate import normalize_identity
from .src.ChainlinkReferenceFeed import ChainlinkReferenceFeed
from .src.CommodityOracle import CommodityOracle
from .src.ContractUtility import ContractUtility
from .src.errors import OracleError
from .src.FeedObserver import FeedObserver
from .src.fetchers import get_available_fetchers, get_fetcher
from .src.OracleConfig import OracleConfig

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_env_api_keys() -> dict[str, str]:
    """Parse API keys from individual environment variables.

    Looks for: API_KEY_EODHD, APIKEY_EODHD, etc.

    :returns: Dict mapping source names to API keys.
    """
    api_keys = {}
    prefixes = ["API_KEY_", "APIKEY_"]

    for key, value in os.environ.items():
        for prefix in prefixes:
            if key.startswith(prefix) and value:
                source = key[len(prefix):].lower()
                api_keys[source] = value
                break

    return api_keys


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser with environment variable defaults."""
    available_sources = get_available_fetchers()
    env_config = OracleConfig.from_env()

    parser = argparse.ArgumentParser(
        description="Commodity Price Oracle: round-indexed single-feed price ledger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available price sources:
  {', '.join(available_sources)}

Examples:
  # Gold from Coinbase (PAXG), cross-checked against a reference aggregator
  python -m commodity_oracle.main --category xau/usd --source coinbase \\
      --writer-address 0x... --reference-feed-address 0x... --network ethereum

  # Gold from EODHD with tighter bounds
  python -m commodity_oracle.main --source eodhd --api-key your-api-key \\
      --min-answer 100000000000 --max-answer 1000000000000 ...

Environment variables (CLI args take precedence):
  CATEGORY, SOURCE, WRITER_ADDRESS, ADMIN_ADDRESS, DECIMALS, FETCH_PERIOD,
  MIN_ANSWER, MAX_ANSWER, UPDATE_INTERVAL, HEARTBEAT, DEVIATION_THRESHOLD,
  REFERENCE_FEED_ADDRESS, NETWORK, RPC_URL, API_KEY_EODHD, etc.
""",
    )

    parser.add_argument(
        "--category",
        type=str,
        help="Commodity pair in base/quote form (default: xau/usd)",
        default=os.environ.get("CATEGORY") or "xau/usd",
    )

    parser.add_argument(
        "--source",
        type=str,
        help=f"Upstream price source. Available: {', '.join(available_sources)}",
        default=os.environ.get("SOURCE") or "coinbase",
    )

    parser.add_argument(
        "--api-key",
        dest="api_key",
        type=str,
        help="API key for the upstream source (overrides API_KEY_<SOURCE>)",
        default=None,
    )

    parser.add_argument(
        "--writer-address",
        dest="writer_address",
        type=str,
        help="Address of the only identity allowed to append prices",
        default=os.environ.get("WRITER_ADDRESS"),
    )

    parser.add_argument(
        "--admin-address",
        dest="admin_address",
        type=str,
        help="Address allowed to pause and unpause writes (optional)",
        default=os.environ.get("ADMIN_ADDRESS"),
    )

    parser.add_argument(
        "--decimals",
        type=int,
        help="Decimal places of stored integer prices (default: 8)",
        default=int(os.environ.get("DECIMALS") or "8"),
    )

    parser.add_argument(
        "--fetch-period",
        dest="fetch_period",
        type=int,
        help="Seconds between upstream fetches (minimum: 1, default: 60)",
        default=int(os.environ.get("FETCH_PERIOD") or "60"),
    )

    parser.add_argument(
        "--min-answer",
        dest="min_answer",
        type=int,
        help="Inclusive lower bound of accepted prices",
        default=env_config.min_answer,
    )

    parser.add_argument(
        "--max-answer",
        dest="max_answer",
        type=int,
        help="Inclusive upper bound of accepted prices",
        default=env_config.max_answer,
    )

    parser.add_argument(
        "--update-interval",
        dest="update_interval",
        type=int,
        help="Minimum seconds between accepted rounds (default: 3600)",
        default=env_config.update_interval,
    )

    parser.add_argument(
        "--heartbeat",
        type=int,
        help="Seconds before the feed is considered stale (default: 86400)",
        default=env_config.heartbeat,
    )

    parser.add_argument(
        "--deviation-threshold",
        dest="deviation_threshold",
        type=int,
        help="Reference deviation alert threshold in basis points (default: 500)",
        default=env_config.deviation_threshold,
    )

    parser.add_argument(
        "--reference-feed-address",
        dest="reference_feed_address",
        type=str,
        help="Address of the AggregatorV3 reference feed contract",
        default=os.environ.get("REFERENCE_FEED_ADDRESS"),
    )

    parser.add_argument(
        "--network",
        type=str,
        help="Network of the reference feed (ethereum, sepolia, localnet or RPC URL)",
        default=os.environ.get("NETWORK") or "ethereum",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    return parser


def main() -> None:
    """Main entry point for the Commodity Price Oracle CLI."""
    parser = build_parser()
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate arguments
    if args.fetch_period < 1:
        parser.error("--fetch-period must be at least 1 second")

    if args.decimals < 0:
        parser.error("--decimals must not be negative")

    source = args.source.strip().lower()
    if source not in get_available_fetchers():
        parser.error(
            f"Unknown source: {source}. "
            f"Available: {', '.join(get_available_fetchers())}"
        )

    parts = args.category.lower().split("/")
    if len(parts) != 2 or not all(parts):
        parser.error(
            f"Invalid category '{args.category}'. Expected 'base/quote' (e.g., 'xau/usd')"
        )
    base, quote = parts

    api_key = args.api_key or parse_env_api_keys().get(source)
    fetcher = get_fetcher(source, api_key=api_key)
    if not fetcher.supports_pair(base, quote):
        parser.error(f"Source {source} does not support {base}/{quote}")

    if normalize_identity(args.writer_address) is None:
        parser.error("--writer-address must be a non-zero address")

    if not args.reference_feed_address:
        parser.error("--reference-feed-address is required")

    config = OracleConfig(
        min_answer=args.min_answer,
        max_answer=args.max_answer,
        update_interval=args.update_interval,
        heartbeat=args.heartbeat,
        deviation_threshold=args.deviation_threshold,
    )

    # Log configuration
    logger.info("=" * 60)
    logger.info("Commodity Price Oracle")
    logger.info("=" * 60)
    logger.info(f"Category:          {base}/{quote}")
    logger.info(f"Source:            {source}{' [key]' if api_key else ''}")
    logger.info(f"Writer:            {args.writer_address}")
    logger.info(f"Reference Feed:    {args.reference_feed_address} ({args.network})")
    logger.info(f"Bounds:            [{config.min_answer}, {config.max_answer}]")
    logger.info(f"Update Interval:   {config.update_interval}s")
    logger.info(f"Heartbeat:         {config.heartbeat}s")
    logger.info(f"Deviation Alert:   {config.deviation_threshold}bps")
    logger.info(f"Fetch Period:      {args.fetch_period}s")
    logger.info("=" * 60)

    try:
        contract_utility = ContractUtility(args.network)
        reference_feed = ChainlinkReferenceFeed(
            contract_utility.aggregator(args.reference_feed_address),
            target_decimals=args.decimals,
        )

        oracle = CommodityOracle()
        oracle.initialize(
            category=f"{base}/{quote}",
            feed_ref=reference_feed,
            config=config,
            writer_identity=args.writer_address,
            admin_identity=args.admin_address,
        )

        observer = FeedObserver(
            oracle=oracle,
            fetcher=fetcher,
            writer_identity=args.writer_address,
            base=base,
            quote=quote,
            decimals=args.decimals,
            fetch_period=args.fetch_period,
        )
        asyncio.run(observer.run())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except OracleError as e:
        logger.error(f"Oracle error: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
