#!/usr/bin/env python3
"""Commodity Price Oracle.

Keeps a staleness-gated cache of commodity prices, each bound to an external
price feed, and refreshes it periodically. An operator can override any
price at startup.

Start with CLI args or env vars. See --help for configuration.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from .src.AccessControl import Ownable
from .src.CacheRefresher import CacheRefresher
from .src.CommodityPriceCache import EXPIRY_WINDOW, CommodityPriceCache
from .src.ContractUtility import ContractUtility
from .src.feeds import BasePriceFeed, get_available_feeds, get_feed

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

# XAU/USD aggregator on Sepolia.
DEFAULT_COMMODITIES = "GOLD=0xC5981F461d74c46eB4b0CF3f4Ec79f025573B0Ea"


def parse_assignments(value: str | None) -> dict[str, str]:
    """Parse a comma-separated ``name=value`` string into a dictionary.

    Format: name1=value1,name2=value2
    Example: GOLD=0xC5981F...,SILVER=0x4b531A...

    Names keep their case; items without ``=`` are ignored. Only the first
    ``=`` splits, so values may contain ``=`` (e.g., URL query strings).

    :param value: Comma-separated assignment string.
    :returns: Dict mapping names to values.
    """
    if not value:
        return {}

    assignments = {}
    for item in value.split(","):
        item = item.strip()
        if "=" in item:
            name, val = item.split("=", 1)
            if name.strip():
                assignments[name.strip()] = val.strip()
    return assignments


def parse_prices(value: str | None) -> dict[str, int]:
    """Parse a ``name=price`` string where every price is an integer.

    :param value: Comma-separated assignment string.
    :returns: Dict mapping names to integer prices.
    :raises ValueError: If a price is not an integer.
    """
    prices = {}
    for name, raw in parse_assignments(value).items():
        try:
            prices[name] = int(raw)
        except ValueError:
            raise ValueError(f"Price for {name} must be an integer, got '{raw}'") from None
    return prices


def build_feed(
    feed_name: str,
    network: str,
    fetch_timeout: float,
    static_prices: dict[str, int] | None = None,
) -> BasePriceFeed:
    """Create the configured price feed.

    :param feed_name: Registered feed name.
    :param network: Network name or RPC URL for on-chain feeds.
    :param fetch_timeout: Request timeout for HTTP feeds.
    :param static_prices: Initial prices for the static feed.
    :returns: Feed instance.
    """
    if feed_name == "chainlink":
        return get_feed(feed_name, w3=ContractUtility(network).w3, timeout=fetch_timeout)
    if feed_name == "static":
        return get_feed(feed_name, prices=static_prices or {}, timeout=fetch_timeout)
    return get_feed(feed_name, timeout=fetch_timeout)


def build_cache(
    feed: BasePriceFeed,
    owner: Ownable,
    commodities: dict[str, str],
    expiry_window: int = EXPIRY_WINDOW,
    manual_prices: dict[str, int] | None = None,
) -> CommodityPriceCache:
    """Create a cache, register commodities and apply operator overrides.

    :param feed: Feed backing the cache.
    :param owner: Owner check for manual overrides.
    :param commodities: Dict mapping symbols to feed references.
    :param expiry_window: Seconds a price stays valid.
    :param manual_prices: Prices set by the owner before the first refresh.
    :returns: Populated cache.
    :raises UnknownSymbol: If a manual price names an unregistered symbol.
    """
    cache = CommodityPriceCache(
        feed=feed,
        is_administrator=owner.is_administrator,
        expiry_window=expiry_window,
    )
    for symbol, feed_ref in commodities.items():
        cache.register(symbol, feed_ref)
    for symbol, price in (manual_prices or {}).items():
        cache.set_price_manually(symbol, price, caller=owner.owner)
    return cache


async def run_once(refresher: CacheRefresher) -> int:
    """Refresh every symbol once and report its state.

    :param refresher: Refresher wrapping the cache.
    :returns: Process exit code, 0 if every symbol holds a valid price.
    """
    try:
        await refresher.refresh_once()
    finally:
        await BasePriceFeed.close_shared_client()

    cache = refresher.cache
    exit_code = 0
    for symbol in cache.symbols():
        record = cache.get_record(symbol)
        state = cache.state(symbol)
        logger.info(f"{symbol:<10} {state.value:<10} price={record.price} feed={record.feed_ref}")
        if not cache.is_valid(symbol):
            exit_code = 1
    return exit_code


def main() -> None:
    """Main entry point for the Commodity Price Oracle CLI."""
    available_feeds = get_available_feeds()

    parser = argparse.ArgumentParser(
        description="Commodity Price Oracle: staleness-gated commodity price cache",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available feeds:
  {', '.join(available_feeds)}

Examples:
  # Refresh gold from its on-chain aggregator once and print the result
  python -m commodity_oracle.main --network sepolia \\
      --commodities GOLD=0xC5981F461d74c46eB4b0CF3f4Ec79f025573B0Ea --once

  # JSON endpoints, with an operator override for silver
  python -m commodity_oracle.main --feed http \\
      --commodities "GOLD=https://prices.example.com/xau.json#data.price" \\
      --manual-prices SILVER=2400

Environment variables (CLI args take precedence):
  COMMODITIES, FEED, NETWORK, RPC_URL, OWNER, EXPIRY_WINDOW,
  REFRESH_PERIOD, FETCH_TIMEOUT, STATIC_PRICES, MANUAL_PRICES
""",
    )

    parser.add_argument(
        "--commodities",
        type=str,
        help="Comma-separated SYMBOL=FEED_REF bindings",
        default=os.environ.get("COMMODITIES") or DEFAULT_COMMODITIES,
    )

    parser.add_argument(
        "--feed",
        type=str,
        help=f"Price feed kind. Available: {', '.join(available_feeds)}",
        default=os.environ.get("FEED") or "chainlink",
    )

    parser.add_argument(
        "--network",
        type=str,
        help="Network for on-chain feeds (mainnet, sepolia, localnet) or an RPC URL",
        default=os.environ.get("NETWORK") or "sepolia",
    )

    parser.add_argument(
        "--owner",
        type=str,
        help="Identity allowed to override prices (default: operator)",
        default=os.environ.get("OWNER") or "operator",
    )

    parser.add_argument(
        "--expiry-window",
        dest="expiry_window",
        type=int,
        help=f"Seconds a price stays valid (default: {EXPIRY_WINDOW})",
        default=int(os.environ.get("EXPIRY_WINDOW") or EXPIRY_WINDOW),
    )

    parser.add_argument(
        "--refresh-period",
        dest="refresh_period",
        type=int,
        help="Seconds between refresh cycles (minimum: 1, default: 3600)",
        default=int(os.environ.get("REFRESH_PERIOD") or "3600"),
    )

    parser.add_argument(
        "--fetch-timeout",
        dest="fetch_timeout",
        type=float,
        help="Timeout for a single feed query in seconds (default: 10.0)",
        default=float(os.environ.get("FETCH_TIMEOUT") or "10.0"),
    )

    parser.add_argument(
        "--static-prices",
        dest="static_prices",
        type=str,
        help="FEED_REF=PRICE pairs served by the static feed",
        default=os.environ.get("STATIC_PRICES"),
    )

    parser.add_argument(
        "--manual-prices",
        dest="manual_prices",
        type=str,
        help="SYMBOL=PRICE overrides applied by the owner at startup",
        default=os.environ.get("MANUAL_PRICES"),
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Refresh once, print every symbol's state and exit",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )

    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate arguments
    if args.feed not in available_feeds:
        parser.error(f"Unknown feed '{args.feed}'. Available: {', '.join(available_feeds)}")

    if args.expiry_window < 1:
        parser.error("--expiry-window must be at least 1 second")

    if args.refresh_period < 1:
        parser.error("--refresh-period must be at least 1 second")

    commodities = parse_assignments(args.commodities)
    if not commodities:
        parser.error("At least one SYMBOL=FEED_REF commodity must be specified")

    try:
        static_prices = parse_prices(args.static_prices)
        manual_prices = parse_prices(args.manual_prices)
    except ValueError as e:
        parser.error(str(e))

    unknown = [s for s in manual_prices if s not in commodities]
    if unknown:
        parser.error(f"Manual prices for unregistered commodities: {unknown}")

    negative = [s for s, price in manual_prices.items() if price < 0]
    if negative:
        parser.error(f"Manual prices must be non-negative: {negative}")

    # Log configuration
    logger.info("=" * 60)
    logger.info("Commodity Price Oracle")
    logger.info("=" * 60)
    logger.info(f"Feed:              {args.feed}")
    if args.feed == "chainlink":
        logger.info(f"Network:           {args.network}")
    logger.info(f"Commodities:       {', '.join(commodities)}")
    logger.info(f"Owner:             {args.owner}")
    logger.info(f"Expiry Window:     {args.expiry_window}s")
    logger.info(f"Refresh Period:    {args.refresh_period}s")
    logger.info(f"Fetch Timeout:     {args.fetch_timeout}s")
    if manual_prices:
        logger.info(f"Manual Prices:     {', '.join(manual_prices)}")
    logger.info("=" * 60)

    try:
        feed = build_feed(args.feed, args.network, args.fetch_timeout, static_prices)
        cache = build_cache(
            feed=feed,
            owner=Ownable(args.owner),
            commodities=commodities,
            expiry_window=args.expiry_window,
            manual_prices=manual_prices,
        )
        refresher = CacheRefresher(
            cache,
            refresh_period=args.refresh_period,
            fetch_timeout=args.fetch_timeout,
        )
        if args.once:
            sys.exit(asyncio.run(run_once(refresher)))
        asyncio.run(refresher.run())
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
