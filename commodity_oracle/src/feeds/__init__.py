"""
Price feeds backing the commodity price cache.

Usage:
    from commodity_oracle.src.feeds import get_feed, get_available_feeds

    # Get list of available feeds
    available = get_available_feeds()
    # ['chainlink', 'http', 'static']

    # Create a feed instance
    feed = get_feed("static", prices={"gold": 2000})
    price = await feed.latest_price("gold")

    # On-chain feeds need a connected Web3 instance
    feed = get_feed("chainlink", w3=ContractUtility("sepolia").w3)
"""

# Import base classes and utilities
from .base import (
    FEED_REGISTRY,
    BasePriceFeed,
    FeedHTTPError,
    coerce_price,
    get_available_feeds,
    get_feed,
    register_feed,
)

# Import all feed implementations to trigger registration
from .chainlink import ChainlinkPriceFeed
from .http import HttpPriceFeed
from .static import StaticPriceFeed

__all__ = [
    # Base classes
    "BasePriceFeed",
    "FeedHTTPError",
    "coerce_price",
    # Registry functions
    "register_feed",
    "get_feed",
    "get_available_feeds",
    "FEED_REGISTRY",
    # Feed implementations
    "ChainlinkPriceFeed",
    "HttpPriceFeed",
    "StaticPriceFeed",
]
