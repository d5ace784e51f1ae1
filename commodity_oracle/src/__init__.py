"""
Commodity Price Oracle - Staleness-Gated Price Cache

This module provides a cache of feed-backed commodity prices:
- CommodityPriceCache: Per-symbol prices with fetch and manual override paths
- CommodityRecord: Immutable price entry and its freshness state
- Ownable: Owner check guarding manual overrides
- CacheRefresher: Periodic refresh loop with per-symbol backoff
- feeds: Price feed implementations (chainlink, http, static)
"""

from .AccessControl import Ownable
from .CacheRefresher import CacheRefresher
from .CommodityPriceCache import EXPIRY_WINDOW, CommodityPriceCache
from .CommodityRecord import CommodityRecord, RecordState
from .errors import (
    FeedUnavailable,
    PriceCacheError,
    PriceExpired,
    Unauthorized,
    UnknownSymbol,
)
from .RefreshBackoff import BackoffStatus, RefreshBackoff

__all__ = [
    "BackoffStatus",
    "CacheRefresher",
    "CommodityPriceCache",
    "CommodityRecord",
    "EXPIRY_WINDOW",
    "FeedUnavailable",
    "Ownable",
    "PriceCacheError",
    "PriceExpired",
    "RecordState",
    "RefreshBackoff",
    "Unauthorized",
    "UnknownSymbol",
]
