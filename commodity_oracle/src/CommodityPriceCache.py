"""CommodityPriceCache: Staleness-gated price cache for named commodities.

Each registered symbol is bound to a feed reference. Prices enter the cache
through two write paths:

- fetch(): query the bound feed and store its answer
- set_price_manually(): administrator override that bypasses the feed

Both paths stamp the write time, and a price is only served by
get_valid_price() while it is younger than the expiry window.

.. code-block:: python

    >>> feed = StaticPriceFeed({"xau": 2000})
    >>> cache = CommodityPriceCache(feed, Ownable("operator").is_administrator)
    >>> cache.register("Gold", "xau")
    >>> asyncio.run(cache.fetch("Gold")).price
    2000
    >>> cache.get_valid_price("Gold")
    2000
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Callable

from .CommodityRecord import CommodityRecord, RecordState
from .errors import FeedUnavailable, PriceExpired, Unauthorized, UnknownSymbol

if TYPE_CHECKING:
    from .feeds import BasePriceFeed

logger = logging.getLogger(__name__)

# Seconds a written price stays valid.
EXPIRY_WINDOW = 24 * 60 * 60


class CommodityPriceCache:
    """Process-wide price cache shared by every caller holding a reference.

    Records are frozen and replaced as a whole under ``_lock``, so price and
    timestamp are never observed out of step. The lock is never held while
    a feed is being queried.

    :ivar feed: Price feed queried by fetch().
    :ivar expiry_window: Seconds a written price stays valid.
    """

    def __init__(
        self,
        feed: BasePriceFeed,
        is_administrator: Callable[[str], bool],
        expiry_window: int = EXPIRY_WINDOW,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize an empty cache.

        :param feed: Feed answering latest_price(feed_ref) for fetch().
        :param is_administrator: Check consulted before manual overrides.
        :param expiry_window: Seconds a price stays valid (default: 24h).
        :param clock: Source of epoch seconds (default: time.time). Values
            below 1 are rejected with ValueError when read.
        :raises ValueError: If expiry_window is not positive.
        """
        if expiry_window <= 0:
            raise ValueError(f"expiry_window must be positive, got {expiry_window}")

        self.feed = feed
        self.expiry_window = expiry_window
        self._is_administrator = is_administrator
        self._clock = clock
        self._records: dict[str, CommodityRecord] = {}
        self._lock = threading.Lock()

    def _now(self) -> int:
        # last_fetched == 0 means never written
        now = int(self._clock())
        if now < 1:
            raise ValueError(f"clock must report epoch seconds >= 1, got {now}")
        return now

    def _get(self, symbol: str) -> CommodityRecord:
        # Caller holds the lock
        record = self._records.get(symbol)
        if record is None:
            raise UnknownSymbol(symbol)
        return record

    def register(self, symbol: str, feed_ref: str) -> None:
        """Register a symbol or rebind an existing one to another feed.

        Rebinding keeps the stored price and its timestamp.

        :param symbol: Commodity identifier.
        :param feed_ref: Reference understood by the cache's feed.
        :raises ValueError: If symbol is empty.
        """
        if not symbol:
            raise ValueError("Commodity symbol must not be empty")

        with self._lock:
            current = self._records.get(symbol)
            if current is None:
                self._records[symbol] = CommodityRecord.registered(symbol, feed_ref)
                logger.info(f"Registered {symbol} with feed {feed_ref}")
            elif current.feed_ref != feed_ref:
                self._records[symbol] = current.with_feed_ref(feed_ref)
                logger.info(f"Rebound {symbol} from {current.feed_ref} to {feed_ref}")

    async def fetch(self, symbol: str) -> CommodityRecord:
        """Refresh a symbol's price from its bound feed.

        :param symbol: Registered commodity identifier.
        :returns: The newly written record.
        :raises UnknownSymbol: If symbol is not registered.
        :raises FeedUnavailable: If the feed fails or reports no usable
            price. The stored record is left unchanged.
        """
        with self._lock:
            feed_ref = self._get(symbol).feed_ref

        try:
            price = await self.feed.latest_price(feed_ref)
        except FeedUnavailable as e:
            logger.warning(f"[{symbol}] Feed {feed_ref} unavailable: {e.reason}")
            raise FeedUnavailable(symbol, e.reason) from e
        except Exception as e:
            logger.warning(f"[{symbol}] Feed {feed_ref} raised {e!r}")
            raise FeedUnavailable(symbol, str(e) or type(e).__name__) from e

        if price is None:
            raise FeedUnavailable(symbol, "no data")
        if isinstance(price, bool) or not isinstance(price, int):
            raise FeedUnavailable(symbol, f"not an integer price: {price!r}")

        with self._lock:
            current = self._get(symbol)
            if current.feed_ref != feed_ref:
                raise FeedUnavailable(
                    symbol, f"feed rebound to {current.feed_ref} during fetch"
                )
            record = current.with_price(price, self._now())
            self._records[symbol] = record

        logger.info(f"[{symbol}] Fetched price {price} from {feed_ref}")
        return record

    def set_price_manually(self, symbol: str, value: int, caller: str) -> CommodityRecord:
        """Overwrite a symbol's price without consulting its feed.

        The write restarts the staleness window exactly like fetch().

        :param symbol: Registered commodity identifier.
        :param value: New price in feed units.
        :param caller: Identity performing the write.
        :returns: The newly written record.
        :raises Unauthorized: If caller is not an administrator.
        :raises UnknownSymbol: If symbol is not registered.
        :raises ValueError: If value is not a non-negative integer.
        """
        if not self._is_administrator(caller):
            logger.warning(f"[{symbol}] Manual price update rejected for {caller}")
            raise Unauthorized(symbol, caller)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"Price must be a non-negative integer, got {value!r}")

        with self._lock:
            record = self._get(symbol).with_price(value, self._now())
            self._records[symbol] = record

        logger.info(f"[{symbol}] Price manually set to {value} by {caller}")
        return record

    def is_valid(self, symbol: str) -> bool:
        """Check whether a symbol's price is inside the expiry window.

        :raises UnknownSymbol: If symbol is not registered.
        """
        with self._lock:
            record = self._get(symbol)
        return record.is_valid(self._now(), self.expiry_window)

    def get_valid_price(self, symbol: str) -> int:
        """Return a symbol's price, provided it is still fresh.

        :param symbol: Registered commodity identifier.
        :returns: The cached price.
        :raises UnknownSymbol: If symbol is not registered.
        :raises PriceExpired: If the price was never written or is stale.
        """
        with self._lock:
            record = self._get(symbol)
        if not record.is_valid(self._now(), self.expiry_window):
            raise PriceExpired(symbol, record.last_fetched)
        return record.price

    def get_record(self, symbol: str) -> CommodityRecord:
        """Return the raw record. Its price carries no freshness guarantee.

        :raises UnknownSymbol: If symbol is not registered.
        """
        with self._lock:
            return self._get(symbol)

    def state(self, symbol: str) -> RecordState:
        with self._lock:
            record = self._get(symbol)
        return record.state(self._now(), self.expiry_window)

    def symbols(self) -> list[str]:
        """Registered symbols in registration order."""
        with self._lock:
            return list(self._records)

    def __contains__(self, symbol: object) -> bool:
        with self._lock:
            return symbol in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
