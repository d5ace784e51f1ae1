"""CommodityRecord: Immutable cached price entry for one commodity.

A record is never mutated in place. Every write builds a new record so the
price and its timestamp always travel together.

.. code-block:: python

    >>> record = CommodityRecord.registered("Gold", "0xC5981F461d74c46eB4b0CF3f4Ec79f025573B0Ea")
    >>> record.price, record.last_fetched
    (0, 0)
    >>> record = record.with_price(2000, now=1_700_000_000)
    >>> record.is_valid(now=1_700_000_060, expiry_window=86400)
    True
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class RecordState(Enum):
    """Lifecycle position of a registered record."""

    REGISTERED = "registered"
    FRESH = "fresh"
    STALE = "stale"


@dataclass(frozen=True)
class CommodityRecord:
    """Cached price for one commodity symbol.

    :ivar symbol: Unique commodity identifier (the cache key).
    :ivar feed_ref: Opaque reference to the bound price feed.
    :ivar price: Latest known price in feed units.
    :ivar last_fetched: Epoch seconds of the last price write, 0 if never.
    """

    symbol: str
    feed_ref: str
    price: int = 0
    last_fetched: int = 0

    @classmethod
    def registered(cls, symbol: str, feed_ref: str) -> CommodityRecord:
        """Create a freshly registered record that has never held a price."""
        return cls(symbol=symbol, feed_ref=feed_ref)

    def with_feed_ref(self, feed_ref: str) -> CommodityRecord:
        """Return a copy bound to another feed, keeping price and timestamp."""
        return replace(self, feed_ref=feed_ref)

    def with_price(self, price: int, now: int) -> CommodityRecord:
        """Return a copy holding ``price`` written at ``now``."""
        return replace(self, price=price, last_fetched=now)

    def is_valid(self, now: int, expiry_window: int) -> bool:
        """Check whether the price is inside the staleness window.

        :param now: Current epoch seconds.
        :param expiry_window: Window length in seconds.
        :returns: True if the record was written and is younger than the window.
        """
        if self.last_fetched == 0:
            return False
        return now - self.last_fetched < expiry_window

    def state(self, now: int, expiry_window: int) -> RecordState:
        if self.last_fetched == 0:
            return RecordState.REGISTERED
        if self.is_valid(now, expiry_window):
            return RecordState.FRESH
        return RecordState.STALE

    def age(self, now: int) -> int | None:
        """Seconds since the last write, or None if never written."""
        if self.last_fetched == 0:
            return None
        return now - self.last_fetched
