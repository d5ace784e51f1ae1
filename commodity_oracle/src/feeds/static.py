"""In-memory price feed.

Prices are keyed by feed reference and set by the process itself. Used for
local development and tests in place of a deployed mock aggregator.
"""

import logging

from ..errors import FeedUnavailable
from .base import BasePriceFeed, register_feed

logger = logging.getLogger(__name__)


@register_feed
class StaticPriceFeed(BasePriceFeed):
    """Feed answering from a local price table.

    :ivar prices: Dict mapping feed references to their current price.
    """

    name = "static"

    def __init__(
        self, prices: dict[str, int] | None = None, timeout: float | None = None
    ):
        super().__init__(timeout=timeout)
        self.prices: dict[str, int] = dict(prices or {})

    def set_latest_price(self, feed_ref: str, price: int) -> None:
        """Set the price reported for ``feed_ref``."""
        self.prices[feed_ref] = price
        logger.debug(f"[static] {feed_ref} set to {price}")

    def clear(self, feed_ref: str) -> None:
        """Forget ``feed_ref`` so later queries report no data."""
        self.prices.pop(feed_ref, None)

    async def latest_price(self, feed_ref: str) -> int:
        if feed_ref not in self.prices:
            raise FeedUnavailable(feed_ref, "no price set")
        return self.prices[feed_ref]
