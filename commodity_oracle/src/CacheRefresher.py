"""CacheRefresher: Periodic background refresh of every registered symbol.

Architecture:
    - One loop refreshes all registered symbols every refresh_period
    - Symbols are fetched concurrently, each bounded by fetch_timeout
    - Symbols whose feed failed enter exponential backoff
    - A timed-out fetch is cancelled before it writes, so the cache keeps
      its previous value
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .errors import FeedUnavailable
from .feeds import BasePriceFeed
from .RefreshBackoff import RefreshBackoff

if TYPE_CHECKING:
    from .CommodityPriceCache import CommodityPriceCache

logger = logging.getLogger(__name__)


class CacheRefresher:
    """Keeps a CommodityPriceCache fresh by polling its feed.

    :ivar cache: Cache being refreshed.
    :ivar refresh_period: Seconds between refresh cycles.
    :ivar fetch_timeout: Timeout for a single symbol's fetch in seconds.
    :ivar backoff: Per-symbol failure tracker.
    """

    def __init__(
        self,
        cache: CommodityPriceCache,
        refresh_period: int = 3600,
        fetch_timeout: float = 10.0,
        backoff: RefreshBackoff | None = None,
    ) -> None:
        """Initialize the refresher.

        :param cache: Cache to refresh.
        :param refresh_period: Seconds between cycles (minimum: 1, default: 3600).
        :param fetch_timeout: Per-fetch timeout in seconds (default: 10.0).
        :param backoff: Optional backoff tracker (default: a new RefreshBackoff).
        """
        self.cache = cache
        self.refresh_period = max(1, refresh_period)
        self.fetch_timeout = fetch_timeout
        self.backoff = backoff or RefreshBackoff()

    async def _refresh_symbol(self, symbol: str) -> int | None:
        """Fetch one symbol, updating its backoff state.

        :param symbol: Registered symbol to refresh.
        :returns: New price, or None if the fetch failed.
        """
        try:
            record = await asyncio.wait_for(
                self.cache.fetch(symbol), timeout=self.fetch_timeout
            )
        except asyncio.TimeoutError:
            backoff = self.backoff.record_failure(symbol)
            logger.warning(
                f"[{symbol}] Fetch timed out after {self.fetch_timeout}s, "
                f"backing off {backoff:.0f}s"
            )
            return None
        except FeedUnavailable as e:
            backoff = self.backoff.record_failure(symbol)
            logger.warning(f"[{symbol}] Refresh failed ({e.reason}), backing off {backoff:.0f}s")
            return None

        self.backoff.record_success(symbol)
        return record.price

    async def refresh_once(self) -> dict[str, int | None]:
        """Refresh every registered symbol that is not in backoff.

        :returns: Dict mapping each attempted symbol to its new price, or
            None where the fetch failed.
        """
        symbols = self.cache.symbols()
        active = self.backoff.get_active(symbols)

        skipped = len(symbols) - len(active)
        if skipped:
            logger.debug(f"Skipping {skipped} symbols in backoff")
        if not active:
            return {}

        prices = await asyncio.gather(*(self._refresh_symbol(s) for s in active))
        results = dict(zip(active, prices, strict=True))

        refreshed = sum(1 for p in prices if p is not None)
        logger.info(f"Refreshed {refreshed}/{len(active)} symbols")
        return results

    async def run(self) -> None:
        """Refresh forever, once every refresh_period seconds."""
        logger.info(
            f"Starting refresh loop for {len(self.cache)} symbols "
            f"every {self.refresh_period}s"
        )
        try:
            while True:
                await self.refresh_once()
                await asyncio.sleep(self.refresh_period)
        finally:
            # Clean up shared HTTP client
            await BasePriceFeed.close_shared_client()
