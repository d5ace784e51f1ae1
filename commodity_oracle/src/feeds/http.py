"""JSON-over-HTTP price feed.

Feed reference format: ``<url>[#<dotted.path>]``. The URL must return a JSON
document; the optional fragment selects the price field, defaulting to a
top-level ``price`` key. Numeric path segments index into lists.

Examples:
    https://prices.example.com/gold.json
    https://api.example.com/v1/metals?symbol=XAU#data.0.price
"""

import logging
from typing import Any

from ..errors import FeedUnavailable
from .base import BasePriceFeed, coerce_price, register_feed

logger = logging.getLogger(__name__)


def split_feed_ref(feed_ref: str) -> tuple[str, list[str]]:
    """Split a feed reference into request URL and JSON path.

    :param feed_ref: Reference like ``https://host/p#data.price``.
    :returns: Tuple of (url, path segments).
    """
    url, _, fragment = feed_ref.partition("#")
    path = [part for part in (fragment or HttpPriceFeed.DEFAULT_FIELD).split(".") if part]
    return url, path


def _walk(document: Any, path: list[str]) -> Any:
    value = document
    for part in path:
        if isinstance(value, dict):
            value = value.get(part)
        elif isinstance(value, list) and part.isdigit() and int(part) < len(value):
            value = value[int(part)]
        else:
            return None
    return value


@register_feed
class HttpPriceFeed(BasePriceFeed):
    """Feed reading an integer price from a JSON endpoint.

    :ivar headers: Extra request headers (e.g., an API key header).
    """

    name = "http"
    DEFAULT_FIELD = "price"

    def __init__(
        self, headers: dict[str, str] | None = None, timeout: float | None = None
    ):
        super().__init__(timeout=timeout)
        self.headers = headers or {}

    async def latest_price(self, feed_ref: str) -> int:
        """Fetch the price from the endpoint named by ``feed_ref``.

        :param feed_ref: ``<url>[#<dotted.path>]`` reference.
        :returns: Current price.
        :raises FeedUnavailable: On request failure, invalid JSON, or a
            missing or non-integer price field.
        """
        url, path = split_feed_ref(feed_ref)
        if not url.startswith(("http://", "https://")):
            raise FeedUnavailable(feed_ref, f"not an HTTP URL: {url!r}")

        response = await self._get(url, headers=self.headers or None)
        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"[http] Invalid JSON from {url}: {e}")
            raise FeedUnavailable(feed_ref, "invalid JSON response") from e

        value = _walk(data, path)
        if value is None:
            logger.warning(f"[http] No '{'.'.join(path)}' in response from {url}")
        return coerce_price(feed_ref, value)
