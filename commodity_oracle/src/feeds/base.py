"""Base price feed interface and shared HTTP client management.

All price feeds inherit from BasePriceFeed and implement latest_price().
A feed answers for any feed reference it understands (a contract address,
a URL, an in-memory key) and always returns a single integer price in its
own units. A shared httpx.AsyncClient is used across all HTTP-backed feeds
to avoid connection overhead.

.. code-block:: python

    @register_feed
    class MyFeed(BasePriceFeed):
        name = "myfeed"

        async def latest_price(self, feed_ref: str) -> int:
            response = await self._get(f"https://api.example.com/{feed_ref}")
            return int(response.json()["price"])
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

import httpx

from ..errors import FeedUnavailable

logger = logging.getLogger(__name__)


class FeedHTTPError(FeedUnavailable):
    """Raised when an HTTP feed request returns a non-2xx status.

    :ivar status_code: HTTP status code from the failed request.
    """

    def __init__(self, feed_ref: str, status_code: int, message: str):
        """Initialize the HTTP error.

        :param feed_ref: Feed reference that was queried.
        :param status_code: HTTP status code.
        :param message: Error message from response.
        """
        self.status_code = status_code
        super().__init__(feed_ref, f"HTTP {status_code}: {message}")


class BasePriceFeed(ABC):
    """Abstract base class for price feeds.

    Subclasses must implement:
        - name: Class variable identifying the feed kind (e.g., "chainlink")
        - latest_price(): Async method returning the current integer price

    :cvar name: Unique identifier for this feed kind.
    :cvar DEFAULT_TIMEOUT: Default HTTP request timeout in seconds.
    :ivar timeout: Request timeout in seconds.
    """

    # Class-level shared HTTP client
    _shared_client: ClassVar[httpx.AsyncClient | None] = None

    name: ClassVar[str] = ""

    DEFAULT_TIMEOUT = 10.0

    def __init__(self, timeout: float | None = None):
        """Initialize the feed.

        :param timeout: Request timeout in seconds (default: 10).
        """
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    @classmethod
    def get_shared_client(cls) -> httpx.AsyncClient:
        """Get or create the shared HTTP client.

        :returns: Shared httpx.AsyncClient instance.
        """
        # Stored on BasePriceFeed so every subclass shares one client
        if BasePriceFeed._shared_client is None or BasePriceFeed._shared_client.is_closed:
            BasePriceFeed._shared_client = httpx.AsyncClient(
                timeout=httpx.Timeout(30.0, connect=10.0),
                limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
                follow_redirects=True,
            )
        return BasePriceFeed._shared_client

    @classmethod
    async def close_shared_client(cls) -> None:
        """Close the shared HTTP client."""
        client = BasePriceFeed._shared_client
        if client is not None and not client.is_closed:
            await client.aclose()
        BasePriceFeed._shared_client = None

    @abstractmethod
    async def latest_price(self, feed_ref: str) -> int:
        """Fetch the current price behind a feed reference.

        :param feed_ref: Opaque reference understood by this feed.
        :returns: Current price as an integer in feed units.
        :raises FeedUnavailable: If the feed cannot provide a price.
        """
        pass

    async def _get(
        self,
        url: str,
        *,
        params: dict | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        """Make an HTTP GET request using the shared client.

        :param url: Request URL.
        :param params: Optional query parameters.
        :param headers: Optional request headers.
        :returns: httpx.Response object.
        :raises FeedHTTPError: On non-2xx response.
        :raises FeedUnavailable: On network/timeout errors.
        """
        client = self.get_shared_client()
        try:
            response = await client.get(
                url,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise FeedUnavailable(url, f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise FeedUnavailable(url, f"Request failed: {e}") from e

        if not response.is_success:
            logger.debug(
                "HTTP GET %s failed with status %s: %s",
                url,
                response.status_code,
                response.text[:200],
            )
            raise FeedHTTPError(url, response.status_code, response.text[:200])
        return response


def coerce_price(feed_ref: str, value: Any) -> int:
    """Convert a raw feed value into an integer price.

    Integers and integral strings are accepted as-is; no decimal scaling is
    applied.

    :param feed_ref: Feed reference, used in error messages.
    :param value: Raw value reported by the feed.
    :returns: The value as int.
    :raises FeedUnavailable: If the value is missing or not an integer.
    """
    if value is None:
        raise FeedUnavailable(feed_ref, "no data")
    if isinstance(value, bool):
        raise FeedUnavailable(feed_ref, f"not an integer price: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise FeedUnavailable(feed_ref, f"not an integer price: {value!r}")


# Registry of available feeds (populated by subclass imports)
FEED_REGISTRY: dict[str, type[BasePriceFeed]] = {}


def register_feed(cls: type[BasePriceFeed]) -> type[BasePriceFeed]:
    """Decorator to register a feed class in the global registry.

    :param cls: Feed class to register.
    :returns: The registered class (unchanged).
    :raises ValueError: If feed has no name defined.
    """
    if not cls.name:
        raise ValueError(f"Feed {cls.__name__} must define a 'name' class variable")
    FEED_REGISTRY[cls.name] = cls
    return cls


def get_feed(name: str, **kwargs: Any) -> BasePriceFeed:
    """Get a feed instance by name.

    :param name: Feed name (e.g., "chainlink", "http").
    :param kwargs: Constructor arguments for the feed class.
    :returns: Feed instance.
    :raises ValueError: If feed name is unknown.
    """
    if name not in FEED_REGISTRY:
        available = ", ".join(sorted(FEED_REGISTRY.keys()))
        raise ValueError(f"Unknown feed '{name}'. Available: {available}")
    return FEED_REGISTRY[name](**kwargs)


def get_available_feeds() -> list[str]:
    """Get list of available feed names.

    :returns: Sorted list of registered feed names.
    """
    return sorted(FEED_REGISTRY.keys())
