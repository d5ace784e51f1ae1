"""Error taxonomy for the commodity price cache.

Every cache operation either applies its full effect or raises one of these
errors and leaves the cache untouched. ``retryable`` tells callers whether
trying again later can succeed without changing the request.
"""

from typing import ClassVar


class PriceCacheError(Exception):
    """Base exception for price cache errors.

    :ivar symbol: Commodity symbol the failed operation referenced.
    """

    retryable: ClassVar[bool] = False

    def __init__(self, symbol: str, message: str):
        """Initialize the error.

        :param symbol: Commodity symbol the operation referenced.
        :param message: Human readable description.
        """
        self.symbol = symbol
        super().__init__(message)


class UnknownSymbol(PriceCacheError):
    """Raised when an operation references a symbol that was never registered."""

    def __init__(self, symbol: str):
        super().__init__(symbol, f"Unknown commodity symbol '{symbol}'")


class FeedUnavailable(PriceCacheError):
    """Raised when the external feed query fails or returns no data."""

    retryable = True

    def __init__(self, symbol: str, reason: str):
        """Initialize the error.

        :param symbol: Commodity symbol, or the feed reference when raised
            by a feed that does not know which symbol it serves.
        :param reason: Why the feed could not provide a price.
        """
        self.reason = reason
        super().__init__(symbol, f"Feed unavailable for '{symbol}': {reason}")


class Unauthorized(PriceCacheError):
    """Raised when a non-administrator attempts a privileged write.

    ``symbol`` names the protected resource: a commodity symbol for price
    overrides, or ``"ownership"`` for Ownable.transfer_ownership().

    :ivar caller: Identity that attempted the write.
    """

    def __init__(self, symbol: str, caller: str):
        self.caller = caller
        super().__init__(symbol, f"Caller '{caller}' is not allowed to set '{symbol}'")


class PriceExpired(PriceCacheError):
    """Raised when a registered symbol's price is outside the staleness window."""

    retryable = True

    def __init__(self, symbol: str, last_fetched: int):
        self.last_fetched = last_fetched
        super().__init__(symbol, f"Price has expired for '{symbol}'")
