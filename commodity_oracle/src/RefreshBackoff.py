"""RefreshBackoff: Per-symbol failure tracking with exponential backoff.

When a symbol's feed fails during a scheduled refresh, the symbol sits out
the following refresh cycles for a backoff period. The period doubles with
each consecutive failure, up to a maximum (default 5 minutes). A successful
fetch resets the counter.

This only paces the background refresher. Callers of the cache itself see
every failure immediately.

.. code-block:: python

    >>> backoff = RefreshBackoff()
    >>> backoff.record_failure("Gold")
    5.0
    >>> backoff.record_failure("Gold")
    10.0
    >>> backoff.record_success("Gold")
    >>> backoff.get_status("Gold").consecutive_failures
    0
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable


@dataclass
class BackoffStatus:
    """Refresh health of a single symbol.

    :ivar consecutive_failures: Number of consecutive failed refreshes.
    :ivar backoff_until: Epoch seconds when the backoff period ends.
    :ivar total_failures: Failed refreshes since tracking began.
    :ivar total_successes: Successful refreshes since tracking began.
    """

    consecutive_failures: int = 0
    backoff_until: float = 0.0
    total_failures: int = 0
    total_successes: int = 0


class RefreshBackoff:
    """Tracks refresh failures per symbol and decides who may be retried.

    :ivar base_backoff_seconds: Backoff duration after the first failure.
    :ivar max_backoff_seconds: Upper bound of the backoff duration.
    """

    DEFAULT_BASE_BACKOFF_SECONDS = 5.0
    DEFAULT_MAX_BACKOFF_SECONDS = 300.0  # 5 minutes

    def __init__(
        self,
        base_backoff_seconds: float = DEFAULT_BASE_BACKOFF_SECONDS,
        max_backoff_seconds: float = DEFAULT_MAX_BACKOFF_SECONDS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Initialize the backoff tracker.

        :param base_backoff_seconds: Backoff duration after the first failure.
        :param max_backoff_seconds: Maximum backoff (caps exponential growth).
        :param clock: Source of epoch seconds (default: time.time).
        """
        self.base_backoff_seconds = float(base_backoff_seconds)
        self.max_backoff_seconds = float(max_backoff_seconds)
        self._clock = clock or time.time
        self._status: dict[str, BackoffStatus] = {}

    def record_failure(self, symbol: str) -> float:
        """Record a failed refresh and start the next backoff period.

        :param symbol: Symbol whose refresh failed.
        :returns: The backoff duration in seconds.
        """
        status = self._status.setdefault(symbol, BackoffStatus())
        status.consecutive_failures += 1
        status.total_failures += 1

        # base * 2^(failures-1), capped at max
        backoff_seconds = min(
            self.base_backoff_seconds * (2 ** (status.consecutive_failures - 1)),
            self.max_backoff_seconds,
        )
        status.backoff_until = self._clock() + backoff_seconds
        return backoff_seconds

    def record_success(self, symbol: str) -> None:
        """Record a successful refresh, clearing any backoff."""
        status = self._status.setdefault(symbol, BackoffStatus())
        status.consecutive_failures = 0
        status.backoff_until = 0.0
        status.total_successes += 1

    def is_active(self, symbol: str) -> bool:
        """Check whether a symbol may be refreshed now.

        Symbols that never failed are always active.
        """
        status = self._status.get(symbol)
        return status is None or self._clock() >= status.backoff_until

    def get_active(self, symbols: Iterable[str]) -> list[str]:
        """Filter ``symbols`` down to those not in backoff, keeping order."""
        return [s for s in symbols if self.is_active(s)]

    def get_backoff_remaining(self, symbol: str) -> float:
        """Seconds left in the symbol's backoff, or 0 if not in backoff."""
        status = self._status.get(symbol)
        if status is None:
            return 0.0
        return max(0.0, status.backoff_until - self._clock())

    def get_status(self, symbol: str) -> BackoffStatus | None:
        return self._status.get(symbol)

    def reset(self, symbol: str | None = None) -> None:
        """Forget failures for one symbol, or for all when symbol is None."""
        if symbol is None:
            self._status.clear()
        else:
            self._status.pop(symbol, None)
