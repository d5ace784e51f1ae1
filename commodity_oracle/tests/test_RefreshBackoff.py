"""Unit tests for RefreshBackoff."""

from unittest.mock import patch

from commodity_oracle.src.RefreshBackoff import BackoffStatus, RefreshBackoff


class TestRefreshBackoffFailures:
    """Test failure recording and backoff growth."""

    def test_first_failure_backoff(self) -> None:
        """First failure should use base backoff."""
        backoff = RefreshBackoff(base_backoff_seconds=5.0)

        assert backoff.record_failure("Gold") == 5.0
        status = backoff.get_status("Gold")
        assert status.consecutive_failures == 1
        assert status.total_failures == 1

    def test_exponential_backoff(self) -> None:
        """Backoff should double with each consecutive failure."""
        backoff = RefreshBackoff(base_backoff_seconds=5.0)

        assert [backoff.record_failure("Gold") for _ in range(4)] == [5.0, 10.0, 20.0, 40.0]

    def test_max_backoff_cap(self) -> None:
        """Backoff should be capped at max_backoff_seconds."""
        backoff = RefreshBackoff(base_backoff_seconds=100.0, max_backoff_seconds=150.0)

        assert backoff.record_failure("Gold") == 100.0
        assert backoff.record_failure("Gold") == 150.0
        assert backoff.record_failure("Gold") == 150.0

    def test_symbols_tracked_independently(self) -> None:
        """One symbol's failures should not affect another."""
        backoff = RefreshBackoff(base_backoff_seconds=60.0)
        backoff.record_failure("Gold")

        assert backoff.get_active(["Gold", "Silver"]) == ["Silver"]
        assert backoff.get_status("Silver") is None


class TestRefreshBackoffSuccess:
    """Test success recording."""

    def test_success_resets_consecutive_failures(self) -> None:
        """Success should clear the backoff but keep totals."""
        backoff = RefreshBackoff()
        backoff.record_failure("Gold")
        backoff.record_failure("Gold")
        backoff.record_success("Gold")

        status = backoff.get_status("Gold")
        assert status == BackoffStatus(
            consecutive_failures=0,
            backoff_until=0.0,
            total_failures=2,
            total_successes=1,
        )
        assert backoff.is_active("Gold") is True

    def test_backoff_restarts_after_success(self) -> None:
        """After a success the next failure uses the base backoff again."""
        backoff = RefreshBackoff(base_backoff_seconds=5.0)
        backoff.record_failure("Gold")
        backoff.record_failure("Gold")
        backoff.record_success("Gold")

        assert backoff.record_failure("Gold") == 5.0


class TestRefreshBackoffTiming:
    """Test time-based activity checks."""

    def test_injected_clock(self) -> None:
        """Symbols become active again once the backoff has elapsed."""
        now = [1000.0]
        backoff = RefreshBackoff(base_backoff_seconds=10.0, clock=lambda: now[0])
        backoff.record_failure("Gold")

        now[0] = 1005.0
        assert backoff.is_active("Gold") is False
        assert backoff.get_backoff_remaining("Gold") == 5.0

        now[0] = 1010.0  # Exactly at backoff_until
        assert backoff.is_active("Gold") is True
        assert backoff.get_backoff_remaining("Gold") == 0.0

    @patch("commodity_oracle.src.RefreshBackoff.time.time")
    def test_default_clock_is_wall_time(self, mock_time) -> None:
        """Without an injected clock, time.time should drive backoff."""
        mock_time.return_value = 2000.0
        backoff = RefreshBackoff(base_backoff_seconds=30.0)
        backoff.record_failure("Gold")

        assert backoff.get_status("Gold").backoff_until == 2030.0

    def test_unknown_symbol_is_active(self) -> None:
        """Symbols that never failed are always active."""
        backoff = RefreshBackoff()
        assert backoff.is_active("Gold") is True
        assert backoff.get_backoff_remaining("Gold") == 0.0

    def test_reset(self) -> None:
        """reset should forget one symbol or all of them."""
        backoff = RefreshBackoff(base_backoff_seconds=60.0)
        backoff.record_failure("Gold")
        backoff.record_failure("Silver")

        backoff.reset("Gold")
        assert backoff.get_active(["Gold", "Silver"]) == ["Gold"]

        backoff.reset()
        assert backoff.get_active(["Gold", "Silver"]) == ["Gold", "Silver"]
