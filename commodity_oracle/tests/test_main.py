"""Unit tests for the CLI helpers and entry point."""

import asyncio
import sys
from unittest.mock import patch

import pytest

from commodity_oracle.main import (
    build_cache,
    build_feed,
    main,
    parse_assignments,
    parse_prices,
    run_once,
)
from commodity_oracle.src.AccessControl import Ownable
from commodity_oracle.src.CacheRefresher import CacheRefresher
from commodity_oracle.src.errors import UnknownSymbol
from commodity_oracle.src.feeds import ChainlinkPriceFeed, HttpPriceFeed, StaticPriceFeed


class TestParseAssignments:
    """Test SYMBOL=VALUE parsing."""

    def test_basic(self) -> None:
        """Pairs should be split on the first '=' and keep name case."""
        assert parse_assignments("GOLD=0xabc, Silver = 0xdef") == {
            "GOLD": "0xabc",
            "Silver": "0xdef",
        }

    def test_values_may_contain_equals(self) -> None:
        """URL query strings should survive parsing."""
        assert parse_assignments("GOLD=https://x/p?s=XAU#price") == {
            "GOLD": "https://x/p?s=XAU#price"
        }

    @pytest.mark.parametrize("value", [None, "", "GOLD", "=0xabc"])
    def test_ignored_items(self, value) -> None:
        """Empty input and malformed items should yield nothing."""
        assert parse_assignments(value) == {}

    def test_parse_prices(self) -> None:
        """Prices should be parsed as integers."""
        assert parse_prices("GOLD=3000,SILVER=25") == {"GOLD": 3000, "SILVER": 25}

    def test_parse_prices_rejects_decimals(self) -> None:
        """Decimal prices should be rejected."""
        with pytest.raises(ValueError, match="GOLD must be an integer"):
            parse_prices("GOLD=30.5")


class TestBuilders:
    """Test feed and cache construction."""

    def test_build_static_feed(self) -> None:
        """The static feed should be seeded with configured prices."""
        feed = build_feed("static", "sepolia", 5.0, {"xau": 2000})
        assert isinstance(feed, StaticPriceFeed)
        assert feed.prices == {"xau": 2000}
        assert feed.timeout == 5.0

    def test_build_http_feed(self) -> None:
        """The http feed needs no extra configuration."""
        assert isinstance(build_feed("http", "sepolia", 5.0), HttpPriceFeed)

    @patch("commodity_oracle.main.ContractUtility")
    def test_build_chainlink_feed(self, mock_utility) -> None:
        """The chainlink feed should use the network's Web3 instance."""
        feed = build_feed("chainlink", "localnet", 5.0)

        mock_utility.assert_called_once_with("localnet")
        assert isinstance(feed, ChainlinkPriceFeed)
        assert feed.w3 is mock_utility.return_value.w3

    def test_build_cache_applies_manual_prices(self) -> None:
        """Manual prices should be written by the owner and be valid."""
        cache = build_cache(
            feed=StaticPriceFeed(),
            owner=Ownable("operator"),
            commodities={"GOLD": "xau", "SILVER": "xag"},
            manual_prices={"SILVER": 25},
        )

        assert cache.symbols() == ["GOLD", "SILVER"]
        assert cache.get_valid_price("SILVER") == 25
        assert cache.is_valid("GOLD") is False

    def test_build_cache_unknown_manual_symbol(self) -> None:
        """Manual prices for unregistered symbols should fail."""
        with pytest.raises(UnknownSymbol):
            build_cache(
                feed=StaticPriceFeed(),
                owner=Ownable("operator"),
                commodities={"GOLD": "xau"},
                manual_prices={"SILVER": 25},
            )


class TestRunOnce:
    """Test the single-refresh mode."""

    def test_all_valid(self) -> None:
        """Exit code 0 when every symbol ends up fresh."""
        cache = build_cache(StaticPriceFeed({"xau": 2000}), Ownable("operator"), {"GOLD": "xau"})
        assert asyncio.run(run_once(CacheRefresher(cache))) == 0
        assert cache.get_valid_price("GOLD") == 2000

    def test_some_invalid(self) -> None:
        """Exit code 1 when a symbol could not be refreshed."""
        cache = build_cache(
            StaticPriceFeed({"xau": 2000}),
            Ownable("operator"),
            {"GOLD": "xau", "SILVER": "xag"},
        )
        assert asyncio.run(run_once(CacheRefresher(cache))) == 1


class TestMain:
    """Test the CLI entry point."""

    def run_main(self, *argv: str) -> int:
        with patch.object(sys, "argv", ["commodity-oracle", *argv]):
            with pytest.raises(SystemExit) as exc_info:
                main()
        return exc_info.value.code

    def test_once_with_static_feed(self) -> None:
        """--once should refresh and exit with the validity status."""
        code = self.run_main(
            "--feed", "static",
            "--commodities", "GOLD=xau,SILVER=xag",
            "--static-prices", "xau=2000",
            "--manual-prices", "SILVER=25",
            "--once",
        )
        assert code == 0

    def test_unknown_feed(self) -> None:
        """Unknown feeds should be a usage error."""
        assert self.run_main("--feed", "pyth") == 2

    def test_manual_price_for_unknown_symbol(self) -> None:
        """Manual prices must name configured commodities."""
        code = self.run_main(
            "--feed", "static",
            "--commodities", "GOLD=xau",
            "--manual-prices", "SILVER=25",
            "--once",
        )
        assert code == 2

    def test_negative_manual_price(self) -> None:
        """Negative manual prices should be a usage error."""
        code = self.run_main(
            "--feed", "static",
            "--commodities", "GOLD=xau",
            "--manual-prices", "GOLD=-5",
            "--once",
        )
        assert code == 2

    def test_invalid_expiry_window(self) -> None:
        """The expiry window must be positive."""
        assert self.run_main("--feed", "static", "--expiry-window", "0") == 2

    def test_invalid_static_price(self) -> None:
        """Non-integer prices should be a usage error."""
        code = self.run_main("--feed", "static", "--static-prices", "xau=1.5", "--once")
        assert code == 2
