import unittest
import sys
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock

import aiohttp

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from quicktrade.data.kalshi_client import KalshiAPIError
from quicktrade.data.market_discovery import (
    DISCOVERY_PAGE_SIZE,
    Market,
    calculate_remaining_seconds,
    fetch_open_markets,
    select_open_markets,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def iso(dt):
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


class TestMarketParsing(unittest.TestCase):
    def test_from_api(self):
        market = Market.from_api({
            "ticker": "KXBTC15M-26OCT181215-15",
            "event_ticker": "KXBTC15M-26OCT181215",
            "title": "BTC price up in next 15 mins?",
            "status": "active",
            "close_time": "2026-10-18T12:15:00Z",
            "yes_bid": 48,
            "yes_ask": 51,
            "no_bid": 49,
            "no_ask": None,
        })

        self.assertEqual(market.ticker, "KXBTC15M-26OCT181215-15")
        self.assertEqual(market.yes_ask, 51)
        self.assertEqual(market.no_ask, 0)

    def test_remaining_seconds(self):
        self.assertEqual(calculate_remaining_seconds("2026-10-18T12:15:00Z", now=NOW), 900)
        self.assertEqual(calculate_remaining_seconds("2026-10-18T11:00:00Z", now=NOW), 0)
        self.assertEqual(calculate_remaining_seconds("garbage", now=NOW), 0)


class TestSelectOpenMarkets(unittest.TestCase):
    def test_orders_by_close_time_and_limits(self):
        raw = [
            {"ticker": "LATER", "close_time": iso(NOW + timedelta(minutes=30))},
            {"ticker": "SOONER", "close_time": iso(NOW + timedelta(minutes=10))},
        ]

        markets = select_open_markets(raw, limit=1, now=NOW)

        self.assertEqual([m.ticker for m in markets], ["SOONER"])

    def test_drops_closed_and_tickerless(self):
        raw = [
            {"ticker": "CLOSED", "close_time": iso(NOW - timedelta(minutes=1))},
            {"close_time": iso(NOW + timedelta(minutes=5))},
            {"ticker": "OPEN", "close_time": iso(NOW + timedelta(minutes=5))},
        ]

        markets = select_open_markets(raw, limit=10, now=NOW)

        self.assertEqual([m.ticker for m in markets], ["OPEN"])


class TestFetchOpenMarkets(unittest.IsolatedAsyncioTestCase):
    async def test_queries_series(self):
        close = iso(datetime.now(timezone.utc) + timedelta(minutes=10))
        client = Mock()
        client.get = AsyncMock(return_value={"markets": [{"ticker": "ABC", "close_time": close}]})

        markets = await fetch_open_markets(client, "KXBTC15M", limit=1)

        self.assertEqual([m.ticker for m in markets], ["ABC"])
        path = client.get.await_args.args[0]
        params = client.get.await_args.kwargs["params"]
        self.assertEqual(path, "/markets")
        self.assertEqual(params["series_ticker"], "KXBTC15M")
        self.assertEqual(params["status"], "open")
        self.assertEqual(params["limit"], DISCOVERY_PAGE_SIZE)

    async def test_empty_response(self):
        client = Mock()
        client.get = AsyncMock(return_value={"markets": [], "cursor": ""})

        self.assertEqual(await fetch_open_markets(client, "KXBTC15M"), [])

    async def test_api_failure_returns_empty(self):
        for exc in (KalshiAPIError(401, "unauthorized"), aiohttp.ClientConnectionError("down")):
            client = Mock()
            client.get = AsyncMock(side_effect=exc)

            self.assertEqual(await fetch_open_markets(client, "KXBTC15M"), [])

    async def test_expired_first_market_is_skipped_before_limit(self):
        now = datetime.now(timezone.utc)
        client = Mock()
        client.get = AsyncMock(return_value={"markets": [
            {"ticker": "EXPIRED", "close_time": iso(now - timedelta(minutes=1))},
            {"ticker": "LIVE", "close_time": iso(now + timedelta(minutes=10))},
        ]})

        markets = await fetch_open_markets(client, "KXBTC15M", limit=1)

        self.assertEqual([m.ticker for m in markets], ["LIVE"])

    async def test_non_json_body_returns_empty(self):
        client = Mock()
        client.get = AsyncMock(side_effect=ValueError("Expecting value: line 1 column 1 (char 0)"))

        self.assertEqual(await fetch_open_markets(client, "KXBTC15M"), [])

    async def test_unexpected_body_shapes_return_empty(self):
        for body in (["ABC"], {"markets": "ABC"}, {"markets": None}):
            client = Mock()
            client.get = AsyncMock(return_value=body)

            self.assertEqual(await fetch_open_markets(client, "KXBTC15M"), [])

    async def test_non_object_market_entries_are_ignored(self):
        close = iso(datetime.now(timezone.utc) + timedelta(minutes=10))
        client = Mock()
        client.get = AsyncMock(return_value={"markets": ["ABC", None, {"ticker": "OK", "close_time": close}]})

        markets = await fetch_open_markets(client, "KXBTC15M")

        self.assertEqual([m.ticker for m in markets], ["OK"])


if __name__ == "__main__":
    unittest.main()
