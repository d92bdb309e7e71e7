"""
Market Discovery
=================

Finds open markets in a Kalshi series (KXBTC15M by default: the
Bitcoin 15-minute up/down contracts).
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

import aiohttp
import structlog

from quicktrade.data.kalshi_client import KalshiAPIError

logger = structlog.get_logger()

# Kalshi caps page size at 1000
MAX_PAGE_SIZE = 1000
DISCOVERY_PAGE_SIZE = 100


@dataclass(frozen=True)
class Market:
    """An open Kalshi market. Prices are in cents."""
    ticker: str
    event_ticker: str = ""
    title: str = ""
    status: str = ""
    close_time: str = ""
    yes_bid: int = 0
    yes_ask: int = 0
    no_bid: int = 0
    no_ask: int = 0

    @classmethod
    def from_api(cls, data: dict) -> "Market":
        def cents(key):
            try:
                return int(data.get(key) or 0)
            except (TypeError, ValueError):
                return 0

        return cls(
            ticker=data.get("ticker", ""),
            event_ticker=data.get("event_ticker", ""),
            title=data.get("title", ""),
            status=data.get("status", ""),
            close_time=data.get("close_time", ""),
            yes_bid=cents("yes_bid"),
            yes_ask=cents("yes_ask"),
            no_bid=cents("no_bid"),
            no_ask=cents("no_ask"),
        )


def parse_close_time(close_time: str) -> Optional[datetime]:
    """Parse an ISO-8601 close time ("2026-10-18T12:15:00Z")."""
    if not close_time:
        return None
    try:
        return datetime.fromisoformat(close_time.replace("Z", "+00:00"))
    except ValueError:
        return None


def calculate_remaining_seconds(close_time: str, now: Optional[datetime] = None) -> int:
    """
    Seconds until the market closes (0 if closed or unparseable).
    """
    close_dt = parse_close_time(close_time)
    if close_dt is None:
        return 0

    now = now or datetime.now(timezone.utc)
    return max(0, int((close_dt - now).total_seconds()))


def select_open_markets(
    raw_markets: List[dict],
    limit: int,
    now: Optional[datetime] = None
) -> List[Market]:
    """
    Turn raw API market dicts into Market records.

    Drops entries without a ticker and markets whose close time has
    already passed, then orders by close time (soonest first).
    """
    now = now or datetime.now(timezone.utc)
    markets = []

    for raw in raw_markets:
        if not isinstance(raw, dict):
            continue

        market = Market.from_api(raw)
        if not market.ticker:
            continue

        close_dt = parse_close_time(market.close_time)
        if close_dt is not None and close_dt <= now:
            logger.debug("market_skipped_closed", ticker=market.ticker)
            continue

        markets.append(market)

    markets.sort(key=lambda m: m.close_time or "~")
    return markets[:max(limit, 1)]


async def fetch_open_markets(
    client,
    series_ticker: str,
    limit: int = 1
) -> List[Market]:
    """
    Fetch currently open markets for a series.

    A full page is requested so expired entries can be dropped before
    `limit` is applied.

    Args:
        client: Entered KalshiClient
        series_ticker: Series to query, e.g. "KXBTC15M"
        limit: Maximum number of markets to return

    Returns:
        Open markets, soonest close first. Empty on any API failure.
    """
    logger.info("discovering_open_markets", series=series_ticker, limit=limit)

    params = {
        "series_ticker": series_ticker,
        "status": "open",
        "limit": min(max(limit, DISCOVERY_PAGE_SIZE), MAX_PAGE_SIZE),
    }

    try:
        data = await client.get("/markets", params=params)
    except (KalshiAPIError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        # ValueError: 2xx body that is not JSON
        logger.error("market_discovery_error", series=series_ticker, error=str(e))
        return []

    raw_markets = data.get("markets") if isinstance(data, dict) else None
    if not isinstance(raw_markets, list):
        logger.error("market_discovery_bad_response", series=series_ticker, response=str(data)[:200])
        return []

    markets = select_open_markets(raw_markets, limit)

    logger.info(
        "discovered_markets",
        series=series_ticker,
        count=len(markets),
        tickers=[m.ticker for m in markets]
    )
    return markets
