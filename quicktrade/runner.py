"""
Quick-Trade Runner
===================

Buys the first open market in the configured series, waits, then
sells the same position.

USAGE:
    runner = QuickTradeRunner(settings, order_manager, fetch_markets)
    exit_code = await runner.run()
"""

import asyncio
import sys
from typing import Awaitable, Callable, List

import structlog

from quicktrade.data.market_discovery import Market
from quicktrade.execution.order_manager import ExecutionOptions

logger = structlog.get_logger()

SELL_DELAY_SECONDS = 5.0

MIN_PRICE_CENTS = 1
MAX_PRICE_CENTS = 99

PREFIX = "[Quick Trade]"


def clamp_price_cents(price_cents: int) -> int:
    """Clamp a limit price into the tradable range [1, 99]."""
    return max(MIN_PRICE_CENTS, min(MAX_PRICE_CENTS, price_cents))


def clamp_count(count: int) -> int:
    """At least one contract."""
    return max(1, count)


def report(message: str):
    print(f"{PREFIX} {message}", flush=True)


def report_error(message: str):
    print(f"{PREFIX} {message}", file=sys.stderr, flush=True)


class QuickTradeRunner:
    """
    One buy, a fixed pause, one sell.

    The sequence is linear and not idempotent: every run places new
    orders. Nothing is retried; the first failure ends the run.
    """

    def __init__(
        self,
        settings,
        order_manager,
        fetch_markets: Callable[[str, int], Awaitable[List[Market]]],
        force_live: bool = True,
        sell_delay_seconds: float = SELL_DELAY_SECONDS
    ):
        """
        Args:
            settings: Loaded Settings
            order_manager: OrderManager (or anything with the same
                place_buy_order / place_sell_order coroutines)
            fetch_markets: Coroutine (series_ticker, limit) -> markets
            force_live: Send both orders live regardless of
                settings.bot_dry_run
            sell_delay_seconds: Pause between a successful buy and the sell
        """
        self.settings = settings
        self.order_manager = order_manager
        self.fetch_markets = fetch_markets
        self.force_live = force_live
        self.sell_delay_seconds = sell_delay_seconds

    async def run(self) -> int:
        """
        Execute the buy/sell sequence.

        Returns:
            Process exit code: 0 when both orders were placed, 1 otherwise
        """
        series = self.settings.series_ticker

        report(f"Fetching open markets for series {series}...")
        markets = await self.fetch_markets(series, self.settings.bot_max_markets)

        if not markets:
            logger.error("no_markets_available", series=series)
            report_error(f"No open markets found for series {series}.")
            return 1

        ticker = markets[0].ticker
        side = self.settings.bot_side
        count = clamp_count(self.settings.bot_contracts)
        price_cents = clamp_price_cents(self.settings.bot_price_cents)

        # Overrides bot_dry_run while force_live is set
        options = ExecutionOptions(live=self.force_live)

        report(f"Market: {ticker}")
        report(f"Side: {side} (yes=up, no=down), count={count}, price={price_cents}c")
        report("Placing BUY...")

        buy = await self.order_manager.place_buy_order(
            ticker, side, count, price_cents, options
        )

        if not buy.success:
            logger.error("buy_failed", ticker=ticker, error=buy.error)
            report_error(f"Buy failed: {buy.error}")
            return 1

        report(f"Buy placed: {buy.order_id}")

        report(f"Waiting {self.sell_delay_seconds:g}s...")
        await asyncio.sleep(self.sell_delay_seconds)

        report("Placing SELL to exit...")
        sell = await self.order_manager.place_sell_order(
            ticker, side, count, options
        )

        if not sell.success:
            logger.error(
                "sell_failed",
                ticker=ticker,
                buy_order_id=buy.order_id,
                error=sell.error
            )
            report_error(f"Sell failed: {sell.error}")
            return 1

        report(f"Sell placed: {sell.order_id}")
        logger.info(
            "quick_trade_complete",
            ticker=ticker,
            buy_order_id=buy.order_id,
            sell_order_id=sell.order_id
        )
        report("Done.")
        return 0
