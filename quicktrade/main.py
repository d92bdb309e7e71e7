"""
Kalshi Quick-Trade - Main Entry Point
======================================

Places one buy on the first open KXBTC15M market, waits five seconds,
then sells the same contracts.

USAGE:
    python -m quicktrade.main
    kalshi-quick-trade

IMPORTANT:
    1. Copy .env.example to .env and set KALSHI_API_KEY and
       KALSHI_PRIVATE_KEY_PATH
    2. Both orders are sent LIVE even when KALSHI_BOT_DRY_RUN=true
    3. Point KALSHI_API_BASE at the demo environment while testing
"""

import asyncio
import sys

from dotenv import load_dotenv
from pydantic import ValidationError

from config.settings import Settings, load_settings
from quicktrade.utils.logger import configure_logging, get_logger
from quicktrade.data.kalshi_client import KalshiClient
from quicktrade.data.market_discovery import fetch_open_markets
from quicktrade.execution.order_manager import OrderManager
from quicktrade.runner import QuickTradeRunner, clamp_count, clamp_price_cents

logger = get_logger(__name__)


def _print_startup_banner(settings: Settings, force_live: bool):
    mode = "DRY RUN" if settings.bot_dry_run else "LIVE"
    if force_live and settings.bot_dry_run:
        mode = "LIVE (dry-run setting overridden)"

    banner = f"""
==============================================================
  KALSHI QUICK TRADE
==============================================================
  Mode:      {mode}
  API:       {settings.api_base}
  Series:    {settings.series_ticker}
  Side:      {settings.bot_side}
  Price:     {clamp_price_cents(settings.bot_price_cents)}c
  Contracts: {clamp_count(settings.bot_contracts)}
==============================================================
"""
    print(banner)


async def run_quick_trade(settings: Settings, force_live: bool = True) -> int:
    """Wire the client, order manager and runner, then run once."""
    async with KalshiClient.from_settings(settings) as client:
        order_manager = OrderManager(client, dry_run=settings.bot_dry_run)

        async def fetch_markets(series_ticker: str, limit: int):
            return await fetch_open_markets(client, series_ticker, limit)

        runner = QuickTradeRunner(
            settings,
            order_manager,
            fetch_markets,
            force_live=force_live
        )

        try:
            return await runner.run()
        finally:
            logger.info(
                "quick_trade_stats",
                orders=order_manager.get_stats(),
                client=client.get_stats()
            )


def main() -> int:
    """Entry point. Returns the process exit code."""
    load_dotenv()
    configure_logging()

    try:
        settings = load_settings()
    except ValidationError as e:
        logger.error("invalid_settings", error=str(e))
        print(f"[Quick Trade] Invalid configuration:\n{e}", file=sys.stderr)
        return 1

    configure_logging(level=settings.log_level, json_output=settings.log_json)

    force_live = True
    if settings.bot_dry_run:
        logger.warning(
            "dry_run_overridden",
            message="KALSHI_BOT_DRY_RUN is set but quick trade places live orders"
        )

    _print_startup_banner(settings, force_live)

    try:
        return asyncio.run(run_quick_trade(settings, force_live=force_live))
    except KeyboardInterrupt:
        logger.info("keyboard_interrupt")
        return 1
    except Exception as e:
        logger.error("quick_trade_crashed", error=str(e), exc_info=True)
        print(f"[Quick Trade] {type(e).__name__}: {e}", file=sys.stderr)
        return 1


def cli():
    sys.exit(main())


if __name__ == "__main__":
    cli()
