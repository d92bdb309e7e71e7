"""
Order Manager
==============

Places buy and exit orders through the Kalshi portfolio API.

Every call returns an OrderResult instead of raising, so callers only
branch on success/failure.
"""

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any

import aiohttp
import structlog

from quicktrade.data.kalshi_client import KalshiAPIError

logger = structlog.get_logger()

SIDES = ("yes", "no")

# Selling at the floor price crosses any resting bid
EXIT_PRICE_CENTS = 1


@dataclass(frozen=True)
class OrderResult:
    """Outcome of an order call: an order id or an error description."""
    order_id: Optional[str] = None
    error: Optional[str] = None
    simulated: bool = False

    @classmethod
    def ok(cls, order_id: str, simulated: bool = False) -> "OrderResult":
        return cls(order_id=order_id, simulated=simulated)

    @classmethod
    def fail(cls, error: str) -> "OrderResult":
        return cls(error=error)

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ExecutionOptions:
    """
    Per-call execution flags.

    live=True sends the order to the exchange even when the manager
    was built in dry-run mode.
    """
    live: bool = False


class OrderManager:
    """
    Sends limit orders to Kalshi.

    Supports:
    - Limit buys at a fixed price in cents
    - Exit sells at the floor price
    - Dry-run simulation (no request sent) unless a call opts into live
    """

    def __init__(self, client, dry_run: bool = False):
        """
        Args:
            client: Entered KalshiClient
            dry_run: If True, simulate orders that are not flagged live
        """
        self.client = client
        self.dry_run = dry_run

        # Stats
        self.orders_placed = 0
        self.orders_simulated = 0
        self.orders_failed = 0

    def _is_simulated(self, options: Optional[ExecutionOptions]) -> bool:
        return self.dry_run and not (options and options.live)

    @staticmethod
    def build_order_payload(
        ticker: str,
        side: str,
        action: str,
        count: int,
        price_cents: int
    ) -> Dict[str, Any]:
        """Request body for POST /portfolio/orders."""
        payload = {
            "ticker": ticker,
            "client_order_id": str(uuid.uuid4()),
            "side": side,
            "action": action,
            "count": count,
            "type": "limit",
        }
        # Kalshi prices each side separately
        payload[f"{side}_price"] = price_cents
        return payload

    async def place_buy_order(
        self,
        ticker: str,
        side: str,
        count: int,
        price_cents: int,
        options: Optional[ExecutionOptions] = None
    ) -> OrderResult:
        """
        Place a limit buy.

        Args:
            ticker: Market ticker
            side: "yes" or "no"
            count: Number of contracts
            price_cents: Limit price (1-99)
            options: Execution flags for this call

        Returns:
            OrderResult with the exchange order id
        """
        return await self._submit(ticker, side, "buy", count, price_cents, options)

    async def place_sell_order(
        self,
        ticker: str,
        side: str,
        count: int,
        options: Optional[ExecutionOptions] = None
    ) -> OrderResult:
        """
        Exit a position by selling `count` contracts of `side` at the
        floor price.
        """
        return await self._submit(ticker, side, "sell", count, EXIT_PRICE_CENTS, options)

    async def _submit(
        self,
        ticker: str,
        side: str,
        action: str,
        count: int,
        price_cents: int,
        options: Optional[ExecutionOptions]
    ) -> OrderResult:
        if side not in SIDES:
            self.orders_failed += 1
            return OrderResult.fail(f"invalid side {side!r}, expected 'yes' or 'no'")

        if self._is_simulated(options):
            order_id = f"DRY_{datetime.now().timestamp()}"
            self.orders_simulated += 1

            logger.info(
                "dry_run_order",
                order_id=order_id,
                ticker=ticker,
                side=side,
                action=action,
                count=count,
                price_cents=price_cents
            )
            return OrderResult.ok(order_id, simulated=True)

        payload = self.build_order_payload(ticker, side, action, count, price_cents)

        try:
            response = await self.client.post("/portfolio/orders", payload)
        except (KalshiAPIError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            # ValueError: 2xx body that is not JSON
            self.orders_failed += 1
            logger.error(
                "order_exception",
                ticker=ticker,
                action=action,
                error=str(e)
            )
            return OrderResult.fail(str(e) or type(e).__name__)

        order = response.get("order") if isinstance(response, dict) else None
        order_id = order.get("order_id") if isinstance(order, dict) else None

        if not order_id:
            self.orders_failed += 1
            logger.error("order_failed", ticker=ticker, action=action, response=response)
            return OrderResult.fail(f"no order id in response: {response}")

        self.orders_placed += 1
        logger.info(
            "order_placed",
            order_id=order_id,
            ticker=ticker,
            side=side,
            action=action,
            count=count,
            price_cents=price_cents,
            status=order.get("status", "")
        )
        return OrderResult.ok(order_id)

    def get_stats(self) -> dict:
        """Return order manager statistics."""
        return {
            "dry_run": self.dry_run,
            "orders_placed": self.orders_placed,
            "orders_simulated": self.orders_simulated,
            "orders_failed": self.orders_failed,
        }
