"""Quote refresh loop: cancel resting orders and requote around the mid."""

from __future__ import annotations

import logging
import time
from decimal import Decimal

from nadomm.config_loader import QuotingConfig, RiskConfig
from nadomm.constants import OrderSide, TickOutcome
from nadomm.exchange.base import ExchangeClient
from nadomm.exchange.errors import ExchangeError, RateLimitError
from nadomm.exchange.models import OrderRequest
from nadomm.quoting.backoff import TickBackoff
from nadomm.quoting.context import MakerContext
from nadomm.quoting.pricing import compute_quote_prices

logger = logging.getLogger(__name__)


class QuoteRefresher:
    """
    One tick of the quoting loop.

    Per tick:
    1. Skip if the last known balance is below the minimum.
    2. If any configured product has no mid yet, fetch prices and stop.
    3. Cancel all resting orders on the configured products. "Nothing to
       cancel" is fine; any other error ends the tick.
    4. Place a buy below and a sell above the mid for each product, each side
       independently.

    Rate limiting on any call widens the tick period via TickBackoff; a clean
    tick resets it.
    """

    def __init__(
        self,
        client: ExchangeClient,
        context: MakerContext,
        quoting_config: QuotingConfig,
        risk_config: RiskConfig,
        backoff: TickBackoff,
    ):
        self.client = client
        self.context = context
        self.config = quoting_config
        self.risk = risk_config
        self.backoff = backoff

        self.ticks = 0
        self.orders_placed = 0
        self.orders_failed = 0

    @property
    def interval(self) -> float:
        """Current tick period; fed to the scheduler before each re-arm."""
        return self.backoff.interval

    def _expiration(self) -> int:
        return int(time.time()) + self.config.order_ttl_seconds

    async def fetch_prices(self) -> bool:
        """Refresh quotes for all products. Returns False on error."""
        try:
            prices = await self.client.get_latest_prices(self.config.product_ids)
        except RateLimitError:
            self.backoff.on_rate_limited()
            return False
        except ExchangeError as e:
            logger.warning(f"Price fetch failed: {e}")
            return False
        self.context.update_prices(prices)
        return True

    async def run_tick(self) -> TickOutcome:
        self.ticks += 1

        if self.context.balance < self.risk.min_balance:
            return TickOutcome.SKIPPED_LOW_BALANCE

        if not self.context.has_all_prices:
            if await self.fetch_prices():
                self.backoff.on_success()
            return TickOutcome.FETCHED_PRICES

        try:
            await self.client.cancel_product_orders(self.config.product_ids)
        except RateLimitError:
            self.backoff.on_rate_limited()
            return TickOutcome.RATE_LIMITED
        except ExchangeError as e:
            if not e.is_no_op_cancel:
                logger.error(f"Cancel failed: {e}")
                return TickOutcome.CANCEL_FAILED

        rate_limited = False
        clean = True
        expiration = self._expiration()
        for product_id in self.config.product_ids:
            mid = self.context.mid(product_id)
            if mid is None or not mid.is_finite():
                continue

            quote = compute_quote_prices(mid, self.config.spread_fraction, self.config.price_decimals)
            for side, price in ((OrderSide.BUY, quote.buy), (OrderSide.SELL, quote.sell)):
                if price <= 0:
                    logger.warning(
                        f"{side.value} price on product {product_id} rounds to {price}, skipped"
                    )
                    continue
                ok, limited = await self._place(product_id, side, price, expiration)
                clean = clean and ok
                rate_limited = rate_limited or limited

        if rate_limited:
            self.backoff.on_rate_limited()
            return TickOutcome.RATE_LIMITED
        if clean:
            self.backoff.on_success()
        return TickOutcome.QUOTED

    async def _place(
        self, product_id: int, side: OrderSide, price: Decimal, expiration: int
    ) -> tuple[bool, bool]:
        """Submit one side. Returns (succeeded, rate_limited)."""
        request = OrderRequest(
            product_id=product_id,
            side=side,
            price=price,
            size=self.config.order_size,
            expiration=expiration,
        )
        try:
            await self.client.place_order(request)
        except RateLimitError:
            self.orders_failed += 1
            return False, True
        except ExchangeError as e:
            self.orders_failed += 1
            logger.error(f"{side.value} order on product {product_id} @ {price} failed: {e}")
            return False, False
        self.orders_placed += 1
        return True, False
