"""Simulated exchange implementation."""

from __future__ import annotations

import logging
import random
from datetime import datetime
from decimal import Decimal
from uuid import uuid4

from nadomm.config_loader import SimConfig
from nadomm.constants import NO_OP_CANCEL_ERROR_CODE, SIM_ADDRESS, OrderSide
from nadomm.exchange.base import ExchangeClient
from nadomm.exchange.errors import ExchangeError
from nadomm.exchange.models import Fill, MarketPrice, OrderRequest, PlacedOrder

logger = logging.getLogger(__name__)


class SimExchange(ExchangeClient):
    """
    In-memory exchange for testing and dry runs.

    Prices follow a random walk around the configured start prices; resting
    orders fill when the opposite side of the book crosses them. Errors can be
    queued per operation to exercise the quoting loop's failure handling.
    """

    def __init__(self, config: SimConfig | None = None, address: str = SIM_ADDRESS):
        super().__init__()
        self.config = config or SimConfig()
        self._address = address
        self._balance = self.config.initial_balance
        self._mids: dict[int, Decimal] = dict(self.config.start_prices)
        self._orders: dict[str, PlacedOrder] = {}
        self._errors: dict[str, list[Exception]] = {}

        # Call counters for assertions
        self.calls: dict[str, int] = {
            "get_latest_prices": 0,
            "cancel_product_orders": 0,
            "place_order": 0,
            "get_balance": 0,
        }

    @property
    def address(self) -> str:
        return self._address

    async def connect(self) -> None:
        logger.info(f"SimExchange connected. Balance: {self._balance}")

    async def disconnect(self) -> None:
        logger.info("SimExchange disconnected")

    # --- Test hooks ---

    def set_balance(self, balance: Decimal) -> None:
        self._balance = balance

    def set_mid(self, product_id: int, mid: Decimal) -> None:
        self._mids[product_id] = mid

    def fail_next(self, operation: str, error: Exception) -> None:
        """Raise `error` on the next call to `operation`."""
        self._errors.setdefault(operation, []).append(error)

    def _maybe_raise(self, operation: str) -> None:
        self.calls[operation] += 1
        pending = self._errors.get(operation)
        if pending:
            raise pending.pop(0)

    @property
    def resting_orders(self) -> list[PlacedOrder]:
        return list(self._orders.values())

    # --- ExchangeClient ---

    def _book(self, product_id: int) -> MarketPrice:
        mid = self._mids[product_id]
        half = mid * self.config.half_spread
        return MarketPrice(product_id=product_id, bid=mid - half, ask=mid + half)

    async def get_latest_prices(self, product_ids: list[int]) -> list[MarketPrice]:
        self._maybe_raise("get_latest_prices")
        return [self._book(pid) for pid in product_ids if pid in self._mids]

    async def cancel_product_orders(self, product_ids: list[int]) -> None:
        self._maybe_raise("cancel_product_orders")
        doomed = [d for d, o in self._orders.items() if o.request.product_id in product_ids]
        if not doomed:
            raise ExchangeError("no orders to cancel", code=NO_OP_CANCEL_ERROR_CODE)
        for digest in doomed:
            del self._orders[digest]
        logger.debug(f"Cancelled {len(doomed)} orders on products {product_ids}")

    async def place_order(self, request: OrderRequest) -> PlacedOrder:
        self._maybe_raise("place_order")
        if request.product_id not in self._mids:
            raise ExchangeError(f"unknown product {request.product_id}")
        order = PlacedOrder(digest="0x" + uuid4().hex, request=request)
        self._orders[order.digest] = order
        logger.debug(
            f"Order placed: {order.digest} product={request.product_id} "
            f"{request.side.value} {request.size} @ {request.price}"
        )
        return order

    async def get_balance(self) -> Decimal:
        self._maybe_raise("get_balance")
        return self._balance

    # --- Market simulation ---

    async def step(self) -> None:
        """Advance every product one random-walk step and match resting orders."""
        for product_id, mid in self._mids.items():
            move = Decimal(str(random.gauss(0, 1))) * self.config.volatility
            self._mids[product_id] = mid * (1 + move)
        await self.match()

    async def match(self) -> None:
        """Fill resting orders crossed by the current book."""
        for digest, order in list(self._orders.items()):
            req = order.request
            book = self._book(req.product_id)
            crossed = (req.side == OrderSide.BUY and book.ask <= req.price) or (
                req.side == OrderSide.SELL and book.bid >= req.price
            )
            if not crossed:
                continue

            del self._orders[digest]
            fill = Fill(
                product_id=req.product_id,
                side=req.side,
                price=req.price,
                size=req.size,
                timestamp=datetime.now(),
            )
            logger.info(
                f"Fill: product={fill.product_id} {fill.side.value} {fill.size} @ {fill.price}"
            )
            await self._emit_fill(fill)
