"""Base exchange client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from decimal import Decimal

from nadomm.exchange.models import Fill, MarketPrice, OrderRequest, PlacedOrder


class ExchangeClient(ABC):
    """
    Abstract exchange client.

    Exposes exactly the operations the quoting loop needs: latest prices,
    bulk cancel by product, order placement and the account balance.
    Failed calls raise ExchangeError (or RateLimitError).
    """

    def __init__(self):
        self._fill_callbacks: list[Callable[[Fill], Awaitable[None]]] = []

    def add_fill_callback(self, callback: Callable[[Fill], Awaitable[None]]):
        """Register callback for fills on our orders."""
        self._fill_callbacks.append(callback)

    async def _emit_fill(self, fill: Fill) -> None:
        for cb in self._fill_callbacks:
            await cb(fill)

    @property
    @abstractmethod
    def address(self) -> str:
        """Owner address of the trading account."""

    @abstractmethod
    async def connect(self) -> None:
        """Open connections."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connections."""
        pass

    @abstractmethod
    async def get_latest_prices(self, product_ids: list[int]) -> list[MarketPrice]:
        """Best bid/ask for each product."""
        pass

    @abstractmethod
    async def cancel_product_orders(self, product_ids: list[int]) -> None:
        """Cancel every resting order on the given products."""
        pass

    @abstractmethod
    async def place_order(self, request: OrderRequest) -> PlacedOrder:
        """Submit a limit order."""
        pass

    @abstractmethod
    async def get_balance(self) -> Decimal:
        """Spendable quote balance of the account."""
        pass
