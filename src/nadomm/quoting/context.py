"""Shared state threaded through the periodic tasks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from decimal import Decimal

from nadomm.exchange.models import Fill, MarketPrice
from nadomm.quoting.volume import RollingVolume


@dataclass
class MakerContext:
    """Latest quotes, balance and rolling volume, owned by the app."""

    product_ids: list[int]
    volume: RollingVolume = field(default_factory=lambda: RollingVolume(timedelta(minutes=5)))
    prices: dict[int, MarketPrice] = field(default_factory=dict)
    balance: Decimal = Decimal("0")
    active: bool = False

    def update_prices(self, prices: list[MarketPrice]) -> int:
        """Replace stored quotes with any valid new ones. Returns count stored."""
        stored = 0
        for price in prices:
            if price.product_id in self.product_ids and price.is_valid:
                self.prices[price.product_id] = price
                stored += 1
        return stored

    def mid(self, product_id: int) -> Decimal | None:
        price = self.prices.get(product_id)
        return price.mid if price else None

    @property
    def has_all_prices(self) -> bool:
        return all(pid in self.prices for pid in self.product_ids)

    async def on_fill(self, fill: Fill) -> None:
        self.volume.record(fill.notional)
