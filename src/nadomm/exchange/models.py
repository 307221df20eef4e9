"""Exchange models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from nadomm.constants import OrderSide


@dataclass(frozen=True)
class MarketPrice:
    """Best bid/ask snapshot for one product."""

    product_id: int
    bid: Decimal
    ask: Decimal
    timestamp: datetime = field(default_factory=datetime.now, compare=False)

    @property
    def mid(self) -> Decimal:
        return (self.bid + self.ask) / 2

    @property
    def is_valid(self) -> bool:
        """Both sides finite and positive."""
        return (
            self.bid.is_finite() and self.ask.is_finite() and self.bid > 0 and self.ask > 0
        )


@dataclass
class OrderRequest:
    """Request to place a limit order."""

    product_id: int
    side: OrderSide
    price: Decimal
    size: Decimal  # Always positive; sign is derived from side
    expiration: int  # Unix seconds

    @property
    def signed_size(self) -> Decimal:
        return self.size if self.side == OrderSide.BUY else -self.size

    @property
    def notional(self) -> Decimal:
        return self.price * self.size


@dataclass
class PlacedOrder:
    """Order accepted by the exchange."""

    digest: str
    request: OrderRequest
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class Fill:
    """Trade fill on one of our orders."""

    product_id: int
    side: OrderSide
    price: Decimal
    size: Decimal
    timestamp: datetime

    @property
    def notional(self) -> Decimal:
        return self.price * abs(self.size)
