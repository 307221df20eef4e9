"""Exchange clients - Nado gateway and in-memory simulator."""

from nadomm.exchange.base import ExchangeClient
from nadomm.exchange.errors import ExchangeError, RateLimitError
from nadomm.exchange.models import Fill, MarketPrice, OrderRequest, PlacedOrder

__all__ = [
    "ExchangeClient",
    "ExchangeError",
    "RateLimitError",
    "Fill",
    "MarketPrice",
    "OrderRequest",
    "PlacedOrder",
]
