"""Quoting - price construction, shared context and the refresh loop."""

from nadomm.quoting.backoff import Backoff, TickBackoff
from nadomm.quoting.context import MakerContext
from nadomm.quoting.pricing import QuotePrices, compute_quote_prices
from nadomm.quoting.refresher import QuoteRefresher
from nadomm.quoting.volume import RollingVolume

__all__ = [
    "Backoff",
    "MakerContext",
    "QuotePrices",
    "QuoteRefresher",
    "RollingVolume",
    "TickBackoff",
    "compute_quote_prices",
]
