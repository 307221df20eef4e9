"""Quote price construction around the midpoint."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_FLOOR, Decimal


@dataclass(frozen=True)
class QuotePrices:
    """Buy/sell pair for one product."""

    buy: Decimal
    sell: Decimal


def compute_quote_prices(mid: Decimal, spread_fraction: Decimal, decimals: int = 6) -> QuotePrices:
    """
    Symmetric quote around `mid`.

    The buy side is floored and the sell side ceiled to `decimals` places, so
    rounding always widens the spread: buy < mid < sell.

    Args:
        mid: Midpoint price, must be positive.
        spread_fraction: Offset applied on each side (0.00015 = 1.5 bps).
        decimals: Price precision.

    Returns:
        QuotePrices with buy and sell prices.
    """
    if mid <= 0:
        raise ValueError(f"Midpoint must be positive, got: {mid}")

    quantum = Decimal(1).scaleb(-decimals)
    buy = (mid * (1 - spread_fraction)).quantize(quantum, rounding=ROUND_FLOOR)
    sell = (mid * (1 + spread_fraction)).quantize(quantum, rounding=ROUND_CEILING)
    return QuotePrices(buy=buy, sell=sell)
