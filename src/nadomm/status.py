"""Periodic operator status line."""

from __future__ import annotations

import logging
from decimal import Decimal

from nadomm.constants import QUOTE_ASSET
from nadomm.gate.readiness import BalanceGate
from nadomm.quoting.context import MakerContext

logger = logging.getLogger(__name__)


def format_status(context: MakerContext) -> str:
    """Mid of the first product, rolling volume and balance."""
    mid = context.mid(context.product_ids[0]) if context.product_ids else None
    mid_str = f"{mid:.2f}" if mid is not None and mid.is_finite() else "-"
    minutes = int(context.volume.window.total_seconds() // 60)
    volume = context.volume.total.quantize(Decimal("0.01"))
    return (
        f"Mid: {mid_str} | Volume ({minutes}m): {volume} {QUOTE_ASSET} | "
        f"Balance: {context.balance:.2f} {QUOTE_ASSET}"
    )


class StatusReporter:
    """Refreshes the balance, rolls the volume window and logs a status line."""

    def __init__(self, context: MakerContext, gate: BalanceGate):
        self.context = context
        self.gate = gate

    async def report(self) -> str:
        try:
            await self.gate.refresh_balance()
        except Exception as e:
            logger.warning(f"Balance refresh failed, showing last known: {type(e).__name__}: {e}")
        self.context.volume.roll()
        line = format_status(self.context)
        logger.info(line)
        return line
