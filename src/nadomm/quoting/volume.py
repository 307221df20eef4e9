"""Rolling traded-volume accumulator."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from decimal import Decimal

logger = logging.getLogger(__name__)


class RollingVolume:
    """
    Sum of fill notional since the current window started.

    The window is tumbling, not sliding: once `window` has elapsed the total
    is reset to zero wholesale, regardless of activity inside the window.
    """

    def __init__(self, window: timedelta):
        self.window = window
        self.total = Decimal("0")
        self.window_start = datetime.now()
        self.resets = 0

    def record(self, notional: Decimal) -> None:
        self.total += abs(notional)

    def roll(self, now: datetime | None = None) -> bool:
        """Reset the total if the window has elapsed. Returns True on reset."""
        now = now or datetime.now()
        if now - self.window_start < self.window:
            return False
        logger.debug(f"Volume window elapsed, resetting {self.total}")
        self.total = Decimal("0")
        self.window_start = now
        self.resets += 1
        return True
