"""Capped exponential backoff for tick periods and reconnect delays."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class Backoff:
    """Delay that multiplies by `factor` up to `maximum` and resets to `base`."""

    def __init__(self, base: float, maximum: float, factor: float = 2.0):
        self.base = base
        self.maximum = maximum
        self.factor = factor
        self._current = base

    @property
    def interval(self) -> float:
        return self._current

    def grow(self) -> float:
        """Widen the delay and return the new value."""
        self._current = min(self._current * self.factor, self.maximum)
        return self._current

    def next(self) -> float:
        """Return the current delay, then widen it for the following call."""
        current = self._current
        self.grow()
        return current

    def reset(self) -> None:
        self._current = self.base


class TickBackoff(Backoff):
    """
    Tick period that grows on rate limiting and snaps back on success.

    Each rate-limit signal multiplies the period by `factor` up to `maximum`;
    a single success resets it to `base`.
    """

    def on_rate_limited(self) -> float:
        previous = self._current
        self.grow()
        if self._current != previous:
            logger.warning(f"Rate limited, tick period {previous:.2f}s -> {self._current:.2f}s")
        return self._current

    def on_success(self) -> None:
        if self._current != self.base:
            logger.info(f"Tick period reset to {self.base:.2f}s")
        self.reset()
