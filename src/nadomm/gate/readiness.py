"""Balance gate: wait for a funded account, then start quoting once."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from nadomm.config_loader import RiskConfig
from nadomm.constants import QUOTE_ASSET
from nadomm.exchange.base import ExchangeClient
from nadomm.exchange.errors import ExchangeError
from nadomm.quoting.context import MakerContext

logger = logging.getLogger(__name__)


class BalanceGate:
    """
    Polls the account balance and flips `waiting -> active` exactly once.

    On activation the `on_activate` callback runs (fetch prices, start the
    refresh loop). While waiting a heartbeat line is logged every
    `wait_log_interval`.
    """

    def __init__(
        self,
        client: ExchangeClient,
        context: MakerContext,
        risk_config: RiskConfig,
        on_activate: Callable[[], Awaitable[None]],
        wait_log_interval: timedelta = timedelta(seconds=10),
    ):
        self.client = client
        self.context = context
        self.risk = risk_config
        self.on_activate = on_activate
        self.wait_log_interval = wait_log_interval
        self._last_wait_log: datetime | None = None

    async def refresh_balance(self) -> None:
        """Read the balance into the context, keeping the old value on error."""
        try:
            self.context.balance = await self.client.get_balance()
        except ExchangeError as e:
            logger.warning(f"Balance check failed: {e}")

    async def poll(self) -> None:
        await self.refresh_balance()

        if self.context.active:
            return

        if self.context.balance >= self.risk.min_balance:
            logger.info(
                f"Balance {self.context.balance:.2f} {QUOTE_ASSET} - starting quote loop"
            )
            # Stays waiting if activation fails so the next poll retries it
            await self.on_activate()
            self.context.active = True
        else:
            self._heartbeat()

    def _heartbeat(self) -> None:
        now = datetime.now()
        if self._last_wait_log and now - self._last_wait_log < self.wait_log_interval:
            return
        self._last_wait_log = now
        logger.info(
            f"Waiting for balance after deposit... "
            f"({self.context.balance:.2f} / {self.risk.min_balance:.2f} {QUOTE_ASSET})"
        )
