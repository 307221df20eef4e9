"""Request/response price feed."""

from __future__ import annotations

import logging

from nadomm.exchange.base import ExchangeClient
from nadomm.exchange.errors import ExchangeError
from nadomm.quoting.context import MakerContext

logger = logging.getLogger(__name__)


class PollingPriceFeed:
    """Fetches latest prices on each poll and stores them in the context."""

    def __init__(self, client: ExchangeClient, context: MakerContext):
        self.client = client
        self.context = context
        self.failures = 0

    async def poll(self) -> None:
        try:
            prices = await self.client.get_latest_prices(self.context.product_ids)
        except ExchangeError as e:
            self.failures += 1
            logger.warning(f"Price poll failed: {e}")
            return
        self.context.update_prices(prices)
