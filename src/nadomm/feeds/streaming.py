"""Websocket push price feed with forced reconnect and silence watchdog."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from datetime import datetime
from typing import Any

import websockets

from nadomm.config_loader import FeedConfig
from nadomm.constants import OrderSide
from nadomm.exchange.models import Fill, MarketPrice
from nadomm.exchange.signing import from_x18
from nadomm.quoting.backoff import Backoff
from nadomm.quoting.context import MakerContext

logger = logging.getLogger(__name__)


def parse_best_bid_offer(msg: dict[str, Any]) -> MarketPrice | None:
    """Build a MarketPrice from a best_bid_offer event, or None if malformed."""
    try:
        return MarketPrice(
            product_id=int(msg["product_id"]),
            bid=from_x18(msg["bid_price"]),
            ask=from_x18(msg["ask_price"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


def parse_fill(msg: dict[str, Any]) -> Fill | None:
    """Build a Fill from a fill event, or None if malformed."""
    try:
        return Fill(
            product_id=int(msg["product_id"]),
            side=OrderSide.BUY if msg.get("is_bid") else OrderSide.SELL,
            price=from_x18(msg["price"]),
            size=from_x18(msg["filled_qty"]),
            timestamp=datetime.now(),
        )
    except (KeyError, TypeError, ValueError):
        return None


class StreamingPriceFeed:
    """
    Subscribes to best_bid_offer for every product (and fill for our
    subaccount) and pushes updates into the context.

    The connection is dropped and re-established every `reconnect_interval`
    seconds, and whenever nothing arrives for `heartbeat_timeout` seconds.
    """

    def __init__(
        self,
        url: str,
        context: MakerContext,
        config: FeedConfig,
        subaccount: str | None = None,
    ):
        self.url = url
        self.context = context
        self.config = config
        self.subaccount = subaccount

        self._running = False
        self._backoff = Backoff(base=1.0, maximum=config.max_reconnect_delay)
        self._last_message_time: float | None = None
        self.reconnects = 0
        self.messages = 0

    def subscription_messages(self) -> list[dict[str, Any]]:
        streams: list[dict[str, Any]] = [
            {"type": "best_bid_offer", "product_id": pid} for pid in self.context.product_ids
        ]
        if self.subaccount:
            streams += [
                {"type": "fill", "product_id": pid, "subaccount": self.subaccount}
                for pid in self.context.product_ids
            ]
        return [
            {"method": "subscribe", "stream": stream, "id": i}
            for i, stream in enumerate(streams, start=1)
        ]

    async def handle_message(self, raw: str | bytes) -> None:
        try:
            msg = json.loads(raw)
        except ValueError:
            logger.debug(f"Non-JSON message ignored: {raw!r:.80}")
            return
        if not isinstance(msg, dict):
            return

        self.messages += 1
        kind = msg.get("type")
        if kind == "best_bid_offer":
            price = parse_best_bid_offer(msg)
            if price:
                self.context.update_prices([price])
        elif kind == "fill":
            fill = parse_fill(msg)
            if fill:
                await self.context.on_fill(fill)
        elif "error" in msg:
            logger.warning(f"Subscription error: {msg['error']}")

    async def _watchdog(self, ws: Any, connected_at: float) -> None:
        """Close the socket on silence or when the forced reconnect is due."""
        check = min(1.0, self.config.heartbeat_timeout / 2)
        while self._running:
            await asyncio.sleep(check)
            now = time.monotonic()
            if self._last_message_time and now - self._last_message_time > self.config.heartbeat_timeout:
                logger.warning(
                    f"No messages for {now - self._last_message_time:.0f}s, reconnecting..."
                )
                await ws.close()
                return
            if now - connected_at >= self.config.reconnect_interval:
                logger.info("Scheduled reconnect")
                await ws.close()
                return

    async def run(self, shutdown_event: asyncio.Event | None = None) -> None:
        """Run with automatic reconnection until stopped."""
        self._running = True

        while self._running:
            if shutdown_event and shutdown_event.is_set():
                break

            try:
                async with websockets.connect(self.url, ping_interval=20, ping_timeout=20) as ws:
                    self._backoff.reset()
                    connected_at = time.monotonic()
                    self._last_message_time = connected_at

                    for sub in self.subscription_messages():
                        await ws.send(json.dumps(sub))
                    logger.info(f"Price stream connected: {self.url}")

                    watchdog = asyncio.create_task(self._watchdog(ws, connected_at))
                    try:
                        async for message in ws:
                            self._last_message_time = time.monotonic()
                            await self.handle_message(message)
                            if not self._running:
                                break
                    finally:
                        watchdog.cancel()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if self._running:
                    logger.warning(f"Price stream error: {type(e).__name__}: {e}")

            if not self._running:
                break
            self.reconnects += 1
            delay = self._backoff.next()
            logger.info(f"Reconnecting price stream in {delay:.1f}s")
            await asyncio.sleep(delay)

        logger.info("Price stream stopped")

    def stop(self) -> None:
        self._running = False
