"""nado-mm Main Application."""

from __future__ import annotations

import asyncio
import logging
import signal
from datetime import timedelta
from pathlib import Path

from nadomm.config_loader import AppConfig, load_config_with_overrides
from nadomm.constants import LOG_FORMAT, QUOTE_ASSET, FeedMode
from nadomm.exchange.base import ExchangeClient
from nadomm.exchange.sim import SimExchange
from nadomm.feeds.polling import PollingPriceFeed
from nadomm.feeds.streaming import StreamingPriceFeed
from nadomm.gate.readiness import BalanceGate
from nadomm.quoting.backoff import TickBackoff
from nadomm.quoting.context import MakerContext
from nadomm.quoting.refresher import QuoteRefresher
from nadomm.quoting.volume import RollingVolume
from nadomm.scheduler.periodic import PeriodicTask
from nadomm.status import StatusReporter

logger = logging.getLogger(__name__)


def build_client(config: AppConfig) -> ExchangeClient:
    """
    Build the exchange client for the configured mode.

    Raises:
        ConfigurationError: If the live exchange is selected without a key.
    """
    if config.is_sim_mode or config.is_dry_run:
        return SimExchange(config.sim)

    config.require_signing_key()

    from nadomm.exchange.nado import NadoClient
    from nadomm.exchange.signing import Wallet

    wallet = Wallet(
        config.wallet.private_key,
        subaccount_name=config.wallet.subaccount_name,
        chain_id=config.nado.chain_id,
    )
    return NadoClient(config.nado, wallet)


class MarketMakerApp:
    """Main application orchestrator."""

    def __init__(
        self,
        config_path: str = "config/config.yaml",
        dry_run: bool = False,
        exchange_mode: str | None = None,
        feed_mode: str | None = None,
        config: AppConfig | None = None,
        client: ExchangeClient | None = None,
    ):
        self.config_path = Path(config_path)
        self.config: AppConfig | None = config
        self._dry_run_override = dry_run
        self._exchange_override = exchange_mode
        self._feed_override = feed_mode

        # Components
        self.client: ExchangeClient | None = client
        self.context: MakerContext | None = None
        self.refresher: QuoteRefresher | None = None
        self.gate: BalanceGate | None = None
        self.status: StatusReporter | None = None
        self.polling_feed: PollingPriceFeed | None = None
        self.stream_feed: StreamingPriceFeed | None = None

        # Periodic tasks
        self.tick_task: PeriodicTask | None = None
        self.gate_task: PeriodicTask | None = None
        self.status_task: PeriodicTask | None = None
        self.feed_task: PeriodicTask | None = None
        self._stream_task: asyncio.Task | None = None
        self._sim_task: PeriodicTask | None = None

        self._shutdown_event = asyncio.Event()

    def _setup_logging(self) -> None:
        level = self.config.environment.log_level.value if self.config else "INFO"
        logging.basicConfig(level=level, format=LOG_FORMAT)

    def load(self) -> AppConfig:
        """Load config (if not injected) and fail fast on a missing signing key."""
        if self.config is None:
            self.config = load_config_with_overrides(
                self.config_path.absolute(),
                dry_run=True if self._dry_run_override else None,
                exchange_mode=self._exchange_override,
                feed_mode=self._feed_override,
            )
        if not (self.config.is_sim_mode or self.config.is_dry_run):
            self.config.require_signing_key()
        return self.config

    async def initialize(self) -> None:
        """Load config and wire components. No network calls happen here."""
        self.load()
        self._setup_logging()
        logger.info("Initializing nado-mm...")

        cfg = self.config
        if self.client is None:
            self.client = build_client(cfg)
        logger.info(f"Using {self.client.__class__.__name__}")

        self.context = MakerContext(
            product_ids=list(cfg.quoting.product_ids),
            volume=RollingVolume(timedelta(seconds=cfg.schedule.volume_window)),
        )
        self.client.add_fill_callback(self.context.on_fill)

        backoff = TickBackoff(
            base=cfg.schedule.tick_interval,
            maximum=cfg.schedule.max_tick_interval,
            factor=cfg.schedule.backoff_factor,
        )
        self.refresher = QuoteRefresher(self.client, self.context, cfg.quoting, cfg.risk, backoff)
        self.gate = BalanceGate(
            self.client,
            self.context,
            cfg.risk,
            on_activate=self._on_activate,
            wait_log_interval=timedelta(seconds=cfg.schedule.wait_log_interval),
        )
        self.status = StatusReporter(self.context, self.gate)

        self.tick_task = PeriodicTask(
            "quote-refresh", self.refresher.run_tick, lambda: self.refresher.interval
        )
        self.gate_task = PeriodicTask("balance-gate", self.gate.poll, cfg.schedule.balance_poll_interval)
        self.status_task = PeriodicTask(
            "status", self.status.report, cfg.schedule.status_log_interval, run_immediately=False
        )

        if cfg.feed.mode == FeedMode.STREAMING and not isinstance(self.client, SimExchange):
            sender = getattr(getattr(self.client, "wallet", None), "sender", None)
            self.stream_feed = StreamingPriceFeed(
                cfg.nado.subscriptions_url, self.context, cfg.feed, subaccount=sender
            )
        else:
            # Without a push feed the quotes still need fresh mids
            if cfg.feed.mode != FeedMode.POLLING:
                logger.info(f"No push feed for {cfg.feed.mode.value} mode, polling prices instead")
            self.polling_feed = PollingPriceFeed(self.client, self.context)
            self.feed_task = PeriodicTask("price-poll", self.polling_feed.poll, cfg.feed.poll_interval)

        if isinstance(self.client, SimExchange):
            self._sim_task = PeriodicTask("sim-market", self.client.step, 1.0, run_immediately=False)

        logger.info(
            f"Products: {cfg.quoting.product_ids}, spread: {cfg.quoting.spread_fraction}, "
            f"order size: {cfg.quoting.order_size}, min balance: {cfg.risk.min_balance} {QUOTE_ASSET}, "
            f"feed: {cfg.feed.mode.value}"
        )

    async def _on_activate(self) -> None:
        """Balance gate passed: prime prices and start the quote loop once."""
        try:
            await self.refresher.fetch_prices()
        except Exception as e:
            # The first tick fetches again when mids are missing
            logger.warning(f"Initial price fetch failed: {type(e).__name__}: {e}", exc_info=True)
        if self.feed_task and not self.feed_task.is_running:
            self.feed_task.start()
        self.tick_task.start()

    async def run(self) -> None:
        """Run until SIGINT/SIGTERM."""
        if not self.refresher:
            await self.initialize()

        loop = asyncio.get_running_loop()
        try:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self._handle_signal)
        except NotImplementedError:
            logger.warning("Signal handlers not supported in this environment. Use Ctrl+C to stop.")

        await self.client.connect()

        if self.stream_feed:
            self._stream_task = asyncio.create_task(self.stream_feed.run(self._shutdown_event))
        if self._sim_task:
            self._sim_task.start()
        self.gate_task.start()
        self.status_task.start()

        logger.info(
            f"nado-mm started. Address: {self.client.address}, "
            f"min balance: {self.config.risk.min_balance} {QUOTE_ASSET}"
        )

        try:
            await self._shutdown_event.wait()
        except asyncio.CancelledError:
            pass
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        logger.info("Shutting down...")
        for task in (self.tick_task, self.gate_task, self.status_task, self.feed_task, self._sim_task):
            if task:
                await task.stop()

        if self.stream_feed:
            self.stream_feed.stop()
        if self._stream_task:
            self._stream_task.cancel()
            try:
                await self._stream_task
            except asyncio.CancelledError:
                pass

        await self.client.disconnect()
        logger.info(
            f"Shutdown complete. Ticks: {self.refresher.ticks}, orders placed: "
            f"{self.refresher.orders_placed}, failed: {self.refresher.orders_failed}"
        )

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    def _handle_signal(self) -> None:
        logger.info("Signal received, initiating shutdown...")
        self._shutdown_event.set()
