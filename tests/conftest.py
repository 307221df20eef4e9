"""Shared fixtures."""

from datetime import timedelta
from decimal import Decimal

import pytest

from nadomm.config_loader import QuotingConfig, RiskConfig, SimConfig
from nadomm.exchange.sim import SimExchange
from nadomm.quoting.backoff import TickBackoff
from nadomm.quoting.context import MakerContext
from nadomm.quoting.refresher import QuoteRefresher
from nadomm.quoting.volume import RollingVolume


@pytest.fixture
def sim_config():
    # Zero half-spread so the mid is exactly the start price
    return SimConfig(
        initial_balance=Decimal("100"),
        start_prices={1: Decimal("100.00"), 2: Decimal("2000.00")},
        half_spread=Decimal("0"),
        volatility=Decimal("0"),
    )


@pytest.fixture
def exchange(sim_config):
    return SimExchange(sim_config)


@pytest.fixture
def quoting_config():
    return QuotingConfig(
        product_ids=[1, 2],
        spread_fraction=Decimal("0.00015"),
        order_size=Decimal("15"),
        price_decimals=6,
    )


@pytest.fixture
def risk_config():
    return RiskConfig(min_balance=Decimal("30"))


@pytest.fixture
def context(quoting_config):
    return MakerContext(
        product_ids=list(quoting_config.product_ids),
        volume=RollingVolume(timedelta(minutes=5)),
    )


@pytest.fixture
def backoff():
    return TickBackoff(base=0.2, maximum=1.0)


@pytest.fixture
def refresher(exchange, context, quoting_config, risk_config, backoff):
    return QuoteRefresher(exchange, context, quoting_config, risk_config, backoff)
