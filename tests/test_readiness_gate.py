"""Tests for the balance/readiness gate."""

import logging
from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from freezegun import freeze_time

from nadomm.exchange.errors import ExchangeError
from nadomm.gate.readiness import BalanceGate


@pytest.fixture
def on_activate():
    return AsyncMock()


@pytest.fixture
def gate(exchange, context, risk_config, on_activate):
    return BalanceGate(
        exchange, context, risk_config, on_activate, wait_log_interval=timedelta(seconds=10)
    )


@pytest.mark.asyncio
async def test_waits_while_underfunded(gate, exchange, context, on_activate, caplog):
    exchange.set_balance(Decimal("5"))

    with caplog.at_level(logging.INFO):
        await gate.poll()

    assert context.balance == Decimal("5")
    assert context.active is False
    on_activate.assert_not_awaited()
    assert "Waiting for balance after deposit" in caplog.text


@pytest.mark.asyncio
async def test_activates_exactly_once(gate, exchange, context, on_activate):
    exchange.set_balance(Decimal("10"))
    await gate.poll()

    exchange.set_balance(Decimal("30"))
    await gate.poll()
    await gate.poll()

    # Dropping back under the minimum does not re-arm the gate
    exchange.set_balance(Decimal("1"))
    await gate.poll()
    exchange.set_balance(Decimal("500"))
    await gate.poll()

    assert context.active is True
    on_activate.assert_awaited_once()
    assert context.balance == Decimal("500")


@pytest.mark.asyncio
async def test_heartbeat_throttled(gate, exchange, caplog):
    exchange.set_balance(Decimal("0"))

    with freeze_time("2026-01-01 12:00:00") as frozen, caplog.at_level(logging.INFO):
        await gate.poll()
        frozen.tick(timedelta(seconds=5))
        await gate.poll()
        frozen.tick(timedelta(seconds=5))
        await gate.poll()

    assert caplog.text.count("Waiting for balance after deposit") == 2


@pytest.mark.asyncio
async def test_balance_error_keeps_last_value(gate, exchange, context, caplog):
    exchange.set_balance(Decimal("12.5"))
    await gate.poll()
    exchange.fail_next("get_balance", ExchangeError("connection reset"))

    with caplog.at_level(logging.WARNING):
        await gate.poll()

    assert context.balance == Decimal("12.5")
    assert "Balance check failed" in caplog.text


@pytest.mark.asyncio
async def test_failed_activation_is_retried(gate, exchange, context, on_activate):
    exchange.set_balance(Decimal("50"))
    on_activate.side_effect = [RuntimeError("malformed response"), None]

    with pytest.raises(RuntimeError):
        await gate.poll()
    assert context.active is False

    await gate.poll()
    await gate.poll()

    assert context.active is True
    assert on_activate.await_count == 2
