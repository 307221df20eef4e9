"""Tests for SimExchange."""

from decimal import Decimal

import pytest

from nadomm.constants import NO_OP_CANCEL_ERROR_CODE, OrderSide
from nadomm.exchange.errors import ExchangeError
from nadomm.exchange.models import OrderRequest


def _order(product_id, side, price, size="1"):
    return OrderRequest(product_id, side, Decimal(price), Decimal(size), expiration=0)


@pytest.mark.asyncio
async def test_latest_prices(exchange):
    prices = await exchange.get_latest_prices([1, 2, 99])
    assert [p.product_id for p in prices] == [1, 2]
    assert prices[0].mid == Decimal("100.00")


@pytest.mark.asyncio
async def test_cancel_with_nothing_resting_is_no_op_error(exchange):
    with pytest.raises(ExchangeError) as exc_info:
        await exchange.cancel_product_orders([1])
    assert exc_info.value.code == NO_OP_CANCEL_ERROR_CODE
    assert exc_info.value.is_no_op_cancel


@pytest.mark.asyncio
async def test_cancel_only_touches_requested_products(exchange):
    await exchange.place_order(_order(1, OrderSide.BUY, "99"))
    await exchange.place_order(_order(2, OrderSide.SELL, "2100"))

    await exchange.cancel_product_orders([1])

    remaining = exchange.resting_orders
    assert len(remaining) == 1
    assert remaining[0].request.product_id == 2


@pytest.mark.asyncio
async def test_unknown_product_rejected(exchange):
    with pytest.raises(ExchangeError):
        await exchange.place_order(_order(7, OrderSide.BUY, "1"))


@pytest.mark.asyncio
async def test_crossing_order_fills_and_emits(exchange):
    fills = []

    async def on_fill(fill):
        fills.append(fill)

    exchange.add_fill_callback(on_fill)
    await exchange.place_order(_order(1, OrderSide.BUY, "99.50", size="2"))
    await exchange.place_order(_order(1, OrderSide.SELL, "100.50", size="2"))

    exchange.set_mid(1, Decimal("99.40"))
    await exchange.match()

    assert len(fills) == 1
    assert fills[0].side == OrderSide.BUY
    assert fills[0].notional == Decimal("199.00")
    assert len(exchange.resting_orders) == 1


@pytest.mark.asyncio
async def test_injected_errors_are_one_shot(exchange):
    exchange.fail_next("get_balance", ExchangeError("down"))
    with pytest.raises(ExchangeError):
        await exchange.get_balance()
    assert await exchange.get_balance() == Decimal("100")
    assert exchange.calls["get_balance"] == 2
