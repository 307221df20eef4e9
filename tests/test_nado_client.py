"""Tests for the Nado gateway client."""

import json
import unittest
from decimal import Decimal

import httpx

from nadomm.config_loader import NadoConfig
from nadomm.constants import OrderSide
from nadomm.exchange.errors import ExchangeError, RateLimitError
from nadomm.exchange.models import OrderRequest
from nadomm.exchange.nado import NadoClient
from nadomm.exchange.signing import Wallet

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
ENDPOINT = "0x" + "22" * 20


def _ok(data):
    return httpx.Response(200, json={"status": "success", "data": data})


class TestNadoClient(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.requests: list[tuple[str, dict]] = []
        self.responses: dict[str, httpx.Response] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            self.requests.append((request.url.path, body))
            key = body.get("type") or next(iter(body))
            return self.responses[key]

        self.wallet = Wallet(PRIVATE_KEY, chain_id=57073)
        self.client = NadoClient(
            NadoConfig(gateway_url="https://gateway.test/v1", endpoint_address=ENDPOINT),
            self.wallet,
            transport=httpx.MockTransport(handler),
        )
        await self.client.connect()

    async def asyncTearDown(self):
        await self.client.disconnect()

    async def test_resolves_endpoint_when_not_configured(self):
        def handler(request):
            return _ok({"chain_id": "57073", "endpoint_addr": ENDPOINT})

        client = NadoClient(
            NadoConfig(gateway_url="https://gateway.test/v1"),
            self.wallet,
            transport=httpx.MockTransport(handler),
        )
        await client.connect()
        self.assertEqual(client._endpoint_address, ENDPOINT)
        await client.disconnect()

    async def test_get_latest_prices(self):
        self.responses["market_prices"] = _ok(
            {
                "market_prices": [
                    {"product_id": 1, "bid_x18": "99990000000000000000", "ask_x18": "100010000000000000000"},
                    {"product_id": 2, "bid_x18": "garbage"},
                ]
            }
        )

        prices = await self.client.get_latest_prices([1, 2])

        path, body = self.requests[-1]
        self.assertEqual(path, "/v1/query")
        self.assertEqual(body, {"type": "market_prices", "product_ids": [1, 2]})
        self.assertEqual(len(prices), 1)
        self.assertEqual(prices[0].mid, Decimal("100"))

    async def test_place_order_signs_and_sends_x18(self):
        self.responses["place_order"] = _ok({"digest": "0xabc"})
        request = OrderRequest(1, OrderSide.SELL, Decimal("100.015"), Decimal("15"), 1_900_000_000)

        placed = await self.client.place_order(request)

        self.assertEqual(placed.digest, "0xabc")
        path, body = self.requests[-1]
        self.assertEqual(path, "/v1/execute")
        order = body["place_order"]["order"]
        self.assertEqual(body["place_order"]["product_id"], 1)
        self.assertEqual(order["sender"], self.wallet.sender)
        self.assertEqual(order["priceX18"], "100015000000000000000")
        self.assertEqual(order["amount"], str(-15 * 10**18))
        self.assertEqual(order["expiration"], "1900000000")
        self.assertTrue(body["place_order"]["signature"].startswith("0x"))

    async def test_cancel_product_orders_failure_carries_code(self):
        self.responses["cancel_product_orders"] = httpx.Response(
            200,
            json={"status": "failure", "error": "no orders to cancel", "error_code": 2024},
        )

        with self.assertRaises(ExchangeError) as ctx:
            await self.client.cancel_product_orders([1, 2])

        self.assertTrue(ctx.exception.is_no_op_cancel)
        _, body = self.requests[-1]
        self.assertEqual(body["cancel_product_orders"]["tx"]["productIds"], [1, 2])

    async def test_http_429_is_rate_limit(self):
        self.responses["market_prices"] = httpx.Response(429, text="Too Many Requests")

        with self.assertRaises(RateLimitError):
            await self.client.get_latest_prices([1])

    async def test_rate_limit_error_code(self):
        self.responses["market_prices"] = httpx.Response(
            200, json={"status": "failure", "error": "rate limited", "error_code": 1000}
        )

        with self.assertRaises(RateLimitError):
            await self.client.get_latest_prices([1])

    async def test_get_balance_reads_quote_product(self):
        self.responses["subaccount_info"] = _ok(
            {
                "spot_balances": [
                    {"product_id": 0, "balance": {"amount": "31500000000000000000"}},
                    {"product_id": 3, "balance": {"amount": "1000000000000000000"}},
                ]
            }
        )

        balance = await self.client.get_balance()

        self.assertEqual(balance, Decimal("31.5"))
        _, body = self.requests[-1]
        self.assertEqual(body["subaccount"], self.wallet.sender)

    async def test_get_balance_without_quote_is_zero(self):
        self.responses["subaccount_info"] = _ok({"spot_balances": []})
        self.assertEqual(await self.client.get_balance(), Decimal("0"))

    async def test_transport_error_wrapped(self):
        def handler(request):
            raise httpx.ConnectError("refused")

        client = NadoClient(
            NadoConfig(endpoint_address=ENDPOINT), self.wallet, transport=httpx.MockTransport(handler)
        )
        await client.connect()
        with self.assertRaises(ExchangeError):
            await client.get_balance()
        await client.disconnect()
