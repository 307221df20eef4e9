"""Nado gateway client over HTTPS."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

import httpx

from nadomm.config_loader import NadoConfig
from nadomm.constants import ORDER_APPENDIX_DEFAULT, QUOTE_PRODUCT_ID
from nadomm.exchange.base import ExchangeClient
from nadomm.exchange.errors import ExchangeError, error_from_response
from nadomm.exchange.models import MarketPrice, OrderRequest, PlacedOrder
from nadomm.exchange.signing import Wallet, from_x18, gen_nonce, to_x18

logger = logging.getLogger(__name__)


class NadoClient(ExchangeClient):
    """
    Concrete ExchangeClient for the Nado gateway.

    Queries go to POST /query, signed executes to POST /execute. Prices,
    amounts and balances travel as 1e18 fixed-point integer strings.
    """

    def __init__(
        self,
        config: NadoConfig,
        wallet: Wallet,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__()
        self.config = config
        self.wallet = wallet
        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._endpoint_address = config.endpoint_address

    @property
    def address(self) -> str:
        return self.wallet.address

    async def connect(self) -> None:
        self._http = httpx.AsyncClient(
            base_url=self.config.gateway_url,
            timeout=self.config.request_timeout,
            transport=self._transport,
            headers={"Accept-Encoding": "gzip"},
        )
        if not self._endpoint_address:
            data = await self._query({"type": "contracts"})
            self._endpoint_address = data["endpoint_addr"]
        logger.info(
            f"Connected to Nado gateway {self.config.gateway_url} as {self.address} "
            f"(subaccount '{self.wallet.subaccount_name}')"
        )

    async def disconnect(self) -> None:
        if self._http:
            await self._http.aclose()
            self._http = None
        logger.info("Nado client disconnected")

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        if not self._http:
            raise ConnectionError("Not connected")

        try:
            resp = await self._http.post(path, json=payload)
        except httpx.HTTPError as e:
            raise ExchangeError(f"{type(e).__name__}: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code >= 400 or not isinstance(body, dict):
            message = resp.text or resp.reason_phrase
            code = body.get("error_code") if isinstance(body, dict) else None
            raise error_from_response(message, code=code, status=resp.status_code)

        if body.get("status") != "success":
            raise error_from_response(
                str(body.get("error", "unknown error")),
                code=body.get("error_code"),
                status=resp.status_code,
            )
        return body.get("data")

    async def _query(self, payload: dict[str, Any]) -> Any:
        return await self._post("/query", payload)

    async def _execute(self, payload: dict[str, Any]) -> Any:
        return await self._post("/execute", payload)

    async def get_latest_prices(self, product_ids: list[int]) -> list[MarketPrice]:
        data = await self._query({"type": "market_prices", "product_ids": list(product_ids)})
        prices = []
        for mp in data.get("market_prices", []):
            try:
                price = MarketPrice(
                    product_id=int(mp["product_id"]),
                    bid=from_x18(mp["bid_x18"]),
                    ask=from_x18(mp["ask_x18"]),
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Malformed market price {mp}: {e}")
                continue
            prices.append(price)
        return prices

    async def cancel_product_orders(self, product_ids: list[int]) -> None:
        nonce = gen_nonce()
        signature = self.wallet.sign_cancel_products(product_ids, nonce, self._endpoint_address)
        await self._execute(
            {
                "cancel_product_orders": {
                    "tx": {
                        "sender": self.wallet.sender,
                        "productIds": list(product_ids),
                        "nonce": str(nonce),
                    },
                    "signature": signature,
                }
            }
        )

    async def place_order(self, request: OrderRequest) -> PlacedOrder:
        order = {
            "priceX18": to_x18(request.price),
            "amount": to_x18(request.signed_size),
            "expiration": int(request.expiration),
            "nonce": gen_nonce(),
            "appendix": ORDER_APPENDIX_DEFAULT,
        }
        signature, digest = self.wallet.sign_order(request.product_id, order)
        data = await self._execute(
            {
                "place_order": {
                    "product_id": request.product_id,
                    "order": {
                        "sender": self.wallet.sender,
                        **{k: str(v) for k, v in order.items()},
                    },
                    "signature": signature,
                }
            }
        )
        if isinstance(data, dict) and data.get("digest"):
            digest = data["digest"]
        return PlacedOrder(digest=digest, request=request)

    async def get_balance(self) -> Decimal:
        data = await self._query({"type": "subaccount_info", "subaccount": self.wallet.sender})
        for balance in data.get("spot_balances", []):
            if int(balance.get("product_id", -1)) == QUOTE_PRODUCT_ID:
                return from_x18(balance["balance"]["amount"])
        return Decimal("0")
