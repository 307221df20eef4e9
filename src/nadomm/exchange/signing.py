"""Wallet identity and EIP-712 signing for Nado executes."""

from __future__ import annotations

import random
import time
from decimal import ROUND_DOWN, Decimal
from typing import Any

from eth_account import Account
from eth_account.messages import encode_typed_data
from eth_utils import keccak

from nadomm.constants import EIP712_DOMAIN_NAME, EIP712_DOMAIN_VERSION, X18

EIP712_DOMAIN_TYPE = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

ORDER_TYPE = [
    {"name": "sender", "type": "bytes32"},
    {"name": "priceX18", "type": "int128"},
    {"name": "amount", "type": "int128"},
    {"name": "expiration", "type": "uint64"},
    {"name": "nonce", "type": "uint64"},
    {"name": "appendix", "type": "uint128"},
]

CANCEL_PRODUCTS_TYPE = [
    {"name": "sender", "type": "bytes32"},
    {"name": "productIds", "type": "uint32[]"},
    {"name": "nonce", "type": "uint64"},
]


def to_x18(value: Decimal) -> int:
    """Convert a decimal quantity to Nado's 1e18 fixed point (truncating)."""
    return int((value * X18).to_integral_value(rounding=ROUND_DOWN))


def from_x18(value: int | str) -> Decimal:
    """Convert a 1e18 fixed-point integer (or its string form) to Decimal."""
    return Decimal(int(value)) / X18


def product_verifying_contract(product_id: int) -> str:
    """Orders are signed against the product id encoded as an address."""
    return "0x" + format(product_id, "040x")


def gen_nonce(recv_window_ms: int = 90_000) -> int:
    """Execute nonce: expiry timestamp in the high bits, random low 20 bits."""
    expires_at_ms = int(time.time() * 1000) + recv_window_ms
    return (expires_at_ms << 20) + random.randint(0, (1 << 20) - 1)


class Wallet:
    """Signing identity derived from a private key."""

    def __init__(self, private_key: str, subaccount_name: str = "default", chain_id: int = 0):
        self._account = Account.from_key(private_key)
        self.subaccount_name = subaccount_name
        self.chain_id = chain_id

    @property
    def address(self) -> str:
        return self._account.address

    @property
    def sender(self) -> str:
        """bytes32 subaccount: 20-byte owner address followed by a 12-byte name."""
        name = self.subaccount_name.encode("utf-8").ljust(12, b"\x00")
        return "0x" + bytes.fromhex(self.address[2:]).hex() + name.hex()

    def _typed_data(
        self, primary_type: str, fields: list[dict[str, str]], verifying_contract: str, message: dict
    ) -> dict[str, Any]:
        return {
            "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, primary_type: fields},
            "primaryType": primary_type,
            "domain": {
                "name": EIP712_DOMAIN_NAME,
                "version": EIP712_DOMAIN_VERSION,
                "chainId": self.chain_id,
                "verifyingContract": verifying_contract,
            },
            "message": message,
        }

    def _sign(self, typed_data: dict[str, Any]) -> tuple[str, str]:
        signable = encode_typed_data(full_message=typed_data)
        digest = keccak(b"\x19" + signable.version + signable.header + signable.body)
        signed = self._account.sign_message(signable)
        return "0x" + bytes(signed.signature).hex(), "0x" + digest.hex()

    def sign_order(self, product_id: int, order: dict[str, int]) -> tuple[str, str]:
        """
        Sign an order.

        Args:
            product_id: Product the order is for.
            order: priceX18, amount, expiration, nonce, appendix as integers.

        Returns:
            (signature, digest) as 0x-prefixed hex strings.
        """
        message = {"sender": bytes.fromhex(self.sender[2:]), **order}
        typed = self._typed_data(
            "Order", ORDER_TYPE, product_verifying_contract(product_id), message
        )
        return self._sign(typed)

    def sign_cancel_products(
        self, product_ids: list[int], nonce: int, endpoint_address: str
    ) -> str:
        """Sign a cancel-by-product request against the endpoint contract."""
        message = {
            "sender": bytes.fromhex(self.sender[2:]),
            "productIds": list(product_ids),
            "nonce": nonce,
        }
        typed = self._typed_data(
            "CancellationProducts", CANCEL_PRODUCTS_TYPE, endpoint_address, message
        )
        signature, _ = self._sign(typed)
        return signature
