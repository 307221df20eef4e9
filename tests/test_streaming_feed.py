"""Tests for the websocket price feed message handling."""

import json
from decimal import Decimal

import pytest

from nadomm.config_loader import FeedConfig
from nadomm.constants import OrderSide
from nadomm.feeds.streaming import (
    StreamingPriceFeed,
    parse_best_bid_offer,
    parse_fill,
)

SUBACCOUNT = "0x" + "ab" * 32


@pytest.fixture
def feed(context):
    return StreamingPriceFeed("wss://gateway.test/v1/subscribe", context, FeedConfig(), subaccount=SUBACCOUNT)


def test_subscription_messages(feed):
    subs = feed.subscription_messages()

    assert [s["id"] for s in subs] == [1, 2, 3, 4]
    assert subs[0] == {
        "method": "subscribe",
        "stream": {"type": "best_bid_offer", "product_id": 1},
        "id": 1,
    }
    assert subs[3]["stream"] == {"type": "fill", "product_id": 2, "subaccount": SUBACCOUNT}


def test_no_fill_subscription_without_subaccount(context):
    feed = StreamingPriceFeed("wss://x", context, FeedConfig())
    assert all(s["stream"]["type"] == "best_bid_offer" for s in feed.subscription_messages())


def test_parse_best_bid_offer():
    price = parse_best_bid_offer(
        {"product_id": 2, "bid_price": "1999000000000000000000", "ask_price": "2001000000000000000000"}
    )
    assert price.product_id == 2
    assert price.mid == Decimal("2000")


def test_parse_malformed_events():
    assert parse_best_bid_offer({"product_id": 2}) is None
    assert parse_fill({"product_id": 1, "price": "not-a-number", "filled_qty": "1"}) is None


@pytest.mark.asyncio
async def test_best_bid_offer_updates_context(feed, context):
    msg = {
        "type": "best_bid_offer",
        "product_id": 1,
        "bid_price": "99000000000000000000",
        "ask_price": "101000000000000000000",
    }

    await feed.handle_message(json.dumps(msg))

    assert context.mid(1) == Decimal("100")
    assert feed.messages == 1


@pytest.mark.asyncio
async def test_fill_event_records_volume(feed, context):
    msg = {
        "type": "fill",
        "product_id": 1,
        "is_bid": True,
        "price": "100000000000000000000",
        "filled_qty": "2000000000000000000",
    }

    await feed.handle_message(json.dumps(msg))

    assert context.volume.total == Decimal("200")


@pytest.mark.asyncio
async def test_unknown_product_ignored(feed, context):
    msg = {
        "type": "best_bid_offer",
        "product_id": 9,
        "bid_price": "1000000000000000000",
        "ask_price": "1000000000000000000",
    }
    await feed.handle_message(json.dumps(msg))
    assert context.prices == {}


@pytest.mark.asyncio
async def test_non_json_ignored(feed, context):
    await feed.handle_message("not json")
    await feed.handle_message("[1, 2]")
    assert feed.messages == 0
    assert context.prices == {}
