"""Price feeds feeding the shared context."""

from nadomm.feeds.polling import PollingPriceFeed
from nadomm.feeds.streaming import StreamingPriceFeed

__all__ = ["PollingPriceFeed", "StreamingPriceFeed"]
