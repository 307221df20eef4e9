"""Core constants for nado-mm."""

from decimal import Decimal
from enum import Enum


class ExchangeMode(str, Enum):
    """Exchange client selection."""

    NADO = "nado"
    SIM = "sim"


class FeedMode(str, Enum):
    """Price feed selection."""

    POLLING = "polling"
    STREAMING = "streaming"
    NONE = "none"


class OrderSide(str, Enum):
    """Order side (buy/sell)."""

    BUY = "BUY"
    SELL = "SELL"


class TickOutcome(str, Enum):
    """Result of a single quote refresh tick."""

    SKIPPED_LOW_BALANCE = "skipped_low_balance"
    FETCHED_PRICES = "fetched_prices"
    CANCEL_FAILED = "cancel_failed"
    RATE_LIMITED = "rate_limited"
    QUOTED = "quoted"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ============================================
# Exchange Protocol
# ============================================

# Nado fixed-point scale for prices, amounts and balances
X18 = Decimal(10) ** 18

# Product id of the quote asset (USDC0) on Nado
QUOTE_PRODUCT_ID = 0

# "No orders to cancel" response to cancel_product_orders
NO_OP_CANCEL_ERROR_CODE = 2024

# Gateway rate-limit error code (HTTP 429 is treated the same way)
RATE_LIMIT_ERROR_CODE = 1000

# Default order appendix: version 1, default execution type
ORDER_APPENDIX_DEFAULT = 1

EIP712_DOMAIN_NAME = "Nado"
EIP712_DOMAIN_VERSION = "0.0.1"

DEFAULT_GATEWAY_URL = "https://gateway.prod.nado.xyz/v1"
DEFAULT_SUBSCRIPTIONS_URL = "wss://gateway.prod.nado.xyz/v1/subscribe"
DEFAULT_CHAIN_ID = 57073  # Ink mainnet

# ============================================
# Default Values
# ============================================

DEFAULT_PRODUCT_IDS = [1, 2]  # BTC-PERP, ETH-PERP
DEFAULT_SPREAD_FRACTION = Decimal("0.00015")
DEFAULT_ORDER_SIZE = Decimal("15")
DEFAULT_PRICE_DECIMALS = 6
DEFAULT_ORDER_TTL_SECONDS = 86400
DEFAULT_MIN_BALANCE = Decimal("30")

DEFAULT_TICK_INTERVAL = 0.2
DEFAULT_MAX_TICK_INTERVAL = 10.0
DEFAULT_BALANCE_POLL_INTERVAL = 5.0
DEFAULT_STATUS_LOG_INTERVAL = 60.0
DEFAULT_WAIT_LOG_INTERVAL = 10.0
DEFAULT_VOLUME_WINDOW = 300.0

# ============================================
# Application Constants
# ============================================

APP_NAME = "nadomm"
QUOTE_ASSET = "USDC"
SIM_ADDRESS = "0x000000000000000000000000000000000000dEaD"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
