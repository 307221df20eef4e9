"""Configuration loader with Pydantic validation and environment variable interpolation."""

from __future__ import annotations

import os
import re
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables at module level
load_dotenv(find_dotenv(usecwd=True))

from nadomm.constants import (
    DEFAULT_BALANCE_POLL_INTERVAL,
    DEFAULT_CHAIN_ID,
    DEFAULT_GATEWAY_URL,
    DEFAULT_MAX_TICK_INTERVAL,
    DEFAULT_MIN_BALANCE,
    DEFAULT_ORDER_SIZE,
    DEFAULT_ORDER_TTL_SECONDS,
    DEFAULT_PRICE_DECIMALS,
    DEFAULT_PRODUCT_IDS,
    DEFAULT_SPREAD_FRACTION,
    DEFAULT_STATUS_LOG_INTERVAL,
    DEFAULT_SUBSCRIPTIONS_URL,
    DEFAULT_TICK_INTERVAL,
    DEFAULT_VOLUME_WINDOW,
    DEFAULT_WAIT_LOG_INTERVAL,
    ExchangeMode,
    FeedMode,
    LogLevel,
)


class ConfigurationError(Exception):
    """Fatal configuration problem detected at startup."""


def interpolate_env_vars(value: Any) -> Any:
    """
    Interpolate environment variables in string values.

    Supports formats:
    - ${VAR_NAME} - replaced with the variable, or "" if unset
    - ${VAR_NAME:default} - optional with default value
    """
    if not isinstance(value, str):
        return value

    pattern = r"\$\{([^}:]+)(?::([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        default = match.group(2)

        env_value = os.environ.get(var_name)

        if env_value is not None:
            return env_value
        elif default is not None:
            return default
        else:
            return ""

    return re.sub(pattern, replacer, value)


def process_config_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively process config dict to interpolate env vars."""
    result = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = process_config_dict(value)
        elif isinstance(value, list):
            result[key] = [
                process_config_dict(item) if isinstance(item, dict) else interpolate_env_vars(item)
                for item in value
            ]
        else:
            result[key] = interpolate_env_vars(value)
    return result


def _to_decimal(v: Any) -> Decimal:
    if isinstance(v, Decimal):
        return v
    return Decimal(str(v))


# ============================================
# Pydantic Configuration Models
# ============================================


class EnvironmentConfig(BaseModel):
    """Environment and runtime settings."""

    dry_run: bool = False
    exchange_mode: ExchangeMode = ExchangeMode.NADO
    log_level: LogLevel = LogLevel.INFO


class WalletConfig(BaseModel):
    """Signing key and subaccount."""

    private_key: str = ""
    subaccount_name: str = "default"

    @field_validator("private_key")
    @classmethod
    def normalize_private_key(cls, v: str) -> str:
        """Strip whitespace and add the 0x prefix when missing."""
        v = v.strip()
        if v and not v.startswith("0x"):
            v = f"0x{v}"
        return v

    @field_validator("subaccount_name")
    @classmethod
    def validate_subaccount_name(cls, v: str) -> str:
        if len(v.encode("utf-8")) > 12:
            raise ValueError(f"Subaccount name must fit in 12 bytes, got: {v}")
        return v

    @property
    def has_private_key(self) -> bool:
        return bool(self.private_key)


class NadoConfig(BaseModel):
    """Nado gateway endpoints."""

    gateway_url: str = DEFAULT_GATEWAY_URL
    subscriptions_url: str = DEFAULT_SUBSCRIPTIONS_URL
    chain_id: int = DEFAULT_CHAIN_ID
    endpoint_address: str = ""  # Resolved from the gateway when empty
    request_timeout: float = 10.0

    @field_validator("gateway_url", "subscriptions_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class QuotingConfig(BaseModel):
    """Quote construction settings."""

    product_ids: list[int] = Field(default_factory=lambda: list(DEFAULT_PRODUCT_IDS))
    spread_fraction: Decimal = DEFAULT_SPREAD_FRACTION
    order_size: Decimal = DEFAULT_ORDER_SIZE
    price_decimals: int = DEFAULT_PRICE_DECIMALS
    order_ttl_seconds: int = DEFAULT_ORDER_TTL_SECONDS

    @field_validator("spread_fraction", "order_size", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal:
        """Convert numeric values to Decimal."""
        return _to_decimal(v)

    @field_validator("spread_fraction")
    @classmethod
    def validate_spread(cls, v: Decimal) -> Decimal:
        if not Decimal("0") < v < Decimal("1"):
            raise ValueError(f"Spread fraction must be between 0 and 1, got: {v}")
        return v

    @field_validator("order_size")
    @classmethod
    def validate_order_size(cls, v: Decimal) -> Decimal:
        if v <= 0:
            raise ValueError(f"Order size must be positive, got: {v}")
        return v

    @field_validator("product_ids")
    @classmethod
    def validate_product_ids(cls, v: list[int]) -> list[int]:
        if not v:
            raise ValueError("At least one product id is required")
        for product_id in v:
            if product_id <= 0:
                raise ValueError(f"Product id must be positive, got: {product_id}")
        return v

    @field_validator("price_decimals")
    @classmethod
    def validate_price_decimals(cls, v: int) -> int:
        # Prices travel as x18 fixed point
        if not 0 <= v <= 18:
            raise ValueError(f"Price decimals must be between 0 and 18, got: {v}")
        return v

    @field_validator("order_ttl_seconds")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"Value must be non-negative, got: {v}")
        return v


class ScheduleConfig(BaseModel):
    """Periodic task intervals (seconds)."""

    tick_interval: float = DEFAULT_TICK_INTERVAL
    max_tick_interval: float = DEFAULT_MAX_TICK_INTERVAL
    backoff_factor: float = 2.0
    balance_poll_interval: float = DEFAULT_BALANCE_POLL_INTERVAL
    status_log_interval: float = DEFAULT_STATUS_LOG_INTERVAL
    wait_log_interval: float = DEFAULT_WAIT_LOG_INTERVAL
    volume_window: float = DEFAULT_VOLUME_WINDOW

    @field_validator(
        "tick_interval",
        "max_tick_interval",
        "balance_poll_interval",
        "status_log_interval",
        "wait_log_interval",
        "volume_window",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Interval must be positive, got: {v}")
        return v

    @field_validator("backoff_factor")
    @classmethod
    def validate_backoff_factor(cls, v: float) -> float:
        if v < 1:
            raise ValueError(f"Backoff factor must be >= 1, got: {v}")
        return v

    @model_validator(mode="after")
    def validate_tick_bounds(self) -> ScheduleConfig:
        if self.max_tick_interval < self.tick_interval:
            raise ValueError(
                f"max_tick_interval ({self.max_tick_interval}) must be >= "
                f"tick_interval ({self.tick_interval})"
            )
        return self


class RiskConfig(BaseModel):
    """Balance gate configuration."""

    min_balance: Decimal = DEFAULT_MIN_BALANCE

    @field_validator("min_balance", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal:
        return _to_decimal(v)


class FeedConfig(BaseModel):
    """Price feed configuration."""

    mode: FeedMode = FeedMode.POLLING
    poll_interval: float = 1.0
    reconnect_interval: float = 600.0  # Forced reconnect period
    heartbeat_timeout: float = 30.0  # Silence before reconnect
    max_reconnect_delay: float = 60.0

    @field_validator("poll_interval", "reconnect_interval", "heartbeat_timeout", "max_reconnect_delay")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Interval must be positive, got: {v}")
        return v


class SimConfig(BaseModel):
    """In-memory exchange settings for dry runs."""

    initial_balance: Decimal = Decimal("1000")
    start_prices: dict[int, Decimal] = Field(
        default_factory=lambda: {1: Decimal("100000"), 2: Decimal("3500")}
    )
    half_spread: Decimal = Decimal("0.0001")
    volatility: Decimal = Decimal("0.0002")

    @field_validator("initial_balance", "half_spread", "volatility", mode="before")
    @classmethod
    def convert_to_decimal(cls, v: Any) -> Decimal:
        return _to_decimal(v)


class AppConfig(BaseModel):
    """Root application configuration."""

    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)
    wallet: WalletConfig = Field(default_factory=WalletConfig)
    nado: NadoConfig = Field(default_factory=NadoConfig)
    quoting: QuotingConfig = Field(default_factory=QuotingConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    sim: SimConfig = Field(default_factory=SimConfig)

    @property
    def is_dry_run(self) -> bool:
        """Check if running in dry run mode."""
        return self.environment.dry_run

    @property
    def is_sim_mode(self) -> bool:
        """Check if using the in-memory exchange."""
        return self.environment.exchange_mode == ExchangeMode.SIM

    def require_signing_key(self) -> None:
        """
        Fail fast when a live exchange is selected without a signing key.

        Raises:
            ConfigurationError: If PRIVATE_KEY is missing in nado mode.
        """
        if not self.is_sim_mode and not self.wallet.has_private_key:
            raise ConfigurationError("PRIVATE_KEY is not set (wallet.private_key)")


# ============================================
# Configuration Loader
# ============================================


class ConfigLoader:
    """Load and validate configuration from YAML files with env var interpolation."""

    def __init__(self, config_path: str | Path) -> None:
        """
        Initialize config loader.

        Args:
            config_path: Path to the YAML configuration file.
        """
        self.config_path = Path(config_path)
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """
        Load and validate configuration.

        Returns:
            Validated AppConfig instance.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            yaml.YAMLError: If YAML is invalid.
            pydantic.ValidationError: If config validation fails.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            raw_config = {}

        processed_config = process_config_dict(raw_config)
        self._config = AppConfig.model_validate(processed_config)

        return self._config

    @property
    def config(self) -> AppConfig:
        """Get loaded config, loading if necessary."""
        if self._config is None:
            return self.load()
        return self._config


def load_config(config_path: str | Path) -> AppConfig:
    """Convenience function to load configuration."""
    return ConfigLoader(config_path).load()


def load_config_with_overrides(
    config_path: str | Path,
    *,
    dry_run: bool | None = None,
    exchange_mode: str | None = None,
    feed_mode: str | None = None,
) -> AppConfig:
    """
    Load configuration with CLI overrides.

    Args:
        config_path: Path to the YAML configuration file.
        dry_run: Override dry_run setting.
        exchange_mode: Override exchange mode (nado or sim).
        feed_mode: Override price feed mode.

    Returns:
        Validated AppConfig instance with overrides applied.
    """
    config = load_config(config_path)

    updates: dict[str, Any] = {}
    env_updates: dict[str, Any] = {}

    if dry_run is not None:
        env_updates["dry_run"] = dry_run

    if exchange_mode is not None:
        env_updates["exchange_mode"] = ExchangeMode(exchange_mode.lower())

    if env_updates:
        updates["environment"] = config.environment.model_copy(update=env_updates)

    if feed_mode is not None:
        updates["feed"] = config.feed.model_copy(update={"mode": FeedMode(feed_mode.lower())})

    if updates:
        return config.model_copy(update=updates)

    return config
