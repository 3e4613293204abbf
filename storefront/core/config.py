"""Environment-driven configuration objects for the storefront core."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

from storefront.core.constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT,
    DEFAULT_CURRENCY_SYMBOL,
    DEFAULT_FLAT_SHIPPING_FEE,
    DEFAULT_FREE_SHIPPING_THRESHOLD,
    DEFAULT_LIST_FETCH_RETRIES,
)
from storefront.core.exceptions import ConfigurationException


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationException(f"{name} must be an integer, got {raw!r}") from exc


def _env_decimal(name: str, default: int) -> Decimal:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return Decimal(default)
    try:
        value = Decimal(raw.strip())
    except InvalidOperation as exc:
        raise ConfigurationException(f"{name} must be a number, got {raw!r}") from exc
    if not value.is_finite() or value < 0:
        raise ConfigurationException(f"{name} must be a non-negative number, got {raw!r}")
    return value


@dataclass(slots=True, frozen=True)
class ShippingConfig:
    """Single source of truth for the shipping fee rule."""

    free_threshold: Decimal = Decimal(DEFAULT_FREE_SHIPPING_THRESHOLD)
    flat_fee: Decimal = Decimal(DEFAULT_FLAT_SHIPPING_FEE)


@dataclass(slots=True)
class Settings:
    api_base_url: str = DEFAULT_API_BASE_URL
    api_timeout: int = DEFAULT_API_TIMEOUT
    redis_url: str | None = None
    state_dir: str | None = None
    list_fetch_retries: int = DEFAULT_LIST_FETCH_RETRIES
    currency_symbol: str = DEFAULT_CURRENCY_SYMBOL
    log_level: str = "INFO"
    shipping: ShippingConfig = field(default_factory=ShippingConfig)


def load_settings() -> Settings:
    """Load environment variables once and expose typed settings."""
    load_dotenv()

    api_timeout = _env_int("STOREFRONT_API_TIMEOUT", DEFAULT_API_TIMEOUT)
    if api_timeout <= 0:
        raise ConfigurationException("STOREFRONT_API_TIMEOUT must be positive")

    retries = _env_int("LIST_FETCH_RETRIES", DEFAULT_LIST_FETCH_RETRIES)
    if retries < 0:
        raise ConfigurationException("LIST_FETCH_RETRIES must not be negative")

    shipping = ShippingConfig(
        free_threshold=_env_decimal("FREE_SHIPPING_THRESHOLD", DEFAULT_FREE_SHIPPING_THRESHOLD),
        flat_fee=_env_decimal("FLAT_SHIPPING_FEE", DEFAULT_FLAT_SHIPPING_FEE),
    )

    return Settings(
        api_base_url=os.getenv("STOREFRONT_API_URL", DEFAULT_API_BASE_URL).rstrip("/"),
        api_timeout=api_timeout,
        redis_url=os.getenv("REDIS_URL") or None,
        state_dir=os.getenv("STOREFRONT_STATE_DIR") or None,
        list_fetch_retries=retries,
        currency_symbol=os.getenv("CURRENCY_SYMBOL", DEFAULT_CURRENCY_SYMBOL),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        shipping=shipping,
    )
