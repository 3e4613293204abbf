from __future__ import annotations

from decimal import Decimal

import pytest

from storefront.core.config import ShippingConfig, load_settings
from storefront.core.exceptions import ConfigurationException


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "STOREFRONT_API_URL",
        "STOREFRONT_API_TIMEOUT",
        "REDIS_URL",
        "STOREFRONT_STATE_DIR",
        "LIST_FETCH_RETRIES",
        "FREE_SHIPPING_THRESHOLD",
        "FLAT_SHIPPING_FEE",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("storefront.core.config.load_dotenv", lambda *args, **kwargs: False)
    return monkeypatch


def test_defaults(clean_env) -> None:
    settings = load_settings()

    assert settings.api_base_url == "http://localhost:5000/api"
    assert settings.redis_url is None
    assert settings.shipping == ShippingConfig()
    assert settings.shipping.free_threshold == Decimal("500")
    assert settings.shipping.flat_fee == Decimal("50")


def test_environment_overrides(clean_env) -> None:
    clean_env.setenv("STOREFRONT_API_URL", "https://shop.example.com/api/")
    clean_env.setenv("FREE_SHIPPING_THRESHOLD", "999")
    clean_env.setenv("FLAT_SHIPPING_FEE", "40.5")
    clean_env.setenv("LIST_FETCH_RETRIES", "0")
    clean_env.setenv("LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.api_base_url == "https://shop.example.com/api"
    assert settings.shipping.free_threshold == Decimal("999")
    assert settings.shipping.flat_fee == Decimal("40.5")
    assert settings.list_fetch_retries == 0
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("STOREFRONT_API_TIMEOUT", "soon"),
        ("STOREFRONT_API_TIMEOUT", "0"),
        ("LIST_FETCH_RETRIES", "-1"),
        ("FLAT_SHIPPING_FEE", "-5"),
        ("FREE_SHIPPING_THRESHOLD", "lots"),
    ],
)
def test_invalid_values_are_rejected(clean_env, name, value) -> None:
    clean_env.setenv(name, value)
    with pytest.raises(ConfigurationException):
        load_settings()
