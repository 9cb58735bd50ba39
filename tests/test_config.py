"""Tests for storefront config loading and wiring."""

import os
import tempfile
from decimal import Decimal

import pytest
from kungfu import Error, Ok

from mealcart.cart import CartErrorKind, MenuItem
from mealcart.config import (
    StorefrontConfig,
    build_shipping_policy,
    create_cart_engine,
    load_config,
    open_cart,
)
from mealcart.shipping import (
    DistanceMeteredPolicy,
    DistanceReading,
    PolicyKind,
    QuantityTierPolicy,
)
from mealcart.lift import from_result


def write_toml(content: bytes) -> str:
    with tempfile.NamedTemporaryFile(suffix=".toml", delete=False) as f:
        f.write(content)
        f.flush()
        return f.name


def test_load_config_defaults(monkeypatch):
    """Loading with no path returns all defaults."""
    monkeypatch.delenv("MEALCART_API_TOKEN", raising=False)
    monkeypatch.delenv("MEALCART_DATABASE_URL", raising=False)

    config = load_config()
    assert isinstance(config, StorefrontConfig)
    assert config.api.timeout_seconds == 10.0
    assert config.api.token == ""
    assert config.shipping.policy == "distance"
    assert config.shipping.rate_per_km == Decimal(3000)
    assert config.shipping.free_threshold == Decimal(500000)
    assert config.cart.store_name == "mealcart-cart"
    assert config.cart.database_url == ""
    assert config.payment.mount_point == "snap-container"
    assert config.logging.level == "INFO"


def test_load_config_nonexistent_file():
    config = load_config("/nonexistent/path.toml")
    assert config.shipping.policy == "distance"


def test_load_config_from_toml(monkeypatch):
    monkeypatch.delenv("MEALCART_API_TOKEN", raising=False)
    path = write_toml(
        b"""\
[api]
base_url = "https://api.warung.test"
timeout_seconds = 5
token = "file-token"

[shipping]
policy = "quantity"
rate_per_km = 3500
free_threshold = "750000"

[cart]
store_name = "warung-cart"

[payment]
mount_point = "pay-here"

[logging]
level = "debug"
"""
    )
    try:
        config = load_config(path)
    finally:
        os.unlink(path)

    assert config.api.base_url == "https://api.warung.test"
    assert config.api.timeout_seconds == 5.0
    assert config.api.token == "file-token"
    assert config.shipping.policy == "quantity"
    assert config.shipping.rate_per_km == Decimal(3500)
    assert config.shipping.free_threshold == Decimal(750000)
    assert config.cart.store_name == "warung-cart"
    assert config.payment.mount_point == "pay-here"
    assert config.logging.level == "DEBUG"


def test_env_overrides_secrets(monkeypatch):
    monkeypatch.setenv("MEALCART_API_TOKEN", "env-token")
    monkeypatch.setenv("MEALCART_DATABASE_URL", "sqlite+aiosqlite:///env.db")
    path = write_toml(b'[api]\ntoken = "file-token"\n')
    try:
        config = load_config(path)
    finally:
        os.unlink(path)

    assert config.api.token == "env-token"
    assert config.cart.database_url == "sqlite+aiosqlite:///env.db"


def test_unknown_policy_is_rejected():
    path = write_toml(b'[shipping]\npolicy = "drone"\n')
    try:
        with pytest.raises(ValueError, match="drone"):
            load_config(path)
    finally:
        os.unlink(path)


class FixedDistance:
    def measure(self, destination):
        return from_result(Ok(DistanceReading(Decimal(10), "20 mins")))


def test_build_quantity_policy():
    config = StorefrontConfig()
    config.shipping.policy = "quantity"

    assert isinstance(build_shipping_policy(config), QuantityTierPolicy)


def test_build_distance_policy_uses_configured_rates():
    config = StorefrontConfig()
    config.shipping.rate_per_km = Decimal(4000)

    policy = build_shipping_policy(config, FixedDistance())
    assert isinstance(policy, DistanceMeteredPolicy)
    assert policy.kind == PolicyKind.DISTANCE_METERED
    assert policy.rates.rate_per_km == Decimal(4000)


@pytest.mark.asyncio
async def test_open_cart_in_memory_by_default():
    config = StorefrontConfig()

    match await open_cart(config):
        case Ok(cart):
            assert cart.name == "mealcart-cart"
            assert cart.snapshot().is_empty
        case Error(e):
            pytest.fail(f"unexpected error: {e}")


@pytest.mark.asyncio
async def test_open_cart_with_database_url():
    with tempfile.TemporaryDirectory() as tmp:
        config = StorefrontConfig()
        config.cart.database_url = f"sqlite+aiosqlite:///{os.path.join(tmp, 'cart.db')}"

        engine = create_cart_engine(config)
        assert engine is not None
        try:
            match await open_cart(config, engine):
                case Ok(cart):
                    await cart.add_plain(MenuItem("m1", "Nasi Goreng", Decimal(25000)), 1)
                case Error(e):
                    pytest.fail(f"unexpected error: {e}")

            match await open_cart(config, engine):
                case Ok(cart):
                    assert cart.item_count() == 1
                case Error(e):
                    pytest.fail(f"unexpected error: {e}")
        finally:
            await engine.dispose()


def test_no_engine_without_database_url():
    assert create_cart_engine(StorefrontConfig()) is None


@pytest.mark.asyncio
async def test_open_cart_with_database_url_needs_engine():
    config = StorefrontConfig()
    config.cart.database_url = "sqlite+aiosqlite:///unused.db"

    match await open_cart(config):
        case Error(e):
            assert e.kind == CartErrorKind.STORAGE
        case Ok(cart):
            pytest.fail(f"unexpected cart: {cart}")
