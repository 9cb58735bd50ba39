"""TOML configuration loader and wiring helpers for a storefront."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from kungfu import Result, Error
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from mealcart._types import Money, to_money
from mealcart.cart import (
    CartError,
    CartStorage,
    CartStore,
    DEFAULT_STORE_NAME,
    MemoryStorage,
    SQLAlchemyStorage,
)
from mealcart.shipping import (
    DistanceClient,
    DistanceMeteredPolicy,
    DistanceRates,
    DistanceService,
    QuantityTierPolicy,
    ShippingPolicy,
)

POLICY_DISTANCE = "distance"
POLICY_QUANTITY = "quantity"


@dataclass
class ApiConfig:
    base_url: str = "http://localhost:8000"
    timeout_seconds: float = 10.0
    token: str = ""


@dataclass
class ShippingConfig:
    policy: str = POLICY_DISTANCE
    rate_per_km: Money = Decimal(3000)
    free_threshold: Money = Decimal(500000)


@dataclass
class CartConfig:
    store_name: str = DEFAULT_STORE_NAME
    database_url: str = ""


@dataclass
class PaymentConfig:
    mount_point: str = "snap-container"


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class StorefrontConfig:
    api: ApiConfig = field(default_factory=ApiConfig)
    shipping: ShippingConfig = field(default_factory=ShippingConfig)
    cart: CartConfig = field(default_factory=CartConfig)
    payment: PaymentConfig = field(default_factory=PaymentConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> StorefrontConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The API token and database URL can be overridden via environment variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    api = raw.get("api", {})
    shp = raw.get("shipping", {})
    crt = raw.get("cart", {})
    pay = raw.get("payment", {})
    log = raw.get("logging", {})

    policy = shp.get("policy", POLICY_DISTANCE)
    if policy not in (POLICY_DISTANCE, POLICY_QUANTITY):
        raise ValueError(
            f"shipping.policy must be {POLICY_DISTANCE!r} or {POLICY_QUANTITY!r}, got {policy!r}"
        )

    # Secrets: environment variable → config file
    token = os.environ.get("MEALCART_API_TOKEN", "") or api.get("token", "")
    database_url = os.environ.get("MEALCART_DATABASE_URL", "") or crt.get("database_url", "")

    return StorefrontConfig(
        api=ApiConfig(
            base_url=api.get("base_url", "http://localhost:8000"),
            timeout_seconds=float(api.get("timeout_seconds", 10.0)),
            token=token,
        ),
        shipping=ShippingConfig(
            policy=policy,
            rate_per_km=to_money(shp.get("rate_per_km", 3000)),
            free_threshold=to_money(shp.get("free_threshold", 500000)),
        ),
        cart=CartConfig(
            store_name=crt.get("store_name", DEFAULT_STORE_NAME),
            database_url=database_url,
        ),
        payment=PaymentConfig(
            mount_point=pay.get("mount_point", "snap-container"),
        ),
        logging=LoggingConfig(
            level=str(log.get("level", "INFO")).upper(),
        ),
    )


def configure_logging(level: str = "INFO") -> None:
    """Basic console logging for hosts that have none. The library never calls this."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_shipping_policy(
    config: StorefrontConfig,
    distance_service: DistanceService | None = None,
) -> ShippingPolicy:
    """Pick the shipping strategy named in config.

    The distance policy uses distance_service when given, otherwise a
    DistanceClient against the configured API.
    """
    if config.shipping.policy == POLICY_QUANTITY:
        return QuantityTierPolicy()

    service = distance_service
    if service is None:
        service = DistanceClient(
            config.api.base_url,
            timeout_seconds=config.api.timeout_seconds,
            token=config.api.token or None,
        )
    rates = (
        DistanceRates()
        .with_rate(config.shipping.rate_per_km)
        .with_free_threshold(config.shipping.free_threshold)
    )
    return DistanceMeteredPolicy(service, rates)


def create_cart_engine(config: StorefrontConfig) -> AsyncEngine | None:
    """Engine for the configured cart database, or None for an in-memory cart. The caller disposes it."""
    if not config.cart.database_url:
        return None
    return create_async_engine(config.cart.database_url)


async def open_cart(
    config: StorefrontConfig,
    engine: AsyncEngine | None = None,
) -> Result[CartStore, CartError]:
    """
    Open the configured cart.

    With an engine the cart lives in SQLAlchemy storage on it; without one
    it lives in memory. A configured database_url with no engine is an error.

    Example:
        engine = create_cart_engine(config)
        try:
            match await open_cart(config, engine):
                ...
        finally:
            if engine is not None:
                await engine.dispose()
    """
    storage: CartStorage
    if engine is not None:
        await SQLAlchemyStorage.create_schema(engine)
        storage = SQLAlchemyStorage(async_sessionmaker(engine, expire_on_commit=False))
    elif config.cart.database_url:
        return Error(
            CartError.storage("database_url is configured, pass the engine from create_cart_engine")
        )
    else:
        storage = MemoryStorage()

    return await CartStore.open(storage, config.cart.store_name)


__all__ = (
    "ApiConfig",
    "ShippingConfig",
    "CartConfig",
    "PaymentConfig",
    "LoggingConfig",
    "StorefrontConfig",
    "load_config",
    "configure_logging",
    "build_shipping_policy",
    "create_cart_engine",
    "open_cart",
)
