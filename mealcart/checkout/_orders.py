"""
Order API HTTP client.

    POST {base}/orders               {address_id, items[], shipping_cost}
                                     → {order_id, payment_handle | snap_token}
    PUT  {base}/orders/{id}/payment  {status: "Paid" | "Pending" | "Failed"}

Money goes over the wire as decimal strings.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

import aiohttp
from pydantic import BaseModel, ConfigDict

from kungfu import LazyCoroResult

from mealcart.lift import catching_async
from mealcart.checkout._types import (
    CheckoutError,
    CheckoutErrorKind,
    OrderHandle,
    OrderItem,
    OrderRequest,
    PaymentStatus,
)

logger = logging.getLogger(__name__)


class OrderRejected(Exception):
    """Order API answered with a non-2xx status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"HTTP {status}: {message}")
        self.status = status
        self.message = message


# ═══════════════════════════════════════════════════════════════════════════════
# Wire Models
# ═══════════════════════════════════════════════════════════════════════════════


class OrderItemBody(BaseModel):
    menu_id: str
    menu_name: str
    quantity: int
    price: Decimal
    notes: str = ""
    addon_ids: list[str] = []

    @classmethod
    def from_domain(cls, item: OrderItem) -> OrderItemBody:
        return cls(
            menu_id=item.menu_id,
            menu_name=item.menu_name,
            quantity=item.quantity,
            price=item.price,
            notes=item.notes,
            addon_ids=list(item.addon_ids),
        )


class CreateOrderBody(BaseModel):
    address_id: str
    items: list[OrderItemBody]
    shipping_cost: Decimal

    @classmethod
    def from_domain(cls, request: OrderRequest) -> CreateOrderBody:
        return cls(
            address_id=request.address_id,
            items=[OrderItemBody.from_domain(item) for item in request.items],
            shipping_cost=request.shipping_cost,
        )


class OrderCreated(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    order_id: str
    payment_handle: str | None = None
    snap_token: str | None = None

    def to_domain(self) -> OrderHandle:
        handle = self.payment_handle or self.snap_token
        if not handle:
            raise ValueError("Order created without a payment handle")
        return OrderHandle(order_id=self.order_id, payment_handle=handle)


# ═══════════════════════════════════════════════════════════════════════════════
# Client
# ═══════════════════════════════════════════════════════════════════════════════


def _error(kind: CheckoutErrorKind, action: str):
    def on_error(exc: Exception) -> CheckoutError:
        logger.error("%s failed: %s", action, exc)
        if isinstance(exc, OrderRejected):
            return CheckoutError(kind, f"{action} failed", cause=exc.message)
        return CheckoutError(kind, f"{action} failed", cause=str(exc))

    return on_error


class OrderClient:
    """OrderApi over the storefront's REST API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        token: str | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._token = token

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _send(self, method: str, path: str, body: dict[str, Any]) -> Any:
        async with aiohttp.ClientSession(timeout=self._timeout) as session:
            async with session.request(
                method,
                f"{self._base_url}{path}",
                json=body,
                headers=self._headers(),
            ) as response:
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    data = None

                if response.status >= 400:
                    message = None
                    if isinstance(data, dict):
                        message = data.get("message") or data.get("detail")
                    raise OrderRejected(response.status, str(message or response.reason))
                return data

    def create_order(self, request: OrderRequest) -> LazyCoroResult[OrderHandle, CheckoutError]:
        body = CreateOrderBody.from_domain(request).model_dump(mode="json")

        async def submit() -> OrderHandle:
            data = await self._send("POST", "/orders", body)
            handle = OrderCreated.model_validate(data).to_domain()
            logger.info("Order %s created", handle.order_id)
            return handle

        return catching_async(
            submit,
            on_error=_error(CheckoutErrorKind.ORDER_SUBMISSION_FAILED, "Order submission"),
        )

    def update_payment(
        self,
        order_id: str,
        status: PaymentStatus,
    ) -> LazyCoroResult[None, CheckoutError]:
        async def put() -> None:
            await self._send("PUT", f"/orders/{order_id}/payment", {"status": status.value})

        return catching_async(
            put,
            on_error=_error(CheckoutErrorKind.WRITE_BACK_FAILED, "Payment write-back"),
        )

    def mark_paid(self, order_id: str) -> LazyCoroResult[None, CheckoutError]:
        return self.update_payment(order_id, PaymentStatus.PAID)


__all__ = (
    "OrderRejected",
    "OrderItemBody",
    "CreateOrderBody",
    "OrderCreated",
    "OrderClient",
)
