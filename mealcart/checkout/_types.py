"""
Checkout types — session state, payment events, order wire shapes, collaborators.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Protocol

from kungfu import LazyCoroResult

from mealcart._types import Money
from mealcart.cart import CartLine, CartSnapshot
from mealcart.shipping import ShippingQuote

# ═══════════════════════════════════════════════════════════════════════════════
# Status
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutStatus(Enum):
    """
    Session states.

    IDLE → SUBMITTING → AWAITING_PAYMENT → {SUCCEEDED | PENDING | FAILED | CANCELLED}
    """

    IDLE = auto()
    SUBMITTING = auto()
    AWAITING_PAYMENT = auto()
    SUCCEEDED = auto()
    PENDING = auto()
    FAILED = auto()
    CANCELLED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    @property
    def is_active(self) -> bool:
        return self in (CheckoutStatus.SUBMITTING, CheckoutStatus.AWAITING_PAYMENT)


_TERMINAL = frozenset(
    {
        CheckoutStatus.SUCCEEDED,
        CheckoutStatus.PENDING,
        CheckoutStatus.FAILED,
        CheckoutStatus.CANCELLED,
    }
)


# ═══════════════════════════════════════════════════════════════════════════════
# Payment Events — Tagged Variants
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class PaymentSucceeded:
    order_id: str


@dataclass(frozen=True, slots=True)
class PaymentPending:
    order_id: str


@dataclass(frozen=True, slots=True)
class PaymentErrored:
    reason: str


@dataclass(frozen=True, slots=True)
class PaymentClosed:
    pass


type PaymentEvent = PaymentSucceeded | PaymentPending | PaymentErrored | PaymentClosed


@dataclass(frozen=True, slots=True)
class PaymentSignal:
    """A widget callback, tagged with the session that mounted the widget."""

    session_id: str
    event: PaymentEvent


# ═══════════════════════════════════════════════════════════════════════════════
# Order Wire Shapes
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderItem:
    menu_id: str
    menu_name: str
    quantity: int
    price: Money  # unit price including add-ons
    notes: str = ""
    addon_ids: tuple[str, ...] = ()

    @classmethod
    def from_line(cls, line: CartLine) -> OrderItem:
        return cls(
            menu_id=line.item.menu_id,
            menu_name=line.item.name,
            quantity=line.quantity,
            price=line.unit_total,
            notes=line.notes,
            addon_ids=tuple(addon.menu_id for addon in line.addons),
        )


@dataclass(frozen=True, slots=True)
class OrderRequest:
    address_id: str
    items: tuple[OrderItem, ...]
    shipping_cost: Money

    @classmethod
    def build(cls, address_id: str, cart: CartSnapshot, quote: ShippingQuote) -> OrderRequest:
        return cls(
            address_id=address_id,
            items=tuple(OrderItem.from_line(line) for line in cart.lines),
            shipping_cost=quote.cost,
        )


@dataclass(frozen=True, slots=True)
class OrderHandle:
    """Order API answer: the created order and its opaque payment handle."""

    order_id: str
    payment_handle: str


class PaymentStatus(Enum):
    """Values accepted by the payment write-back endpoint."""

    PAID = "Paid"
    PENDING = "Pending"
    FAILED = "Failed"


# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class CheckoutErrorKind(Enum):
    """Kinds of checkout errors."""

    VALIDATION = auto()  # Empty cart, no address, missing or stale quote
    INVALID_STATE = auto()  # Another session is in flight
    ORDER_SUBMISSION_FAILED = auto()  # Order API rejected or unreachable
    PAYMENT_FAILED = auto()
    PAYMENT_CANCELLED = auto()
    WRITE_BACK_FAILED = auto()  # Post-success status update, non-fatal


@dataclass(frozen=True, slots=True)
class CheckoutError:
    kind: CheckoutErrorKind
    message: str
    cause: str | None = None

    @classmethod
    def validation(cls, message: str) -> CheckoutError:
        return cls(CheckoutErrorKind.VALIDATION, message)

    @classmethod
    def invalid_state(cls, message: str) -> CheckoutError:
        return cls(CheckoutErrorKind.INVALID_STATE, message)


# ═══════════════════════════════════════════════════════════════════════════════
# Session
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CheckoutSession:
    """
    One payment attempt.

    Frozen: each transition produces a new session, the orchestrator keeps
    the latest and appends every one to its history.
    """

    session_id: str
    cart: CartSnapshot
    quote: ShippingQuote
    address_id: str
    status: CheckoutStatus = CheckoutStatus.SUBMITTING
    order_id: str | None = None
    payment_handle: str | None = None
    error: CheckoutError | None = None
    write_back_error: CheckoutError | None = None

    def moved(self, status: CheckoutStatus, **changes: object) -> CheckoutSession:
        return replace(self, status=status, **changes)


@dataclass(frozen=True, slots=True)
class CheckoutSummary:
    """Cart page totals. shipping is None until a quote is available."""

    subtotal: Money
    shipping: Money | None
    grand_total: Money
    item_count: int


# ═══════════════════════════════════════════════════════════════════════════════
# Collaborators
# ═══════════════════════════════════════════════════════════════════════════════


class OrderApi(Protocol):
    def create_order(self, request: OrderRequest) -> LazyCoroResult[OrderHandle, CheckoutError]:
        ...

    def mark_paid(self, order_id: str) -> LazyCoroResult[None, CheckoutError]:
        ...


class PaymentWidget(Protocol):
    """
    Third-party payment UI.

    mount() renders the widget for payment_handle at mount_point and wires
    its four callbacks to the given channel. It may raise if the widget
    cannot be rendered.
    """

    async def mount(
        self,
        payment_handle: str,
        mount_point: str,
        channel: PaymentCallbacks,
    ) -> None:
        ...


class PaymentCallbacks(Protocol):
    def on_success(self, order_id: str) -> None: ...

    def on_pending(self, order_id: str) -> None: ...

    def on_error(self, reason: str) -> None: ...

    def on_close(self) -> None: ...


class Notifier(Protocol):
    """User-facing messages (toast, alert)."""

    def notify(self, message: str) -> None:
        ...


type ReceiptHandoff = Callable[[str], Awaitable[None]]


__all__ = (
    "CheckoutStatus",
    "PaymentSucceeded",
    "PaymentPending",
    "PaymentErrored",
    "PaymentClosed",
    "PaymentEvent",
    "PaymentSignal",
    "OrderItem",
    "OrderRequest",
    "OrderHandle",
    "PaymentStatus",
    "CheckoutErrorKind",
    "CheckoutError",
    "CheckoutSession",
    "CheckoutSummary",
    "OrderApi",
    "PaymentWidget",
    "PaymentCallbacks",
    "Notifier",
    "ReceiptHandoff",
)
