"""
Checkout — order submission and the payment widget lifecycle.

    from mealcart import checkout as CO

    checkout = CO.CheckoutOrchestrator(
        cart,
        CO.OrderClient(base_url, token=token),
        widget,
        notifier=toaster,
        on_receipt=open_receipt,
    )

    match await checkout.submit_order(address_id, destination, quote):
        case Ok(_):
            match await checkout.await_payment():
                case Ok(session):
                    session.status
        case Error(e):
            e.kind

The widget reports through the four callbacks it is mounted with
(on_success, on_pending, on_error, on_close); only on_success clears the cart.
"""

from mealcart.checkout._types import (
    CheckoutStatus,
    PaymentSucceeded,
    PaymentPending,
    PaymentErrored,
    PaymentClosed,
    PaymentEvent,
    PaymentSignal,
    OrderItem,
    OrderRequest,
    OrderHandle,
    PaymentStatus,
    CheckoutErrorKind,
    CheckoutError,
    CheckoutSession,
    CheckoutSummary,
    OrderApi,
    PaymentWidget,
    PaymentCallbacks,
    Notifier,
    ReceiptHandoff,
)
from mealcart.checkout._widget import SessionCallbacks, PaymentChannel
from mealcart.checkout._orders import (
    OrderRejected,
    OrderItemBody,
    CreateOrderBody,
    OrderCreated,
    OrderClient,
)
from mealcart.checkout._summary import (
    SummaryInput,
    SummaryInputNode,
    SubtotalNode,
    ShippingNode,
    GrandTotalNode,
    summarize,
)
from mealcart.checkout._orchestrator import DEFAULT_MOUNT_POINT, CheckoutOrchestrator

__all__ = (
    # Types
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
    # Collaborators
    "OrderApi",
    "PaymentWidget",
    "PaymentCallbacks",
    "Notifier",
    "ReceiptHandoff",
    # Payment channel
    "SessionCallbacks",
    "PaymentChannel",
    # Order API client
    "OrderRejected",
    "OrderItemBody",
    "CreateOrderBody",
    "OrderCreated",
    "OrderClient",
    # Summary graph
    "SummaryInput",
    "SummaryInputNode",
    "SubtotalNode",
    "ShippingNode",
    "GrandTotalNode",
    "summarize",
    # Orchestrator
    "DEFAULT_MOUNT_POINT",
    "CheckoutOrchestrator",
)
