"""
CheckoutOrchestrator — order submission and payment as a state machine.

    IDLE ──submit──▶ SUBMITTING ──order ok──▶ AWAITING_PAYMENT
                         │                        │
                    order failed          success │ pending │ error │ close
                         ▼                        ▼
                        IDLE         SUCCEEDED  PENDING  FAILED  CANCELLED

The cart is cleared on exactly one transition: AWAITING_PAYMENT → SUCCEEDED.
Widget callbacks arrive as PaymentSignals tagged with a session id; the
state machine drops any signal that is not for the live, non-terminal
session, so a second onSuccess is a no-op.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable

from kungfu import Result, Ok, Error

from mealcart.lift import catching_async
from mealcart.cart import CartStore
from mealcart.shipping import ShippingQuote
from mealcart.checkout._summary import summarize
from mealcart.checkout._types import (
    CheckoutError,
    CheckoutErrorKind,
    CheckoutSession,
    CheckoutStatus,
    CheckoutSummary,
    Notifier,
    OrderApi,
    OrderRequest,
    PaymentClosed,
    PaymentErrored,
    PaymentPending,
    PaymentSignal,
    PaymentSucceeded,
    PaymentWidget,
    ReceiptHandoff,
)
from mealcart.checkout._widget import PaymentChannel

logger = logging.getLogger(__name__)

DEFAULT_MOUNT_POINT = "snap-container"

MSG_ORDER_FAILED = "Could not place the order. Please try again."
MSG_PENDING = "Waiting for payment..."
MSG_PAYMENT_FAILED = "Payment failed. Please try again."


def _new_session_id() -> str:
    return uuid.uuid4().hex


class CheckoutOrchestrator:
    """
    One checkout per cart.

    Example:
        checkout = CheckoutOrchestrator(cart, OrderClient(url), widget, on_receipt=show_receipt)

        match await checkout.submit_order(address.address_id, address.full_text, quote):
            case Ok(_):
                final = await checkout.await_payment()
            case Error(e):
                e.kind
    """

    def __init__(
        self,
        cart: CartStore,
        orders: OrderApi,
        widget: PaymentWidget,
        *,
        notifier: Notifier | None = None,
        on_receipt: ReceiptHandoff | None = None,
        mount_point: str = DEFAULT_MOUNT_POINT,
        channel: PaymentChannel | None = None,
        session_ids: Callable[[], str] = _new_session_id,
    ) -> None:
        self._cart = cart
        self._orders = orders
        self._widget = widget
        self._notifier = notifier
        self._on_receipt = on_receipt
        self._mount_point = mount_point
        self._channel = channel if channel is not None else PaymentChannel()
        self._session_ids = session_ids
        self._session: CheckoutSession | None = None
        self._history: list[CheckoutSession] = []
        self._finalizing = False

    # ───────────────────────────────────────────────────────────────────────────
    # Observers
    # ───────────────────────────────────────────────────────────────────────────

    @property
    def status(self) -> CheckoutStatus:
        """A cancelled payment returns the checkout to IDLE."""
        session = self._session
        if session is None or session.status is CheckoutStatus.CANCELLED:
            return CheckoutStatus.IDLE
        return session.status

    @property
    def session(self) -> CheckoutSession | None:
        return self._session

    @property
    def history(self) -> tuple[CheckoutSession, ...]:
        return tuple(self._history)

    @property
    def channel(self) -> PaymentChannel:
        return self._channel

    async def summary(self, quote: ShippingQuote | None) -> CheckoutSummary:
        """Subtotal, shipping and grand total for the current cart."""
        return await summarize(self._cart.snapshot(), quote)

    # ───────────────────────────────────────────────────────────────────────────
    # Submission
    # ───────────────────────────────────────────────────────────────────────────

    async def submit_order(
        self,
        address_id: str | None,
        destination: str,
        quote: ShippingQuote | None,
    ) -> Result[CheckoutSession, CheckoutError]:
        """
        Create the order and mount the payment widget.

        Nothing leaves the process unless the cart is non-empty, an address
        is selected and the quote was computed for this exact cart and
        destination.
        """
        if (err := self._check_idle()) is not None:
            return Error(err)

        cart = self._cart.snapshot()
        if cart.is_empty:
            return Error(CheckoutError.validation("Cart is empty"))
        if not address_id:
            return Error(CheckoutError.validation("Select a delivery address"))
        if quote is None:
            return Error(CheckoutError.validation("Shipping has not been calculated"))
        if not quote.is_valid_for(cart, destination):
            return Error(
                CheckoutError.validation("Shipping quote is out of date, recalculate shipping")
            )

        self._cart.claim_checkout(self)
        session = self._enter(
            CheckoutSession(
                session_id=self._session_ids(),
                cart=cart,
                quote=quote,
                address_id=address_id,
            )
        )
        logger.info(
            "Submitting order for session %s: %d items, subtotal %s, shipping %s",
            session.session_id,
            cart.item_count,
            cart.total,
            quote.cost,
        )

        created = await self._orders.create_order(OrderRequest.build(address_id, cart, quote))
        match created:
            case Error(e):
                self._enter(session.moved(CheckoutStatus.IDLE, error=e))
                self._notify(MSG_ORDER_FAILED)
                return Error(e)
            case Ok(handle):
                session = self._enter(
                    session.moved(
                        CheckoutStatus.AWAITING_PAYMENT,
                        order_id=handle.order_id,
                        payment_handle=handle.payment_handle,
                    )
                )
                return await self._mount(session, handle.payment_handle)

    async def retry_payment(self) -> Result[CheckoutSession, CheckoutError]:
        """
        Reopen the widget for an order whose payment failed or was closed.

        Opens a new session on the same order and payment handle, so signals
        from the previous widget are ignored.
        """
        previous = self._session
        if previous is None or previous.status not in (
            CheckoutStatus.FAILED,
            CheckoutStatus.CANCELLED,
        ):
            return Error(CheckoutError.invalid_state("No failed or cancelled payment to retry"))
        if (err := self._check_idle()) is not None:
            return Error(err)
        if previous.payment_handle is None:
            return Error(CheckoutError.invalid_state("Order has no payment handle"))
        if self._cart.snapshot() != previous.cart:
            return Error(
                CheckoutError.validation("Cart changed since the order was placed, submit again")
            )

        self._cart.claim_checkout(self)
        session = self._enter(
            previous.moved(
                CheckoutStatus.AWAITING_PAYMENT,
                session_id=self._session_ids(),
                error=None,
            )
        )
        logger.info("Retrying payment for order %s", session.order_id)
        return await self._mount(session, previous.payment_handle)

    async def _mount(
        self,
        session: CheckoutSession,
        handle: str,
    ) -> Result[CheckoutSession, CheckoutError]:
        callbacks = self._channel.bind(session.session_id)

        async def mount() -> None:
            await self._widget.mount(handle, self._mount_point, callbacks)

        mounted = await catching_async(
            mount,
            on_error=lambda e: CheckoutError(
                CheckoutErrorKind.PAYMENT_FAILED,
                "Payment widget could not be opened",
                cause=str(e),
            ),
        )
        match mounted:
            case Error(e):
                logger.error("Widget mount failed for order %s: %s", session.order_id, e.cause)
                self._enter(session.moved(CheckoutStatus.FAILED, error=e))
                self._notify(MSG_PAYMENT_FAILED)
                return Error(e)
            case Ok(_):
                return Ok(session)

    # ───────────────────────────────────────────────────────────────────────────
    # Payment events
    # ───────────────────────────────────────────────────────────────────────────

    async def await_payment(self) -> Result[CheckoutSession, CheckoutError]:
        """Consume widget signals until the live session is terminal."""
        session = self._session
        if session is None or session.status is not CheckoutStatus.AWAITING_PAYMENT:
            if session is not None and session.status.is_terminal:
                return Ok(session)
            return Error(CheckoutError.invalid_state("No payment in progress"))

        while True:
            await self.handle(await self._channel.receive())
            current = self._session
            if current is None:
                return Error(CheckoutError.invalid_state("Checkout session was lost"))
            if current.status.is_terminal:
                return Ok(current)

    async def handle(self, signal: PaymentSignal) -> CheckoutSession | None:
        """
        Apply one widget signal.

        Returns the new session, or None when the signal was ignored.
        """
        session = self._session
        if session is None or signal.session_id != session.session_id:
            logger.warning("Ignoring %r for unknown session %s", signal.event, signal.session_id)
            return None
        if session.status is not CheckoutStatus.AWAITING_PAYMENT:
            logger.debug(
                "Ignoring %r, session %s already %s",
                signal.event,
                session.session_id,
                session.status.name,
            )
            return None

        match signal.event:
            case PaymentSucceeded(order_id):
                return await self._succeed(session, order_id)
            case PaymentPending(_):
                self._notify(MSG_PENDING)
                return self._enter(session.moved(CheckoutStatus.PENDING))
            case PaymentErrored(reason):
                self._notify(MSG_PAYMENT_FAILED)
                return self._enter(
                    session.moved(
                        CheckoutStatus.FAILED,
                        error=CheckoutError(
                            CheckoutErrorKind.PAYMENT_FAILED, "Payment failed", cause=reason
                        ),
                    )
                )
            case PaymentClosed():
                return self._enter(
                    session.moved(
                        CheckoutStatus.CANCELLED,
                        error=CheckoutError(
                            CheckoutErrorKind.PAYMENT_CANCELLED, "Payment window closed"
                        ),
                    )
                )

    async def _succeed(self, session: CheckoutSession, event_order_id: str) -> CheckoutSession:
        # Terminal before any await: a duplicate signal sees SUCCEEDED and is dropped.
        # The cart claim is held until the side effects below have run.
        self._finalizing = True
        try:
            done = self._enter(session.moved(CheckoutStatus.SUCCEEDED))
            order_id = session.order_id or event_order_id
            if event_order_id and event_order_id != order_id:
                logger.warning(
                    "Widget reported order %s, session holds %s", event_order_id, order_id
                )
            return await self._finalize(done, order_id)
        finally:
            self._finalizing = False
            self._cart.release_checkout(self)

    async def _finalize(self, done: CheckoutSession, order_id: str) -> CheckoutSession:
        written = await self._orders.mark_paid(order_id)
        match written:
            case Error(e):
                logger.warning("Payment write-back failed for order %s: %s", order_id, e.cause)
                write_back = CheckoutError(
                    CheckoutErrorKind.WRITE_BACK_FAILED, e.message, cause=e.cause
                )
                done = self._replace(done.moved(CheckoutStatus.SUCCEEDED, write_back_error=write_back))
            case Ok(_):
                pass

        cleared = await self._cart.clear()
        match cleared:
            case Error(e):
                logger.error("Cart was not cleared after order %s: %s", order_id, e.message)
            case Ok(_):
                logger.info("Order %s paid, cart cleared", order_id)

        if self._on_receipt is not None:
            await self._hand_off(self._on_receipt, order_id)
        return done

    async def _hand_off(self, on_receipt: ReceiptHandoff, order_id: str) -> None:
        async def run() -> None:
            await on_receipt(order_id)

        handed = await catching_async(run, on_error=str)
        match handed:
            case Error(reason):
                logger.error("Receipt hand-off failed for order %s: %s", order_id, reason)
            case Ok(_):
                pass

    # ───────────────────────────────────────────────────────────────────────────
    # State
    # ───────────────────────────────────────────────────────────────────────────

    def _check_idle(self) -> CheckoutError | None:
        if self._finalizing or (self._session is not None and self._session.status.is_active):
            return CheckoutError.invalid_state("A checkout is already in progress")
        owner = self._cart.checkout_owner
        if owner is not None and owner is not self:
            return CheckoutError.invalid_state("Another checkout holds this cart")
        return None

    def _enter(self, session: CheckoutSession) -> CheckoutSession:
        if not session.status.is_active and not self._finalizing:
            self._cart.release_checkout(self)
        previous = self._session
        if previous is not None and previous.session_id == session.session_id:
            logger.info(
                "Checkout %s: %s -> %s",
                session.session_id,
                previous.status.name,
                session.status.name,
            )
        else:
            logger.info("Checkout %s: %s", session.session_id, session.status.name)
        self._session = session
        self._history.append(session)
        return session

    def _replace(self, session: CheckoutSession) -> CheckoutSession:
        """Update the live session without recording a transition."""
        self._session = session
        self._history[-1] = session
        return session

    def _notify(self, message: str) -> None:
        if self._notifier is not None:
            self._notifier.notify(message)


__all__ = ("DEFAULT_MOUNT_POINT", "CheckoutOrchestrator")
