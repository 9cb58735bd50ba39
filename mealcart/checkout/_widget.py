"""
Payment channel — turns widget callbacks into tagged events.

The widget invokes plain callbacks; each one becomes a PaymentSignal on a
queue, tagged with the session that mounted the widget. The orchestrator
consumes the queue and decides what each signal means.
"""

from __future__ import annotations

import asyncio

from mealcart.checkout._types import (
    PaymentClosed,
    PaymentErrored,
    PaymentEvent,
    PaymentPending,
    PaymentSignal,
    PaymentSucceeded,
)


class SessionCallbacks:
    """Callbacks handed to the widget for one session."""

    __slots__ = ("_channel", "_session_id")

    def __init__(self, channel: PaymentChannel, session_id: str) -> None:
        self._channel = channel
        self._session_id = session_id

    @property
    def session_id(self) -> str:
        return self._session_id

    def on_success(self, order_id: str) -> None:
        self._channel.publish(self._session_id, PaymentSucceeded(order_id))

    def on_pending(self, order_id: str) -> None:
        self._channel.publish(self._session_id, PaymentPending(order_id))

    def on_error(self, reason: str) -> None:
        self._channel.publish(self._session_id, PaymentErrored(reason))

    def on_close(self) -> None:
        self._channel.publish(self._session_id, PaymentClosed())


class PaymentChannel:
    """Unbounded queue of payment signals."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[PaymentSignal] = asyncio.Queue()

    def bind(self, session_id: str) -> SessionCallbacks:
        return SessionCallbacks(self, session_id)

    def publish(self, session_id: str, event: PaymentEvent) -> None:
        self._queue.put_nowait(PaymentSignal(session_id, event))

    async def receive(self) -> PaymentSignal:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()


__all__ = ("SessionCallbacks", "PaymentChannel")
