"""
Lift — helpers for lifting values into lazy results.

Re-exports catching_async from combinators.lift with mealcart additions.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from kungfu import LazyCoroResult, Result

from combinators.lift import catching_async


def from_result[T, E](result: Result[T, E]) -> LazyCoroResult[T, E]:
    """Lift an already computed Result into LazyCoroResult."""
    async def _run() -> Result[T, E]:
        return result
    return LazyCoroResult(_run)


def from_result_fn[T, E](
    fn: Callable[[], Awaitable[Result[T, E]]],
) -> LazyCoroResult[T, E]:
    """Wrap an async function that already returns a Result."""
    return LazyCoroResult(fn)


__all__ = (
    # From combinators.lift
    "catching_async",
    # mealcart additions
    "from_result",
    "from_result_fn",
)
