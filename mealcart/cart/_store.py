"""
Cart storage — durable key-value persistence protocol.

CartStorage holds one serialized cart per store name.
All methods return Result for explicit error handling.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Protocol, Callable, Awaitable

from kungfu import Result, Ok


# ═══════════════════════════════════════════════════════════════════════════════
# Storage Error
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class StorageError:
    """Storage operation error."""

    message: str
    cause: Exception | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Storage Protocol — Result-based
# ═══════════════════════════════════════════════════════════════════════════════


class CartStorage(Protocol):
    """
    Durable cart storage protocol.

    The payload is the serialized cart (see mealcart.cart.encode_cart).
    A save must be durable by the time the returned coroutine completes;
    CartStore relies on that before swapping its in-memory state.

    Example — browser-like key-value backend:

        class RedisCartStorage:
            def __init__(self, client: Redis) -> None:
                self.client = client

            async def load(self, name: str) -> Result[str | None, StorageError]:
                try:
                    raw = await self.client.get(name)
                    return Ok(raw.decode() if raw else None)
                except Exception as e:
                    return Error(StorageError("Failed to load", e))

            # ... save / delete
    """

    async def load(self, name: str) -> Result[str | None, StorageError]:
        """Load payload. Returns Ok(None) if nothing is stored."""
        ...

    async def save(self, name: str, payload: str) -> Result[None, StorageError]:
        """Replace the stored payload."""
        ...

    async def delete(self, name: str) -> Result[bool, StorageError]:
        """Delete payload. Returns Ok(True) if it existed."""
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# Function-based Storage Builder
# ═══════════════════════════════════════════════════════════════════════════════

type LoadFn = Callable[[str], Awaitable[Result[str | None, StorageError]]]
type SaveFn = Callable[[str, str], Awaitable[Result[None, StorageError]]]
type DeleteFn = Callable[[str], Awaitable[Result[bool, StorageError]]]


@dataclass(frozen=True)
class FunctionalStorage:
    """
    Storage built from functions.

    Example:
        storage = storage_from(
            load=session_store.read_cart,
            save=session_store.write_cart,
            delete=session_store.drop_cart,
        )
    """

    _load: LoadFn
    _save: SaveFn
    _delete: DeleteFn

    async def load(self, name: str) -> Result[str | None, StorageError]:
        return await self._load(name)

    async def save(self, name: str, payload: str) -> Result[None, StorageError]:
        return await self._save(name, payload)

    async def delete(self, name: str) -> Result[bool, StorageError]:
        return await self._delete(name)


def storage_from(
    load: LoadFn,
    save: SaveFn,
    delete: DeleteFn,
) -> FunctionalStorage:
    """Create CartStorage from functions."""
    return FunctionalStorage(
        _load=load,
        _save=save,
        _delete=delete,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Memory Storage — For Testing
# ═══════════════════════════════════════════════════════════════════════════════


class MemoryStorage:
    """
    In-memory cart storage.

    Note: single process only, nothing survives a restart.
    save_count is exposed so tests can assert write-through behaviour.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._payloads: dict[str, str] = dict(initial or {})
        self._lock = asyncio.Lock()
        self.save_count = 0

    async def load(self, name: str) -> Result[str | None, StorageError]:
        async with self._lock:
            return Ok(self._payloads.get(name))

    async def save(self, name: str, payload: str) -> Result[None, StorageError]:
        async with self._lock:
            self._payloads[name] = payload
            self.save_count += 1
            return Ok(None)

    async def delete(self, name: str) -> Result[bool, StorageError]:
        async with self._lock:
            if name in self._payloads:
                del self._payloads[name]
                return Ok(True)
            return Ok(False)

    def peek(self, name: str) -> str | None:
        """Raw payload, bypassing the lock. Tests only."""
        return self._payloads.get(name)


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "StorageError",
    "CartStorage",
    "FunctionalStorage",
    "storage_from",
    "MemoryStorage",
)
