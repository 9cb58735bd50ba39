"""
SQLAlchemy integration — durable cart storage in any SQLAlchemy database.

Usage:
    engine = create_async_engine("sqlite+aiosqlite:///cart.db")
    storage = SQLAlchemyStorage(async_sessionmaker(engine, expire_on_commit=False))
    await storage.create_schema(engine)

    opened = await CartStore.open(storage)
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from kungfu import Result, Ok, Error

from mealcart.cart._store import StorageError


# ═══════════════════════════════════════════════════════════════════════════════
# Table
# ═══════════════════════════════════════════════════════════════════════════════

class Base(DeclarativeBase):
    pass


class CartSnapshotTable(Base):
    """One row per store name holding the serialized cart."""

    __tablename__ = "cart_snapshots"

    name: Mapped[str] = mapped_column(String(255), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


# ═══════════════════════════════════════════════════════════════════════════════
# Storage
# ═══════════════════════════════════════════════════════════════════════════════

class SQLAlchemyStorage:
    """
    CartStorage backed by an async SQLAlchemy session factory.

    save() commits before returning, so the write is durable when
    CartStore swaps its in-memory snapshot.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @staticmethod
    async def create_schema(engine: AsyncEngine) -> None:
        """Create the cart_snapshots table if it does not exist."""
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def load(self, name: str) -> Result[str | None, StorageError]:
        try:
            async with self._session_factory() as session:
                stmt = select(CartSnapshotTable.payload).where(
                    CartSnapshotTable.name == name
                )
                result = await session.execute(stmt)
                return Ok(result.scalar_one_or_none())

        except Exception as e:
            return Error(StorageError(f"Failed to load: {e}", e))

    async def save(self, name: str, payload: str) -> Result[None, StorageError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(CartSnapshotTable, name)
                if row is None:
                    session.add(
                        CartSnapshotTable(
                            name=name,
                            payload=payload,
                            updated_at=datetime.now(),
                        )
                    )
                else:
                    row.payload = payload
                    row.updated_at = datetime.now()

                await session.commit()
                return Ok(None)

        except Exception as e:
            return Error(StorageError(f"Failed to save: {e}", e))

    async def delete(self, name: str) -> Result[bool, StorageError]:
        try:
            async with self._session_factory() as session:
                row = await session.get(CartSnapshotTable, name)
                if row is None:
                    return Ok(False)

                await session.delete(row)
                await session.commit()
                return Ok(True)

        except Exception as e:
            return Error(StorageError(f"Failed to delete: {e}", e))


__all__ = (
    "Base",
    "CartSnapshotTable",
    "SQLAlchemyStorage",
)
