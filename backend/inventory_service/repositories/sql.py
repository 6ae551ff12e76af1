"""
Inventory Service — SQL Row Repository
========================================

What:  Row-backed inventory storage on the `inventory` table.
How:   Async SQLAlchemy 2.0. Each public operation opens its own session and
       transaction; mutations are single-row UPDATE/DELETE statements and
       rely on the engine's per-statement atomicity (no application lock).
       The repository owns its engine and disposes it in close().

Identity:
    Auto-incremented integer primary key, exposed as its decimal string.
    Path ids are matched as opaque tokens: "7" finds row 7, while "007",
    "+7" or "seven" find nothing (they would never have been issued).

Error translation:
    SQLAlchemyError and connection-level OSError → DatabaseError (logged
    with the operation name; driver text never reaches the client).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from inventory_service.database import build_session_factory, dispose_engine
from inventory_service.exceptions import DatabaseError
from inventory_service.models.item import InventoryRecord
from inventory_service.repositories.base import InventoryRepository
from inventory_service.schemas.item import InventoryItem, ItemUpdate

logger = logging.getLogger(__name__)

# Upper bound of a 32-bit INTEGER primary key
_MAX_ROW_ID = 2**31 - 1


def _row_key(item_id: str) -> Optional[int]:
    """Map an opaque id to its primary key, or None if it can't be one we issued."""
    if not item_id or not item_id.isascii() or not item_id.isdigit():
        return None
    key = int(item_id)
    if str(key) != item_id or key > _MAX_ROW_ID:
        return None
    return key


def _to_item(record: InventoryRecord) -> InventoryItem:
    return InventoryItem(
        id=str(record.id),
        inventory_name=record.inventory_name,
        description=record.description or "",
        photo=record.photo,
    )


class SqlInventoryRepository(InventoryRepository):
    """Repository over one `inventory` row per item."""

    backend_name = "sql"

    def __init__(self, engine: AsyncEngine):
        self._engine = engine
        self._session_factory = build_session_factory(engine)

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """
        Session with an open transaction: commits on success, rolls back on
        any exception, and wraps storage failures in DatabaseError.
        """
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database error during %s: %s", operation, e)
            raise DatabaseError(
                context={"operation": operation, "error_type": type(e).__name__},
            ) from e

    # ── Persistence Primitives ────────────────────────────────────────────

    async def _insert(self, name: str, description: str, photo: Optional[str]) -> InventoryItem:
        async with self._transaction("create") as session:
            record = InventoryRecord(
                inventory_name=name,
                description=description,
                photo=photo,
            )
            session.add(record)
            await session.flush()  # assigns the autoincrement id
            item = _to_item(record)
        logger.info("Item %s created", item.id)
        return item

    async def _fetch_all(self) -> List[InventoryItem]:
        async with self._transaction("list") as session:
            result = await session.execute(
                select(InventoryRecord).order_by(InventoryRecord.id)
            )
            return [_to_item(record) for record in result.scalars().all()]

    async def _fetch(self, item_id: str) -> Optional[InventoryItem]:
        key = _row_key(item_id)
        if key is None:
            return None
        async with self._transaction("get") as session:
            record = await session.get(InventoryRecord, key)
            return None if record is None else _to_item(record)

    async def _apply_update(self, item_id: str, changes: ItemUpdate) -> Optional[InventoryItem]:
        key = _row_key(item_id)
        if key is None:
            return None
        values = changes.model_dump(exclude_none=True)
        async with self._transaction("update") as session:
            result = await session.execute(
                update(InventoryRecord)
                .where(InventoryRecord.id == key)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return None
            record = await session.get(InventoryRecord, key, populate_existing=True)
            item = _to_item(record)
        logger.info("Item %s updated (%s)", item_id, ", ".join(sorted(values)))
        return item

    async def _assign_photo(self, item_id: str, photo: str) -> Optional[InventoryItem]:
        key = _row_key(item_id)
        if key is None:
            return None
        async with self._transaction("set_photo") as session:
            result = await session.execute(
                update(InventoryRecord)
                .where(InventoryRecord.id == key)
                .values(photo=photo)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                return None
            record = await session.get(InventoryRecord, key, populate_existing=True)
            item = _to_item(record)
        logger.info("Item %s photo set to %s", item_id, photo)
        return item

    async def _remove(self, item_id: str) -> bool:
        key = _row_key(item_id)
        if key is None:
            return False
        async with self._transaction("delete") as session:
            result = await session.execute(
                delete(InventoryRecord)
                .where(InventoryRecord.id == key)
                .execution_options(synchronize_session=False)
            )
            removed = result.rowcount > 0
        if removed:
            logger.info("Item %s deleted", item_id)
        return removed

    async def ping(self) -> None:
        async with self._transaction("ping") as session:
            await session.execute(text("SELECT 1"))

    async def close(self) -> None:
        """Dispose the engine and its connection pool."""
        await dispose_engine(self._engine)
        logger.info("SQL repository closed")
