"""
Inventory Service — JSON Snapshot Repository
==============================================

What:  File-backed inventory storage: the whole collection is one JSON array.
How:   Snapshot-rewrite. Every read loads the file fresh (external edits are
       picked up); every mutation loads, modifies, and rewrites the array
       while holding the instance's write lock.

Concurrency:
    - Mutations (create/update/set_photo/delete) serialize on one
      asyncio.Lock, so two read-modify-write cycles never interleave.
    - Reads take no lock. The snapshot is written to a temporary sibling and
      moved into place with os.replace (atomic on POSIX), so a reader sees
      either the old or the new complete array, never a partial one.

Identity:
    Millisecond timestamp as a decimal string. If that value was already
    issued by this instance or is present in the snapshot, it is bumped
    until unique.

File layout:
    <cache_dir>/inventory.json
    [
      {"id": "1718000000000", "inventory_name": "Drill", "description": "", "photo": null}
    ]
"""

import asyncio
import json
import logging
import time
import uuid
from contextlib import suppress
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles
import aiofiles.os
from pydantic import ValidationError as SchemaError

from inventory_service.exceptions import FileStorageError
from inventory_service.repositories.base import InventoryRepository
from inventory_service.schemas.item import InventoryItem, ItemUpdate

logger = logging.getLogger(__name__)


class JsonFileInventoryRepository(InventoryRepository):
    """Snapshot-rewrite repository over a single JSON file."""

    backend_name = "file"

    def __init__(self, snapshot_path: str | Path):
        self.snapshot_path = Path(snapshot_path)
        self._write_lock = asyncio.Lock()
        self._last_issued_id = 0

        try:
            self.snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            if not self.snapshot_path.exists():
                self.snapshot_path.write_text("[]", encoding="utf-8")
        except OSError as e:
            raise FileStorageError(
                message="Could not initialize inventory storage",
                context={"path": str(self.snapshot_path), "os_error": str(e)},
            ) from e
        logger.info("JSON inventory repository at %s", self.snapshot_path.resolve())

    # ── Snapshot I/O ──────────────────────────────────────────────────────

    async def _load(self) -> List[InventoryItem]:
        """Read and decode the current snapshot. A missing file is an empty ledger."""
        try:
            async with aiofiles.open(self.snapshot_path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.error("Failed to read snapshot %s: %s", self.snapshot_path, e)
            raise FileStorageError(
                message="Could not read inventory storage",
                context={"path": str(self.snapshot_path), "os_error": str(e)},
            ) from e

        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("snapshot root is not an array")
            return [self._decode(entry) for entry in data]
        except (ValueError, TypeError, SchemaError) as e:
            # json.JSONDecodeError is a ValueError
            logger.error("Corrupt snapshot %s: %s", self.snapshot_path, e)
            raise FileStorageError(
                message="Inventory storage is corrupt",
                context={"path": str(self.snapshot_path), "error": str(e)},
            ) from e

    @staticmethod
    def _decode(entry: Dict[str, Any]) -> InventoryItem:
        # Hand-edited snapshots may carry numeric ids or null descriptions
        data = dict(entry)
        if data.get("id") is not None:
            data["id"] = str(data["id"])
        if data.get("description") is None:
            data["description"] = ""
        return InventoryItem.model_validate(data)

    async def _save(self, items: List[InventoryItem]) -> None:
        """Atomically replace the snapshot with `items`."""
        payload = json.dumps([item.model_dump() for item in items], indent=2)
        tmp_path = self.snapshot_path.with_name(
            f".{self.snapshot_path.name}.{uuid.uuid4().hex}.tmp"
        )
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, self.snapshot_path)
        except OSError as e:
            logger.error("Failed to write snapshot %s: %s", self.snapshot_path, e)
            with suppress(OSError):
                await aiofiles.os.remove(tmp_path)
            raise FileStorageError(
                message="Could not save inventory storage",
                context={"path": str(self.snapshot_path), "os_error": str(e)},
            ) from e

    def _next_id(self, items: List[InventoryItem]) -> str:
        taken = {item.id for item in items}
        candidate = max(time.time_ns() // 1_000_000, self._last_issued_id + 1)
        while str(candidate) in taken:
            candidate += 1
        self._last_issued_id = candidate
        return str(candidate)

    @staticmethod
    def _index_of(items: List[InventoryItem], item_id: str) -> Optional[int]:
        for idx, item in enumerate(items):
            if item.id == item_id:
                return idx
        return None

    # ── Persistence Primitives ────────────────────────────────────────────

    async def _insert(self, name: str, description: str, photo: Optional[str]) -> InventoryItem:
        async with self._write_lock:
            items = await self._load()
            item = InventoryItem(
                id=self._next_id(items),
                inventory_name=name,
                description=description,
                photo=photo,
            )
            items.append(item)
            await self._save(items)
        logger.info("Item %s created", item.id)
        return item

    async def _fetch_all(self) -> List[InventoryItem]:
        return await self._load()

    async def _fetch(self, item_id: str) -> Optional[InventoryItem]:
        items = await self._load()
        idx = self._index_of(items, item_id)
        return None if idx is None else items[idx]

    async def _apply_update(self, item_id: str, changes: ItemUpdate) -> Optional[InventoryItem]:
        async with self._write_lock:
            items = await self._load()
            idx = self._index_of(items, item_id)
            if idx is None:
                return None
            items[idx] = items[idx].model_copy(
                update=changes.model_dump(exclude_none=True)
            )
            await self._save(items)
        logger.info("Item %s updated", item_id)
        return items[idx]

    async def _assign_photo(self, item_id: str, photo: str) -> Optional[InventoryItem]:
        async with self._write_lock:
            items = await self._load()
            idx = self._index_of(items, item_id)
            if idx is None:
                return None
            items[idx] = items[idx].model_copy(update={"photo": photo})
            await self._save(items)
        logger.info("Item %s photo set to %s", item_id, photo)
        return items[idx]

    async def _remove(self, item_id: str) -> bool:
        async with self._write_lock:
            items = await self._load()
            idx = self._index_of(items, item_id)
            if idx is None:
                return False
            del items[idx]
            await self._save(items)
        logger.info("Item %s deleted", item_id)
        return True

    async def ping(self) -> None:
        await self._load()
