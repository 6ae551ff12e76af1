"""
Inventory Service — Repository Contract
=========================================

What:  Abstract base class for inventory record storage.
How:   The public coroutines (create, list_all, get, update, set_photo,
       delete) hold every validation and not-found rule. Backends implement
       only the persistence primitives (_insert, _fetch, ...), so the file
       and SQL strategies cannot drift apart in behavior.
Who:   Used by InventoryService; implemented by JsonFileInventoryRepository
       and SqlInventoryRepository.

Contract summary:
    create     ValidationError on blank name; description defaults to ""
    list_all   insertion order; [] when empty
    get        exact id match or NotFoundError
    update     NotFoundError for unknown id; ValidationError when no field
               is supplied or the supplied name is blank; untouched fields kept
    set_photo  ValidationError on empty key; NotFoundError for unknown id
    delete     NotFoundError for unknown id (also on a repeated delete)
    Storage failures surface as StorageError subclasses and are not retried.

Photo keys:
    The repository stores `photo` as an opaque key and never checks it
    against the photo store. The rule that a set key names an existing blob
    is kept by InventoryService, which saves the blob before calling
    create() or set_photo(). Callers that bypass the service must do the same.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from inventory_service.exceptions import NotFoundError, ValidationError
from inventory_service.schemas.item import InventoryItem, ItemUpdate


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class InventoryRepository(ABC):
    """
    Backend-agnostic inventory repository.

    `photo` keys are stored as given; blob existence is the caller's
    responsibility (see "Photo keys" above).
    """

    # Short backend label reported by the health endpoint
    backend_name: str = ""

    # ── Public Contract ───────────────────────────────────────────────────

    async def create(
        self,
        name: Optional[str],
        description: Optional[str] = None,
        photo: Optional[str] = None,
    ) -> InventoryItem:
        """
        Store a new record and return it with its assigned id.

        Raises:
            ValidationError: name missing or blank after trimming
            StorageError: persistence failed (nothing stored)
        """
        if _is_blank(name):
            raise ValidationError(message="inventory_name is required", field="inventory_name")
        return await self._insert(name, description or "", photo or None)

    async def list_all(self) -> List[InventoryItem]:
        """Return every record in insertion order."""
        return await self._fetch_all()

    async def get(self, item_id: str) -> InventoryItem:
        """Return the record whose id equals `item_id` exactly."""
        item = await self._fetch(str(item_id))
        if item is None:
            raise NotFoundError(resource="item", resource_id=str(item_id))
        return item

    async def update(self, item_id: str, changes: ItemUpdate) -> InventoryItem:
        """
        Apply a partial update and return the updated record.

        Only fields supplied in `changes` (not None) are written.
        An unknown id is reported before an empty update.
        """
        if changes.is_empty:
            await self.get(item_id)
            raise ValidationError(message="No fields provided for update")
        if changes.inventory_name is not None and _is_blank(changes.inventory_name):
            raise ValidationError(
                message="inventory_name must not be empty",
                field="inventory_name",
            )
        item = await self._apply_update(str(item_id), changes)
        if item is None:
            raise NotFoundError(resource="item", resource_id=str(item_id))
        return item

    async def set_photo(self, item_id: str, photo: Optional[str]) -> InventoryItem:
        """Point the record at a photo store key, replacing any previous key."""
        if not photo:
            raise ValidationError(message="Photo missing", field="photo")
        item = await self._assign_photo(str(item_id), photo)
        if item is None:
            raise NotFoundError(resource="item", resource_id=str(item_id))
        return item

    async def delete(self, item_id: str) -> None:
        """Remove the record permanently. The photo blob is left in place."""
        if not await self._remove(str(item_id)):
            raise NotFoundError(resource="item", resource_id=str(item_id))

    async def close(self) -> None:
        """Release backend resources. Overridden by backends that hold any (SQL engine)."""

    # ── Persistence Primitives ────────────────────────────────────────────

    @abstractmethod
    async def _insert(self, name: str, description: str, photo: Optional[str]) -> InventoryItem:
        """Persist a validated new record and return it with its id."""

    @abstractmethod
    async def _fetch_all(self) -> List[InventoryItem]:
        """Load all records in insertion order."""

    @abstractmethod
    async def _fetch(self, item_id: str) -> Optional[InventoryItem]:
        """Load one record, or None if absent."""

    @abstractmethod
    async def _apply_update(self, item_id: str, changes: ItemUpdate) -> Optional[InventoryItem]:
        """Write the supplied fields; None if the record is absent."""

    @abstractmethod
    async def _assign_photo(self, item_id: str, photo: str) -> Optional[InventoryItem]:
        """Overwrite the photo key; None if the record is absent."""

    @abstractmethod
    async def _remove(self, item_id: str) -> bool:
        """Delete the record; False if it was absent."""

    @abstractmethod
    async def ping(self) -> None:
        """Lightweight reachability probe. Raises StorageError on failure."""
