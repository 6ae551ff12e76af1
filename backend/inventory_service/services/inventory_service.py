"""
Inventory Service — Business Logic Orchestrator
=================================================

What:  Coordinates the inventory repository and the photo store for the
       HTTP layer.
How:   Record rules live in the repository; this layer adds the workflows
       that touch both stores: register-with-photo, photo replacement,
       photo download, and search.
Who:   Constructed once in the app lifespan; injected into route handlers.

Orchestration Flow (POST /register with a photo):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────────┐
    │  Upload  │───▶│  Check name │───▶│  PhotoStore  │───▶│  Repository  │
    │  (Route) │    │  (presence) │    │  save()      │    │  create()    │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────────┘

    The name is checked before any bytes are written, so a rejected request
    leaves no blob behind. A storage failure after the blob is saved leaves
    an orphan blob, the same as delete and photo replacement do.
"""

import logging
from typing import AsyncIterator, List, Optional, Tuple

from inventory_service.exceptions import NotFoundError, ValidationError
from inventory_service.repositories.base import InventoryRepository
from inventory_service.schemas.item import InventoryItem, ItemUpdate
from inventory_service.services.photo_store import PhotoStore

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Inventory workflows over an explicitly supplied repository and photo store.

    Responsibilities:
        - register(): create an item, storing its photo first when given
        - replace_photo(): store a new blob and point the item at it
        - open_photo(): resolve item → photo key → byte stream
        - search(): lookup with optional photo-link annotation
        - list/get/update/delete: pass-through to the repository
    """

    def __init__(self, repository: InventoryRepository, photo_store: PhotoStore):
        self.repository = repository
        self.photo_store = photo_store

    async def register(
        self,
        name: Optional[str],
        description: Optional[str] = None,
        photo_content: Optional[bytes] = None,
        photo_filename: Optional[str] = None,
    ) -> InventoryItem:
        """
        Register a new item with an optional photo.

        An upload with no bytes (an empty file field in a browser form)
        counts as "no photo".

        Raises:
            ValidationError: name missing or blank
            StorageError: photo or record could not be persisted
        """
        if name is None or not name.strip():
            raise ValidationError(message="inventory_name is required", field="inventory_name")

        photo_key = None
        if photo_content:
            photo_key = await self.photo_store.save(photo_content, photo_filename)

        item = await self.repository.create(name, description, photo_key)
        logger.info("Registered item %s (photo=%s)", item.id, photo_key)
        return item

    async def list_items(self) -> List[InventoryItem]:
        return await self.repository.list_all()

    async def get_item(self, item_id: str) -> InventoryItem:
        return await self.repository.get(item_id)

    async def update_item(self, item_id: str, changes: ItemUpdate) -> InventoryItem:
        return await self.repository.update(item_id, changes)

    async def delete_item(self, item_id: str) -> None:
        await self.repository.delete(item_id)

    async def replace_photo(
        self,
        item_id: str,
        content: Optional[bytes],
        filename: Optional[str] = None,
    ) -> InventoryItem:
        """
        Store a new photo and attach it to the item.

        The previous blob, if any, stays on disk.

        Raises:
            NotFoundError: unknown item (checked before the file)
            ValidationError: no file or an empty file
        """
        await self.repository.get(item_id)
        if not content:
            raise ValidationError(message="Photo missing", field="photo")

        key = await self.photo_store.save(content, filename)
        return await self.repository.set_photo(item_id, key)

    async def open_photo(self, item_id: str) -> Tuple[AsyncIterator[bytes], str]:
        """
        Resolve an item's photo for download.

        Returns:
            (byte stream, media type)

        Raises:
            NotFoundError: unknown item, no photo attached, or blob missing
        """
        item = await self.repository.get(item_id)
        if not item.photo:
            raise NotFoundError(resource="photo", resource_id=item_id)
        stream = await self.photo_store.open_for_read(item.photo)
        return stream, self.photo_store.media_type(item.photo)

    async def search(self, item_id: Optional[str], include_photo: bool = False) -> InventoryItem:
        """
        Look up an item by id for the search form.

        With include_photo, the returned copy's description ends with a link
        to the photo endpoint. The stored record is not modified.
        """
        if not item_id:
            raise NotFoundError(resource="item")
        item = await self.repository.get(item_id)
        if include_photo:
            item = item.model_copy(
                update={"description": f"{item.description}\nPhoto: /inventory/{item.id}/photo"}
            )
        return item
