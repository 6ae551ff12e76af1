"""
Inventory Service — Inventory Route Handlers
==============================================

What:  HTTP surface for the inventory: register, list, get, update, delete,
       photo download/replacement, and the search form.
How:   Extracts form/JSON/multipart input, delegates to InventoryService,
       returns JSON. Errors propagate to the global exception handlers
       (ValidationError → 400, NotFoundError → 404, StorageError → 500).

Endpoints:
    POST   /register               form + optional photo file → 201 item
    GET    /inventory              → 200 [item, ...]
    GET    /inventory/{id}         → 200 item
    PUT    /inventory/{id}         JSON {inventory_name?, description?} → 200 item
    GET    /inventory/{id}/photo   → 200 binary stream
    PUT    /inventory/{id}/photo   multipart photo → 200 {"message": ...}
    POST   /search                 form id, includePhoto → 200 item
    DELETE /inventory/{id}         → 200 {"message": ...}
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile
from fastapi.responses import StreamingResponse

from inventory_service.dependencies import get_inventory_service
from inventory_service.schemas.item import (
    ErrorResponse,
    InventoryItem,
    ItemUpdate,
    MessageResponse,
)
from inventory_service.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Inventory"])

_FALSE_VALUES = {"", "0", "false", "no", "off"}


def _is_truthy(value: Optional[str]) -> bool:
    """Form flag semantics: present and not an explicit false."""
    return value is not None and value.strip().lower() not in _FALSE_VALUES


async def _read_upload(upload: Optional[UploadFile]) -> tuple[Optional[bytes], Optional[str]]:
    """Read an optional upload fully and close it."""
    if upload is None:
        return None, None
    try:
        return await upload.read(), upload.filename
    finally:
        await upload.close()


@router.post(
    "/register",
    status_code=201,
    response_model=InventoryItem,
    responses={
        201: {"description": "Successfully created", "model": InventoryItem},
        400: {"description": "Missing inventory_name", "model": ErrorResponse},
    },
    summary="Register a new inventory item",
    description="Creates a new item with name, description and optional photo.",
)
async def register_item(
    inventory_name: Optional[str] = Form(default=None, description="Name of item"),
    description: Optional[str] = Form(default=None, description="Item description"),
    photo: Optional[UploadFile] = File(default=None, description="Optional photo of the item"),
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryItem:
    content, filename = await _read_upload(photo)
    logger.info(
        "Register request: name=%r, photo=%s",
        inventory_name,
        f"{filename} ({len(content)} bytes)" if content else "none",
    )
    return await service.register(
        name=inventory_name,
        description=description,
        photo_content=content,
        photo_filename=filename,
    )


@router.get(
    "/inventory",
    response_model=List[InventoryItem],
    summary="Get all inventory items",
)
async def list_items(
    service: InventoryService = Depends(get_inventory_service),
) -> List[InventoryItem]:
    return await service.list_items()


@router.get(
    "/inventory/{item_id}",
    response_model=InventoryItem,
    responses={404: {"description": "Not found", "model": ErrorResponse}},
    summary="Get inventory item by ID",
)
async def get_item(
    item_id: str,
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryItem:
    return await service.get_item(item_id)


@router.put(
    "/inventory/{item_id}",
    response_model=InventoryItem,
    responses={
        400: {"description": "No fields provided for update", "model": ErrorResponse},
        404: {"description": "Not found", "model": ErrorResponse},
    },
    summary="Update inventory item",
    description=(
        "Partially updates an item. Fields left out of the body keep their "
        "current value; an explicit empty description clears it."
    ),
)
async def update_item(
    item_id: str,
    changes: Optional[ItemUpdate] = Body(default=None),
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryItem:
    return await service.update_item(item_id, changes or ItemUpdate())


@router.get(
    "/inventory/{item_id}/photo",
    response_class=StreamingResponse,
    responses={
        200: {"description": "Photo returned", "content": {"image/jpeg": {}}},
        404: {"description": "Item, photo, or blob not found", "model": ErrorResponse},
    },
    summary="Get photo of an item",
)
async def get_photo(
    item_id: str,
    service: InventoryService = Depends(get_inventory_service),
) -> StreamingResponse:
    stream, media_type = await service.open_photo(item_id)
    return StreamingResponse(stream, media_type=media_type)


@router.put(
    "/inventory/{item_id}/photo",
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing file", "model": ErrorResponse},
        404: {"description": "Item not found", "model": ErrorResponse},
    },
    summary="Update photo of an item",
)
async def replace_photo(
    item_id: str,
    photo: Optional[UploadFile] = File(default=None, description="New photo"),
    service: InventoryService = Depends(get_inventory_service),
) -> MessageResponse:
    content, filename = await _read_upload(photo)
    await service.replace_photo(item_id, content, filename)
    return MessageResponse(message="Photo updated")


@router.post(
    "/search",
    response_model=InventoryItem,
    responses={404: {"description": "Not found", "model": ErrorResponse}},
    summary="Search for an item by ID",
    description=(
        "Form lookup by id. With includePhoto, the description in the response "
        "is followed by a link to the item's photo."
    ),
)
async def search_item(
    item_id: Optional[str] = Form(default=None, alias="id"),
    include_photo: Optional[str] = Form(default=None, alias="includePhoto"),
    service: InventoryService = Depends(get_inventory_service),
) -> InventoryItem:
    return await service.search(item_id, include_photo=_is_truthy(include_photo))


@router.delete(
    "/inventory/{item_id}",
    response_model=MessageResponse,
    responses={404: {"description": "Not found", "model": ErrorResponse}},
    summary="Delete an inventory item",
)
async def delete_item(
    item_id: str,
    service: InventoryService = Depends(get_inventory_service),
) -> MessageResponse:
    await service.delete_item(item_id)
    return MessageResponse(message=f"Item with id {item_id} deleted")
