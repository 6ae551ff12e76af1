"""
Inventory Service — Pydantic Schemas
======================================

What:  Pydantic models for the inventory domain and the HTTP API contract.
How:   Repositories return InventoryItem; FastAPI serializes it directly.
       ItemUpdate carries a partial update where None means "not supplied".

Wire format of an item:
    {"id": "1718000000000", "inventory_name": "Drill", "description": "", "photo": null}
"""

from typing import Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Domain / Response Models
# ══════════════════════════════════════════════════════════════════════════


class InventoryItem(BaseModel):
    """
    One inventory record, identical for both storage backends.

    `id` is an opaque token: compared as an exact string, never parsed.
    `photo` is a photo store key, or None when no photo is attached.
    """
    id: str = Field(description="Unique item identifier (opaque string)")
    inventory_name: str = Field(description="Name of the item")
    description: str = Field(default="", description="Free-text description")
    photo: Optional[str] = Field(default=None, description="Photo store key, null if none")

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    """Confirmation body for photo replacement and deletion."""
    message: str = Field(description="Human-readable confirmation")


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ItemUpdate(BaseModel):
    """
    Partial update for PUT /inventory/{id}.

    A field left out of the body (or sent as null) is "not supplied" and
    keeps its stored value. An explicit empty string for `description` is a
    real value and clears the description.
    """
    inventory_name: Optional[str] = Field(default=None, description="New name (non-blank)")
    description: Optional[str] = Field(default=None, description="New description")

    @property
    def is_empty(self) -> bool:
        """True when no field was supplied."""
        return self.inventory_name is None and self.description is None


# ══════════════════════════════════════════════════════════════════════════
# Operational Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "item with id '42' was not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and storage status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    storage_backend: str = Field(description="Configured record backend: file or sql")
    storage: str = Field(description="Record storage status: ok, unavailable")
    photo_store: str = Field(description="Photo directory status: ok, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")
