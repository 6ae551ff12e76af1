"""
Inventory Service — Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Probes the record backend (snapshot read or SELECT 1) and the photo
       directory, and reports an aggregate status.

Status levels:
    - healthy:   record storage and photo store both usable
    - unhealthy: either one failed its probe
"""

import logging
import time

from fastapi import APIRouter, Depends

from inventory_service import __version__
from inventory_service.dependencies import get_inventory_service
from inventory_service.exceptions import StorageError
from inventory_service.schemas.item import HealthResponse
from inventory_service.services.inventory_service import InventoryService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="Returns the health status of the service and its storage.",
)
async def health_check(
    service: InventoryService = Depends(get_inventory_service),
) -> HealthResponse:
    storage_status = "ok"
    photo_status = "ok"

    try:
        await service.repository.ping()
    except StorageError as e:
        storage_status = "unavailable"
        logger.warning("Health check: record storage unavailable: %s", e.message)

    try:
        await service.photo_store.ping()
    except StorageError as e:
        photo_status = "unavailable"
        logger.warning("Health check: photo store unavailable: %s", e.message)

    overall = "healthy" if storage_status == photo_status == "ok" else "unhealthy"

    return HealthResponse(
        status=overall,
        version=__version__,
        storage_backend=service.repository.backend_name,
        storage=storage_status,
        photo_store=photo_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
