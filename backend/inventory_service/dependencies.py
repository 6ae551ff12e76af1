"""
Inventory Service — FastAPI Dependencies
==========================================

What:  Dependency providers that hand lifespan-owned objects to routes.
How:   The lifespan stores the InventoryService on app.state; routes declare
       `service: InventoryService = Depends(get_inventory_service)`.
       Tests can swap it with app.dependency_overrides.
"""

from fastapi import Request

from inventory_service.services.inventory_service import InventoryService


def get_inventory_service(request: Request) -> InventoryService:
    return request.app.state.inventory_service
