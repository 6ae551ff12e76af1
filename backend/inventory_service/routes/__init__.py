"""
Inventory Service — API Routes Package
========================================

Route Inventory:
    - inventory.py:  /register, /inventory, /inventory/{id}, /inventory/{id}/photo, /search
    - health.py:     GET /health

Routes stay thin: extract request data, call InventoryService, return the
result. Business rules live in the services and repositories.
"""
