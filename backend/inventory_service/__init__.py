"""
Inventory Service — Application Package
=========================================

HTTP service for inventory items with optional photos.

    ┌─────────────────────────────────────┐
    │     Routes (API Layer)              │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     Services                        │  ← InventoryService, PhotoStore
    ├─────────────────────────────────────┤
    │     Repositories                    │  ← JSON snapshot or SQL rows
    ├─────────────────────────────────────┤
    │     Models & Schemas                │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
