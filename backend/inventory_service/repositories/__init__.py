"""
Inventory Service — Repositories Package
==========================================

Storage strategies for inventory records, all honoring the contract defined
in base.InventoryRepository:

    - JsonFileInventoryRepository: snapshot-rewrite over one JSON file
    - SqlInventoryRepository:      one row per item in the `inventory` table
"""

from inventory_service.repositories.base import InventoryRepository
from inventory_service.repositories.json_file import JsonFileInventoryRepository
from inventory_service.repositories.sql import SqlInventoryRepository

__all__ = [
    "InventoryRepository",
    "JsonFileInventoryRepository",
    "SqlInventoryRepository",
]
