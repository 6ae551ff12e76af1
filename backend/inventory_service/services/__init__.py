"""
Inventory Service — Services Layer
====================================

What:  Business logic sitting between routes (HTTP) and storage.
How:   Services are constructed in the app lifespan with their storage
       dependencies and injected into routes via FastAPI's Depends().

Service Inventory:
    - PhotoStore: photo blob save, existence check, streaming reads
    - InventoryService: register/update/delete workflows over the
      repository and the photo store
"""
