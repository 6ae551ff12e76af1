"""
Inventory Service — Middleware Package
========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID runs first so the access log line carries the ID.
    - Logging measures the full handler duration and final status.
"""
