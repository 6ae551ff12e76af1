"""
Inventory Service — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the inventory record lifecycle.
How:   Each exception carries a user-facing message and an optional context
       dict. Global exception handlers (registered in main.py) map them to
       structured JSON error responses with the matching HTTP status code.
Who:   Raised by repositories, the photo store, and the inventory service.

Exception Hierarchy:
    InventoryServiceError (base)
    ├── ValidationError          → 400 Bad Request (missing/empty input)
    ├── NotFoundError            → 404 Not Found (unknown id, missing blob)
    └── StorageError             → 500 Internal Server Error
        ├── FileStorageError     (disk read/write, snapshot decode)
        └── DatabaseError        (connection or statement failure)

Storage errors are never retried here; retry policy belongs to the caller.
Their context (paths, driver messages) is logged but never returned to clients.
"""

from typing import Any, Dict, Optional


class InventoryServiceError(Exception):
    """
    Base exception for all inventory service errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(InventoryServiceError):
    """
    Raised when a required input is missing or empty.

    When:    Blank inventory_name, update with no fields, missing photo file.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "inventory_name is required",
            "details": {"field": "inventory_name"}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(InventoryServiceError):
    """
    Raised when a requested record or photo blob does not exist.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class StorageError(InventoryServiceError):
    """
    Raised when the underlying storage fails (I/O, connection, decoding).

    HTTP:    500 Internal Server Error
    The message returned to the client is always generic.
    """

    def __init__(
        self,
        message: str = "A storage error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(StorageError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, unreadable or corrupt JSON snapshot.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(StorageError):
    """
    Raised when database operations fail unexpectedly.

    When:    Connection lost, statement failed, pool exhausted.

    Security Note:
        Detailed error info (SQL text, driver message) is logged server-side
        only, since it could reveal schema or data.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
