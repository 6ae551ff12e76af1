"""
Inventory Service — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() returns a configured FastAPI instance; the lifespan
       builds the storage objects and tears them down.
Who:   Called by uvicorn (inventory_service.main:app) and by the CLI.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────┐ ┌──────┐ ┌──────┐         │
    │  │  Req ID  │→│ Logging │→│ GZip │→│ CORS │         │
    │  └──────────┘ └─────────┘ └──────┘ └──────┘         │
    │                                                     │
    │  Routes:                                            │
    │  /register  /inventory[/{id}[/photo]]  /search      │
    │  /health    (anything else → 405)                   │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation→400 │ NotFound→404 │ Storage→500        │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate backend configuration (fail fast)
    3. Build PhotoStore and the configured repository (JSON file or SQL)
    4. Publish InventoryService on app.state

    Shutdown:
    1. Close the repository (the SQL backend disposes its engine)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from inventory_service import __version__
from inventory_service.config import Settings, settings as default_settings
from inventory_service.database import build_engine, create_schema
from inventory_service.exceptions import NotFoundError, StorageError, ValidationError
from inventory_service.middleware.logging import RequestLoggingMiddleware
from inventory_service.middleware.request_id import RequestIDMiddleware, request_id_var
from inventory_service.repositories import (
    InventoryRepository,
    JsonFileInventoryRepository,
    SqlInventoryRepository,
)
from inventory_service.routes import health, inventory
from inventory_service.services.inventory_service import InventoryService
from inventory_service.services.photo_store import PhotoStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger for the whole application.

    Format: 2024-01-15T12:00:00 [INFO] inventory_service.main: message
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Storage Construction
# ══════════════════════════════════════════════════════════════════════════

async def build_repository(settings: Settings) -> InventoryRepository:
    """Build the record repository selected by settings.storage_backend."""
    if settings.storage_backend == "sql":
        engine = build_engine(settings)
        if settings.db_create_schema:
            await create_schema(engine)
        return SqlInventoryRepository(engine)

    return JsonFileInventoryRepository(settings.snapshot_path)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build storage on startup and release it on shutdown."""
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("Inventory service %s starting up...", __version__)

    try:
        settings.validate_backend()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        raise

    photo_store = PhotoStore(settings.photo_root)
    repository = await build_repository(settings)
    app.state.inventory_service = InventoryService(repository, photo_store)

    logger.info("Storage backend: %s", repository.backend_name)
    logger.info("Photo directory: %s", photo_store.root)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Inventory service shutting down...")
    await repository.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response bodies.

    Handler hierarchy:
        ValidationError         → 400 Bad Request
        RequestValidationError  → 400 Bad Request (malformed body/form)
        NotFoundError           → 404 Not Found
        StorageError            → 500 (generic message, details logged)
        no route / bad method   → 405 Method not allowed
        Exception (fallback)    → 500 Internal Server Error
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        problems = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        logger.warning("[%s] Malformed request: %s", rid, problems)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "The request body is malformed.",
                "details": {"errors": problems},
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        rid = request_id_var.get("")
        logger.error(
            "[%s] %s: %s | Context: %s",
            rid,
            type(exc).__name__,
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        # Routing misses (unknown path or method) are all reported as 405
        if exc.status_code in (404, 405):
            return PlainTextResponse("Method not allowed", status_code=405)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "http_error", "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to use; defaults to the environment-loaded
                  settings. Tests pass their own with temporary directories.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Inventory Service API",
        description="Web API for inventory management: items, descriptions and photos.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(inventory.router)
    app.include_router(health.router)

    return app


# uvicorn entry point: uvicorn inventory_service.main:app
app = create_app()
