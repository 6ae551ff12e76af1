"""
Inventory Service — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
       Every fixture works inside pytest's tmp_path, so no test touches the
       real cache directory or a real database server.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── make_settings: Settings factory for a backend under tmp_path
    ├── repository: InventoryRepository, parametrized over file and sql
    │               (sql runs on SQLite through aiosqlite)
    ├── photo_store: PhotoStore rooted in a temporary directory
    ├── service: InventoryService over the file repository + photo_store
    ├── sample_image_bytes: Fake image content for upload tests
    ├── started_app: app with its lifespan entered, parametrized over both
    │                backends
    └── test_client: HTTPX AsyncClient against started_app
"""

import os
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from inventory_service.config import Settings
from inventory_service.database import build_engine, create_schema
from inventory_service.repositories import (
    JsonFileInventoryRepository,
    SqlInventoryRepository,
)
from inventory_service.services.inventory_service import InventoryService
from inventory_service.services.photo_store import PhotoStore


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Reduce noise during tests; the module-level app in main.py reads this on import
os.environ.setdefault("LOG_LEVEL", "WARNING")

BACKENDS = ["file", "sql"]


def sqlite_url(directory: Path) -> str:
    return f"sqlite+aiosqlite:///{directory / 'inventory.db'}"


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_settings(tmp_path):
    """
    Returns a factory building isolated Settings for a backend.

    Usage:
        settings = make_settings("sql")
    """
    def _make(backend: str = "file", **overrides) -> Settings:
        values = {
            "storage_backend": backend,
            "cache_dir": str(tmp_path / "cache"),
            "log_level": "WARNING",
        }
        if backend == "sql":
            values["database_url"] = sqlite_url(tmp_path)
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest_asyncio.fixture(params=BACKENDS)
async def repository(request, tmp_path, make_settings):
    """
    Provides an empty repository for each storage backend.

    Tests using this fixture run once per backend, so both strategies
    are held to the same contract.
    """
    if request.param == "file":
        yield JsonFileInventoryRepository(tmp_path / "cache" / "inventory.json")
        return

    settings = make_settings("sql")
    engine = build_engine(settings, url=settings.sqlalchemy_url)
    await create_schema(engine)
    repo = SqlInventoryRepository(engine)
    yield repo
    await repo.close()


@pytest.fixture
def photo_store(tmp_path):
    """PhotoStore over a fresh temporary directory."""
    return PhotoStore(tmp_path / "photos")


@pytest.fixture
def service(tmp_path, photo_store):
    """InventoryService over the JSON repository and a temporary photo store."""
    repo = JsonFileInventoryRepository(tmp_path / "cache" / "inventory.json")
    return InventoryService(repo, photo_store)


@pytest.fixture
def sample_image_bytes():
    """
    Provides minimal JPEG bytes for upload tests.

    Minimal JPEG: Start of Image (FFD8) + JFIF marker + End of Image (FFD9).
    Content is never inspected, only stored and streamed back.
    """
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest_asyncio.fixture(params=BACKENDS)
async def started_app(request, make_settings):
    """
    Provides the app with its lifespan entered, once per backend.

    ASGITransport does not send lifespan events, so the lifespan is entered
    explicitly; it builds the repository and photo store under tmp_path.
    """
    from inventory_service.main import create_app

    app = create_app(make_settings(request.param))
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def test_client(started_app):
    """
    Provides an async HTTP client against `started_app`.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=started_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
