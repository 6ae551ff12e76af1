"""
Inventory Service — Repository Contract Tests
===============================================

What:  Tests the record rules shared by the JSON file and SQL repositories.
How:   The `repository` fixture is parametrized, so every test in the
       contract classes runs against both backends.

What we test:
    ✅ Create assigns unique ids and defaults the description
    ✅ Blank names are rejected and nothing is stored
    ✅ Lookup is an exact id match
    ✅ Partial updates keep untouched fields; empty updates are rejected
    ✅ Deleted ids stay gone and are never reissued
    ✅ JSON snapshot specifics: persistence, external edits, corruption
    ✅ Failed writes leave the stored records unchanged
    ✅ SQL failures surface as DatabaseError; close() disposes the engine
"""

import asyncio
import errno
import json
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from sqlalchemy import text

from inventory_service.database import build_engine, create_schema
from inventory_service.exceptions import (
    DatabaseError,
    FileStorageError,
    NotFoundError,
    ValidationError,
)
from inventory_service.repositories import JsonFileInventoryRepository, SqlInventoryRepository
from inventory_service.repositories.sql import _row_key
from inventory_service.schemas.item import ItemUpdate


class TestCreate:
    """Tests for creating records."""

    @pytest.mark.asyncio
    async def test_create_returns_record_with_id(self, repository):
        item = await repository.create("Drill", "Cordless, 18V")

        assert item.id
        assert isinstance(item.id, str)
        assert item.inventory_name == "Drill"
        assert item.description == "Cordless, 18V"
        assert item.photo is None

    @pytest.mark.asyncio
    async def test_description_defaults_to_empty(self, repository):
        item = await repository.create("Hammer")
        assert item.description == ""

    @pytest.mark.asyncio
    async def test_photo_key_is_stored(self, repository):
        item = await repository.create("Saw", photo="saw.jpg")
        assert (await repository.get(item.id)).photo == "saw.jpg"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", [None, "", "   ", "\t\n"])
    async def test_blank_name_rejected(self, repository, name):
        with pytest.raises(ValidationError) as exc_info:
            await repository.create(name, "desc")

        assert exc_info.value.field == "inventory_name"
        assert await repository.list_all() == []

    @pytest.mark.asyncio
    async def test_ids_are_unique(self, repository):
        items = [await repository.create(f"Item {i}") for i in range(5)]
        assert len({item.id for item in items}) == 5


class TestRead:
    """Tests for listing and lookup."""

    @pytest.mark.asyncio
    async def test_list_empty(self, repository):
        assert await repository.list_all() == []

    @pytest.mark.asyncio
    async def test_list_in_insertion_order(self, repository):
        first = await repository.create("First")
        second = await repository.create("Second")
        third = await repository.create("Third")

        listed = await repository.list_all()
        assert [item.id for item in listed] == [first.id, second.id, third.id]

    @pytest.mark.asyncio
    async def test_get_returns_created_record(self, repository):
        created = await repository.create("Drill", "Cordless")
        assert await repository.get(created.id) == created

    @pytest.mark.asyncio
    async def test_get_unknown_id(self, repository):
        with pytest.raises(NotFoundError):
            await repository.get("424242")

    @pytest.mark.asyncio
    async def test_get_requires_exact_match(self, repository):
        created = await repository.create("Drill")

        for variant in (f"0{created.id}", f" {created.id}", f"{created.id} ", f"+{created.id}"):
            with pytest.raises(NotFoundError):
                await repository.get(variant)


class TestUpdate:
    """Tests for partial updates."""

    @pytest.mark.asyncio
    async def test_update_description_keeps_name(self, repository):
        created = await repository.create("Drill", "old", photo="drill.jpg")

        updated = await repository.update(created.id, ItemUpdate(description="new"))

        assert updated.inventory_name == "Drill"
        assert updated.description == "new"
        assert updated.photo == "drill.jpg"
        assert await repository.get(created.id) == updated

    @pytest.mark.asyncio
    async def test_update_name_keeps_description(self, repository):
        created = await repository.create("Drill", "Cordless")

        updated = await repository.update(created.id, ItemUpdate(inventory_name="Impact driver"))

        assert updated.inventory_name == "Impact driver"
        assert updated.description == "Cordless"

    @pytest.mark.asyncio
    async def test_update_both_fields(self, repository):
        created = await repository.create("Drill", "Cordless")

        updated = await repository.update(
            created.id, ItemUpdate(inventory_name="Saw", description="Circular")
        )

        assert (updated.inventory_name, updated.description) == ("Saw", "Circular")
        assert updated.id == created.id

    @pytest.mark.asyncio
    async def test_empty_description_clears(self, repository):
        created = await repository.create("Drill", "Cordless")

        updated = await repository.update(created.id, ItemUpdate(description=""))

        assert updated.description == ""
        assert updated.inventory_name == "Drill"

    @pytest.mark.asyncio
    async def test_no_fields_rejected(self, repository):
        created = await repository.create("Drill", "Cordless")

        with pytest.raises(ValidationError, match="No fields provided for update"):
            await repository.update(created.id, ItemUpdate())

        assert await repository.get(created.id) == created

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, repository):
        created = await repository.create("Drill")

        with pytest.raises(ValidationError):
            await repository.update(created.id, ItemUpdate(inventory_name="  "))

        assert (await repository.get(created.id)).inventory_name == "Drill"

    @pytest.mark.asyncio
    async def test_unknown_id(self, repository):
        with pytest.raises(NotFoundError):
            await repository.update("424242", ItemUpdate(description="x"))

    @pytest.mark.asyncio
    async def test_unknown_id_wins_over_empty_update(self, repository):
        with pytest.raises(NotFoundError):
            await repository.update("424242", ItemUpdate())


class TestSetPhoto:
    """Tests for attaching photo keys."""

    @pytest.mark.asyncio
    async def test_replaces_previous_key(self, repository):
        created = await repository.create("Drill", photo="old.jpg")

        updated = await repository.set_photo(created.id, "new.jpg")

        assert updated.photo == "new.jpg"
        assert updated.description == created.description

    @pytest.mark.asyncio
    async def test_empty_key_rejected(self, repository):
        created = await repository.create("Drill")
        with pytest.raises(ValidationError):
            await repository.set_photo(created.id, "")

    @pytest.mark.asyncio
    async def test_unknown_id(self, repository):
        with pytest.raises(NotFoundError):
            await repository.set_photo("424242", "x.jpg")


class TestDelete:
    """Tests for deleting records."""

    @pytest.mark.asyncio
    async def test_delete_removes_record(self, repository):
        keep = await repository.create("Keep")
        gone = await repository.create("Gone")

        await repository.delete(gone.id)

        with pytest.raises(NotFoundError):
            await repository.get(gone.id)
        assert await repository.list_all() == [keep]

    @pytest.mark.asyncio
    async def test_second_delete_not_found(self, repository):
        created = await repository.create("Drill")
        await repository.delete(created.id)

        with pytest.raises(NotFoundError):
            await repository.delete(created.id)

    @pytest.mark.asyncio
    async def test_deleted_id_not_reissued(self, repository):
        await repository.create("First")
        last = await repository.create("Second")
        await repository.delete(last.id)

        replacement = await repository.create("Third")

        assert replacement.id != last.id

    @pytest.mark.asyncio
    async def test_ping(self, repository):
        await repository.ping()


class TestJsonSnapshot:
    """Behavior specific to the JSON file repository."""

    @pytest.mark.asyncio
    async def test_initializes_empty_snapshot(self, tmp_path):
        path = tmp_path / "nested" / "inventory.json"
        JsonFileInventoryRepository(path)

        assert json.loads(path.read_text()) == []

    @pytest.mark.asyncio
    async def test_records_survive_new_instance(self, tmp_path):
        path = tmp_path / "inventory.json"
        created = await JsonFileInventoryRepository(path).create("Drill", "Cordless")

        reopened = JsonFileInventoryRepository(path)

        assert await reopened.list_all() == [created]

    @pytest.mark.asyncio
    async def test_snapshot_format(self, tmp_path):
        path = tmp_path / "inventory.json"
        created = await JsonFileInventoryRepository(path).create("Drill")

        assert json.loads(path.read_text()) == [
            {"id": created.id, "inventory_name": "Drill", "description": "", "photo": None}
        ]

    @pytest.mark.asyncio
    async def test_external_edits_are_read(self, tmp_path):
        path = tmp_path / "inventory.json"
        repo = JsonFileInventoryRepository(path)
        path.write_text(json.dumps([
            {"id": 17, "inventory_name": "Ladder", "description": None, "photo": None},
        ]))

        item = await repo.get("17")

        assert item.inventory_name == "Ladder"
        assert item.description == ""

    @pytest.mark.asyncio
    async def test_new_id_skips_existing_ids(self, tmp_path, monkeypatch):
        frozen_ms = 1_700_000_000_000
        monkeypatch.setattr(
            "inventory_service.repositories.json_file.time.time_ns",
            lambda: frozen_ms * 1_000_000,
        )
        path = tmp_path / "inventory.json"
        repo = JsonFileInventoryRepository(path)
        path.write_text(json.dumps([{"id": str(frozen_ms), "inventory_name": "Taken"}]))

        first = await repo.create("First")
        second = await repo.create("Second")

        assert first.id == str(frozen_ms + 1)
        assert second.id == str(frozen_ms + 2)

    @pytest.mark.asyncio
    async def test_corrupt_snapshot_raises_storage_error(self, tmp_path):
        path = tmp_path / "inventory.json"
        repo = JsonFileInventoryRepository(path)
        path.write_text("{not json")

        with pytest.raises(FileStorageError):
            await repo.list_all()

    @pytest.mark.asyncio
    async def test_missing_snapshot_reads_as_empty(self, tmp_path):
        path = tmp_path / "inventory.json"
        repo = JsonFileInventoryRepository(path)
        path.unlink()

        assert await repo.list_all() == []

    @pytest.mark.asyncio
    async def test_concurrent_creates_are_all_kept(self, tmp_path):
        repo = JsonFileInventoryRepository(tmp_path / "inventory.json")

        created = await asyncio.gather(*(repo.create(f"Item {i}") for i in range(20)))

        listed = await repo.list_all()
        assert len({item.id for item in created}) == 20
        assert {item.id for item in listed} == {item.id for item in created}

    @pytest.mark.asyncio
    async def test_no_temporary_files_left(self, tmp_path):
        repo = JsonFileInventoryRepository(tmp_path / "inventory.json")
        item = await repo.create("Drill")
        await repo.update(item.id, ItemUpdate(description="x"))
        await repo.delete(item.id)

        assert [p.name for p in tmp_path.iterdir()] == ["inventory.json"]


# Mutations run against a stored "Drill" record; each must fail without effect
MUTATIONS = {
    "create": lambda repo, item_id: repo.create("Saw"),
    "update": lambda repo, item_id: repo.update(item_id, ItemUpdate(description="new")),
    "set_photo": lambda repo, item_id: repo.set_photo(item_id, "drill.jpg"),
    "delete": lambda repo, item_id: repo.delete(item_id),
}


class TestJsonWriteFailures:
    """A failed snapshot write must leave the previous snapshot in place."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mutation", list(MUTATIONS.values()), ids=list(MUTATIONS))
    async def test_failed_replace_keeps_records(self, tmp_path, mutation):
        repo = JsonFileInventoryRepository(tmp_path / "inventory.json")
        item = await repo.create("Drill", "old")
        disk_full = OSError(errno.ENOSPC, "No space left on device")

        with patch("aiofiles.os.replace", AsyncMock(side_effect=disk_full)):
            with pytest.raises(FileStorageError):
                await mutation(repo, item.id)

        assert await repo.list_all() == [item]
        assert [p.name for p in tmp_path.iterdir()] == ["inventory.json"]


@pytest_asyncio.fixture
async def sql_setup(make_settings):
    """SQL repository plus its engine, for tests that tamper with the schema."""
    settings = make_settings("sql")
    engine = build_engine(settings)
    await create_schema(engine)
    repo = SqlInventoryRepository(engine)
    yield repo, engine
    await repo.close()


async def drop_inventory_table(engine) -> None:
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE inventory"))


class TestSqlFailures:
    """Database failures surface as DatabaseError."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", [
        lambda repo, item_id: repo.list_all(),
        lambda repo, item_id: repo.get(item_id),
        *MUTATIONS.values(),
    ], ids=["list_all", "get", *MUTATIONS])
    async def test_missing_table(self, sql_setup, operation):
        repo, engine = sql_setup
        item = await repo.create("Drill", "old")
        await drop_inventory_table(engine)

        with pytest.raises(DatabaseError) as exc_info:
            await operation(repo, item.id)

        assert exc_info.value.context["error_type"] == "OperationalError"
        assert "no such table" not in exc_info.value.message

    @pytest.mark.asyncio
    async def test_close_disposes_engine(self, make_settings):
        engine = build_engine(make_settings("sql"))
        repo = SqlInventoryRepository(engine)

        with patch("inventory_service.repositories.sql.dispose_engine", AsyncMock()) as dispose:
            await repo.close()

        dispose.assert_awaited_once_with(engine)
        await engine.dispose()


class TestSqlRowKey:
    """Tests for mapping opaque ids to primary keys."""

    @pytest.mark.parametrize("item_id,expected", [
        ("1", 1),
        ("42", 42),
        ("2147483647", 2147483647),
    ])
    def test_issued_ids(self, item_id, expected):
        assert _row_key(item_id) == expected

    @pytest.mark.parametrize("item_id", [
        "", "007", "+7", "-1", " 7", "7 ", "seven", "1e3", "٣", "2147483648",
    ])
    def test_ids_never_issued(self, item_id):
        assert _row_key(item_id) is None
