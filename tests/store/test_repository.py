"""Tests for the generic repository over an in-memory collection."""

from unittest.mock import AsyncMock

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import ServerSelectionTimeoutError

from dgisback.errors import (
    DuplicateKeyError,
    NotFoundError,
    StoreReadError,
    StoreWriteError,
)
from dgisback.store import NEWEST_FIRST, Document, Repository, UpdateBuilder


class Item(Document):
    """Minimal stored entity."""

    name: str
    size: int = 0


@pytest.fixture
def repository(database) -> Repository[Item]:  # noqa: ANN001
    """Create a repository over a fresh collection."""
    return Repository(database["items"], Item, "item")


@pytest.mark.asyncio
class TestRepository:
    """Test suite for Repository over mongomock-motor."""

    async def test_insert_assigns_identifier(self, repository: Repository[Item]) -> None:
        """Test that insert_one stores the entity and sets its id."""
        item = await repository.insert_one(Item(name="a"))

        assert isinstance(item.id, ObjectId)
        found = await repository.get_by_id(item.document_id())
        assert found.name == "a"

    async def test_get_missing_raises_not_found(
        self,
        repository: Repository[Item],
    ) -> None:
        """Test that get_by_id reports the missing key."""
        missing = ObjectId()

        with pytest.raises(NotFoundError) as excinfo:
            await repository.get_by_id(missing)

        assert excinfo.value.entity == "item"
        assert excinfo.value.key == missing
        assert await repository.find_by_id(missing) is None

    async def test_find_many_sorts_and_pages(
        self,
        repository: Repository[Item],
    ) -> None:
        """Test sorting, skip and limit."""
        for index in range(5):
            await repository.insert_one(Item(name=f"item{index}", size=index))

        newest = await repository.find_many(sort=NEWEST_FIRST, limit=2)
        assert [item.name for item in newest] == ["item4", "item3"]

        page = await repository.find_many(
            {"size": {"$gte": 1}},
            sort=[("size", 1)],
            skip=1,
            limit=2,
        )
        assert [item.size for item in page] == [2, 3]

        assert len(await repository.find_many(limit=0, skip=0)) == 5

    async def test_count_and_exists(self, repository: Repository[Item]) -> None:
        """Test counting documents."""
        assert await repository.count() == 0
        assert not await repository.exists({"name": "a"})

        await repository.insert_many([Item(name="a"), Item(name="b")])

        assert await repository.count() == 2
        assert await repository.exists({"name": "a"})

    async def test_insert_many_sets_identifiers(
        self,
        repository: Repository[Item],
    ) -> None:
        """Test that insert_many assigns ids in order."""
        items = [Item(name="a"), Item(name="b")]

        ids = await repository.insert_many(items)

        assert ids == [items[0].id, items[1].id]
        assert await repository.insert_many([]) == []

    async def test_update_and_delete_report_counts(
        self,
        repository: Repository[Item],
    ) -> None:
        """Test matched and deleted counts."""
        item = await repository.insert_one(Item(name="a"))
        update = UpdateBuilder().set("size", 7).build()

        assert await repository.update_by_id(item.document_id(), update) == 1
        assert await repository.update_by_id(ObjectId(), update) == 0
        assert (await repository.get_by_id(item.document_id())).size == 7

        assert await repository.update_many({}, UpdateBuilder().inc("size", 1).build()) == 1

        assert await repository.delete_by_id(item.document_id()) == 1
        assert await repository.delete_by_id(item.document_id()) == 0


@pytest.mark.asyncio
class TestRepositoryErrors:
    """Test suite for driver error translation."""

    async def test_duplicate_key_is_translated(self) -> None:
        """Test that unique index violations become DuplicateKeyError."""
        collection = AsyncMock()
        collection.insert_one.side_effect = MongoDuplicateKeyError("dup")
        repository = Repository(collection, Item, "item")

        with pytest.raises(DuplicateKeyError):
            await repository.insert_one(Item(name="a"))

    async def test_read_failure_is_translated(self) -> None:
        """Test that driver read errors become StoreReadError."""
        collection = AsyncMock()
        collection.find_one.side_effect = ServerSelectionTimeoutError("down")
        collection.count_documents.side_effect = ServerSelectionTimeoutError("down")
        repository = Repository(collection, Item, "item")

        with pytest.raises(StoreReadError):
            await repository.find_one({"name": "a"})
        with pytest.raises(StoreReadError):
            await repository.count()

    async def test_write_failure_is_translated(self) -> None:
        """Test that driver write errors become StoreWriteError."""
        collection = AsyncMock()
        collection.update_one.side_effect = ServerSelectionTimeoutError("down")
        collection.delete_one.side_effect = ServerSelectionTimeoutError("down")
        repository = Repository(collection, Item, "item")

        with pytest.raises(StoreWriteError):
            await repository.update_by_id(ObjectId(), {"$set": {"size": 1}})
        with pytest.raises(StoreWriteError):
            await repository.delete_by_id(ObjectId())

    async def test_duplicate_on_update_is_translated(self) -> None:
        """Test that unique index violations on updates become DuplicateKeyError."""
        collection = AsyncMock()
        collection.update_one.side_effect = MongoDuplicateKeyError("dup")
        collection.update_many.side_effect = MongoDuplicateKeyError("dup")
        repository = Repository(collection, Item, "item")

        with pytest.raises(DuplicateKeyError):
            await repository.update_by_id(ObjectId(), {"$set": {"name": "a"}})
        with pytest.raises(DuplicateKeyError):
            await repository.update_many({}, {"$set": {"name": "a"}})


def test_to_document_drops_missing_identifier() -> None:
    """Test serialization before and after an id is assigned."""
    item = Item(name="a")

    assert "_id" not in item.to_document()
    with pytest.raises(ValueError, match="no identifier"):
        item.document_id()

    item.id = ObjectId()
    assert item.to_document()["_id"] == item.id
    assert Item.from_document(item.to_document()) == item
