"""Generic find/insert/update/delete helpers over one collection.

Using the Repository class as the single place where driver errors are
translated into service-layer errors.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError as MongoDuplicateKeyError
from pymongo.errors import PyMongoError

from dgisback.errors import (
    DuplicateKeyError,
    NotFoundError,
    StoreReadError,
    StoreWriteError,
)

from .documents import Document

if TYPE_CHECKING:
    from bson import ObjectId
    from motor.motor_asyncio import AsyncIOMotorCollection

LOGGER = logging.getLogger(__name__)

DocumentT = TypeVar("DocumentT", bound=Document)

Filter = dict[str, Any]
Sort = list[tuple[str, int]]

NEWEST_FIRST: Sort = [("_id", DESCENDING)]


class Repository(Generic[DocumentT]):
    """Typed access to one collection.

    :param collection: The motor collection backing this repository
    :param model: Document subclass used to decode stored documents
    :param entity: Name used in log lines and NotFound errors
    """

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        model: type[DocumentT],
        entity: str,
    ) -> None:
        self.collection = collection
        self.model = model
        self.entity = entity

    async def find_one(self, query: Filter) -> DocumentT | None:
        """Return the first document matching the filter, if any."""
        try:
            document = await self.collection.find_one(query)
        except PyMongoError as e:
            msg = f"failed to read {self.entity}"
            raise StoreReadError(msg) from e
        if document is None:
            return None
        return self.model.from_document(document)

    async def get(self, query: Filter, key: object) -> DocumentT:
        """Like find_one, but raise when nothing matches.

        :param query: Filter to match
        :param key: Lookup value reported in the NotFound error
        :raises NotFoundError: If no document matches
        """
        entity = await self.find_one(query)
        if entity is None:
            raise NotFoundError(self.entity, key)
        return entity

    async def find_by_id(self, document_id: ObjectId) -> DocumentT | None:
        return await self.find_one({"_id": document_id})

    async def get_by_id(self, document_id: ObjectId) -> DocumentT:
        return await self.get({"_id": document_id}, document_id)

    async def find_many(
        self,
        query: Filter | None = None,
        *,
        sort: Sort | None = None,
        skip: int = 0,
        limit: int = 0,
    ) -> list[DocumentT]:
        """Return every document matching the filter.

        :param query: Filter to match, everything if None
        :param sort: Optional list of (field, direction) pairs
        :param skip: Documents to skip, ignored when <= 0
        :param limit: Maximum documents to return, unbounded when <= 0
        :return: Decoded entities in cursor order
        """
        options: dict[str, Any] = {}
        if sort:
            options["sort"] = sort
        if skip > 0:
            options["skip"] = skip
        if limit > 0:
            options["limit"] = limit

        try:
            cursor = self.collection.find(query or {}, **options)
            documents = await cursor.to_list(length=None)
        except PyMongoError as e:
            msg = f"failed to list {self.entity}"
            raise StoreReadError(msg) from e
        return [self.model.from_document(document) for document in documents]

    async def count(self, query: Filter | None = None) -> int:
        try:
            return await self.collection.count_documents(query or {})
        except PyMongoError as e:
            msg = f"failed to count {self.entity}"
            raise StoreReadError(msg) from e

    async def exists(self, query: Filter) -> bool:
        return await self.count(query) > 0

    async def insert_one(self, entity: DocumentT) -> DocumentT:
        """Persist a new entity and assign the store's identifier to it.

        :raises DuplicateKeyError: If a unique index rejects the document
        """
        try:
            result = await self.collection.insert_one(entity.to_document())
        except MongoDuplicateKeyError as e:
            msg = f"duplicate {self.entity}"
            raise DuplicateKeyError(msg) from e
        except PyMongoError as e:
            msg = f"failed to create {self.entity}"
            raise StoreWriteError(msg) from e

        entity.id = result.inserted_id
        LOGGER.debug("Created %s with ID %s", self.entity, result.inserted_id)
        return entity

    async def insert_many(self, entities: list[DocumentT]) -> list[ObjectId]:
        """Persist several new entities in one batch."""
        if not entities:
            return []
        try:
            result = await self.collection.insert_many(
                [entity.to_document() for entity in entities],
            )
        except PyMongoError as e:
            msg = f"failed to create {self.entity} batch"
            raise StoreWriteError(msg) from e

        for entity, inserted_id in zip(entities, result.inserted_ids, strict=True):
            entity.id = inserted_id
        return list(result.inserted_ids)

    async def update_by_id(self, document_id: ObjectId, update: Filter) -> int:
        """Apply an update document to one entity.

        :return: Number of matched documents (0 or 1)
        """
        return await self.update_one({"_id": document_id}, update)

    async def update_one(self, query: Filter, update: Filter) -> int:
        try:
            result = await self.collection.update_one(query, update)
        except MongoDuplicateKeyError as e:
            msg = f"duplicate {self.entity}"
            raise DuplicateKeyError(msg) from e
        except PyMongoError as e:
            msg = f"failed to update {self.entity}"
            raise StoreWriteError(msg) from e
        return result.matched_count

    async def update_many(self, query: Filter, update: Filter) -> int:
        """Apply an update document to every matching entity.

        :return: Number of matched documents
        """
        try:
            result = await self.collection.update_many(query, update)
        except MongoDuplicateKeyError as e:
            msg = f"duplicate {self.entity}"
            raise DuplicateKeyError(msg) from e
        except PyMongoError as e:
            msg = f"failed to update {self.entity} batch"
            raise StoreWriteError(msg) from e
        return result.matched_count

    async def delete_by_id(self, document_id: ObjectId) -> int:
        """Delete one entity.

        :return: Number of deleted documents (0 or 1)
        """
        try:
            result = await self.collection.delete_one({"_id": document_id})
        except PyMongoError as e:
            msg = f"failed to delete {self.entity}"
            raise StoreWriteError(msg) from e
        return result.deleted_count
