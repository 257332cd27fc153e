"""MongoDB document store backed by Motor."""

import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ReturnDocument

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.infrastructure.health import HealthStatus


def _to_mongo(document: dict[str, Any]) -> dict[str, Any]:
    """Rename ``id`` to ``_id``. Works for documents and filters alike."""
    doc = document.copy()
    if "id" in doc:
        doc["_id"] = doc.pop("id")
    return doc


def _from_mongo(document: dict[str, Any]) -> dict[str, Any]:
    doc = dict(document)
    doc["id"] = str(doc.pop("_id"))
    return doc


def _update_spec(
    updates: dict[str, Any],
    increments: dict[str, int] | None = None,
) -> dict[str, Any]:
    spec: dict[str, Any] = {}
    if updates:
        spec["$set"] = _to_mongo(updates)
    if increments:
        spec["$inc"] = increments
    return spec


class MongoDBDocumentDB(DocumentDBBase):
    """Document store on MongoDB.

    Video ids, job ids and phase-run keys are stored directly as ``_id``,
    so lookups by id never need a secondary index. Conditional writes map
    to ``update_one`` and ``find_one_and_update``, which MongoDB applies
    atomically per document.
    """

    def __init__(
        self,
        connection_string: str,
        database_name: str,
    ) -> None:
        """Create the Motor client. No connection is made until first use.

        Args:
            connection_string: MongoDB connection URI.
            database_name: Database holding the pipeline collections.
        """
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        result = await self._db[collection].insert_one(_to_mongo(document))
        return str(result.inserted_id)

    async def insert_many(
        self,
        collection: str,
        documents: list[dict[str, Any]],
    ) -> list[str]:
        # insert_many rejects an empty batch
        if not documents:
            return []
        result = await self._db[collection].insert_many(
            [_to_mongo(document) for document in documents]
        )
        return [str(inserted) for inserted in result.inserted_ids]

    async def upsert(
        self,
        collection: str,
        document_id: str,
        document: dict[str, Any],
    ) -> None:
        replacement = {**_to_mongo(document), "_id": document_id}
        await self._db[collection].replace_one(
            {"_id": document_id}, replacement, upsert=True
        )

    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        result = await self._db[collection].delete_one({"_id": document_id})
        return bool(result.deleted_count)

    async def delete_many(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> int:
        result = await self._db[collection].delete_many(_to_mongo(filters))
        return int(result.deleted_count)

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        return await self.find_one(collection, {"id": document_id})

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        cursor = self._db[collection].find(_to_mongo(filters))
        if sort:
            cursor = cursor.sort(sort)
        cursor = cursor.skip(skip).limit(limit)
        return [_from_mongo(doc) async for doc in cursor]

    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        doc = await self._db[collection].find_one(_to_mongo(filters))
        return _from_mongo(doc) if doc else None

    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        coll = self._db[collection]
        if not filters:
            # Metadata count; avoids a collection scan for the unfiltered case
            return int(await coll.estimated_document_count())
        return int(await coll.count_documents(_to_mongo(filters)))

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        return await self.update_where(collection, {"id": document_id}, updates)

    async def update_where(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
        increments: dict[str, int] | None = None,
    ) -> bool:
        result = await self._db[collection].update_one(
            _to_mongo(filters),
            _update_spec(updates, increments),
        )
        return bool(result.matched_count)

    async def find_one_and_update(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
        increments: dict[str, int] | None = None,
        sort: list[tuple[str, int]] | None = None,
    ) -> dict[str, Any] | None:
        doc = await self._db[collection].find_one_and_update(
            _to_mongo(filters),
            _update_spec(updates, increments),
            sort=sort,
            return_document=ReturnDocument.AFTER,
        )
        return _from_mongo(doc) if doc else None

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        index_name = await self._db[collection].create_index(
            fields,
            unique=unique,
            name=name,
        )
        return str(index_name)

    async def health_check(self) -> HealthStatus:
        details: dict[str, Any] = {"database": self._database_name}
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
        except Exception as e:
            details["error"] = str(e)
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"MongoDB ping failed: {e}",
                details=details,
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            message="MongoDB is reachable",
            details=details,
        )

    async def close(self) -> None:
        self._client.close()
