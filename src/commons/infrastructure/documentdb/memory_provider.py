"""In-memory implementation of document database.

Supports the subset of MongoDB query operators used by the services:
equality, ``$in``, ``$nin``, ``$ne``, ``$lt``, ``$lte``, ``$gt``, ``$gte``,
``$exists`` and top-level ``$or``.
"""

import asyncio
import copy
import time
from typing import Any

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.infrastructure.health import HealthStatus

_MISSING = object()


def _match_condition(value: Any, condition: Any) -> bool:
    if not isinstance(condition, dict) or not any(
        key.startswith("$") for key in condition
    ):
        return value is not _MISSING and value == condition

    for operator, operand in condition.items():
        if operator == "$in":
            if value is _MISSING or value not in operand:
                return False
        elif operator == "$nin":
            if value is not _MISSING and value in operand:
                return False
        elif operator == "$ne":
            if value is not _MISSING and value == operand:
                return False
        elif operator == "$exists":
            if (value is not _MISSING) != bool(operand):
                return False
        elif operator in {"$lt", "$lte", "$gt", "$gte"}:
            if value is _MISSING or value is None:
                return False
            if operator == "$lt" and not value < operand:
                return False
            if operator == "$lte" and not value <= operand:
                return False
            if operator == "$gt" and not value > operand:
                return False
            if operator == "$gte" and not value >= operand:
                return False
        else:
            raise ValueError(f"Unsupported query operator: {operator}")
    return True


def matches(document: dict[str, Any], filters: dict[str, Any]) -> bool:
    """Check whether a document satisfies a filter expression."""
    for key, condition in filters.items():
        if key == "$or":
            if not any(matches(document, clause) for clause in condition):
                return False
            continue
        if not _match_condition(document.get(key, _MISSING), condition):
            return False
    return True


class InMemoryDocumentDB(DocumentDBBase):
    """Dictionary-backed document database.

    Each collection maps document id to a deep copy of the stored document.
    A single lock serializes writes so conditional updates behave atomically
    across concurrent tasks.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def _select(
        self,
        collection: str,
        filters: dict[str, Any],
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        docs = [doc for doc in self._collection(collection).values() if matches(doc, filters)]
        # Apply sort keys from least to most significant
        for field, direction in reversed(sort or []):
            docs.sort(
                key=lambda d, f=field: (d.get(f) is None, d.get(f)),
                reverse=direction < 0,
            )
        return docs

    @staticmethod
    def _apply(
        document: dict[str, Any],
        updates: dict[str, Any],
        increments: dict[str, int] | None,
    ) -> None:
        document.update(copy.deepcopy(updates))
        for field, delta in (increments or {}).items():
            document[field] = document.get(field, 0) + delta

    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        doc = copy.deepcopy(document)
        document_id = str(doc.setdefault("id", str(len(self._collection(collection)) + 1)))
        async with self._lock:
            docs = self._collection(collection)
            if document_id in docs:
                raise ValueError(f"Duplicate id '{document_id}' in {collection}")
            docs[document_id] = doc
        return document_id

    async def insert_many(
        self,
        collection: str,
        documents: list[dict[str, Any]],
    ) -> list[str]:
        return [await self.insert(collection, document) for document in documents]

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        doc = self._collection(collection).get(document_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        docs = self._select(collection, filters, sort)
        return copy.deepcopy(docs[skip : skip + limit])

    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        docs = self._select(collection, filters)
        return copy.deepcopy(docs[0]) if docs else None

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
        async with self._lock:
            docs = self._select(collection, filters)
            if not docs:
                return False
            self._apply(docs[0], updates, increments)
            return True

    async def find_one_and_update(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
        increments: dict[str, int] | None = None,
        sort: list[tuple[str, int]] | None = None,
    ) -> dict[str, Any] | None:
        async with self._lock:
            docs = self._select(collection, filters, sort)
            if not docs:
                return None
            self._apply(docs[0], updates, increments)
            return copy.deepcopy(docs[0])

    async def upsert(
        self,
        collection: str,
        document_id: str,
        document: dict[str, Any],
    ) -> None:
        doc = copy.deepcopy(document)
        doc["id"] = document_id
        async with self._lock:
            self._collection(collection)[document_id] = doc

    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        async with self._lock:
            return self._collection(collection).pop(document_id, None) is not None

    async def delete_many(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> int:
        async with self._lock:
            docs = self._collection(collection)
            doomed = [doc_id for doc_id, doc in docs.items() if matches(doc, filters)]
            for doc_id in doomed:
                del docs[doc_id]
            return len(doomed)

    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        return len(self._select(collection, filters or {}))

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        # Indexes are a no-op; name mirrors MongoDB's default naming
        return name or "_".join(f"{field}_{direction}" for field, direction in fields)

    async def health_check(self) -> HealthStatus:
        start = time.perf_counter()
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            message="In-memory document store",
            details={"collections": str(len(self._collections))},
        )
