"""Abstract base class for the document store behind videos, artifacts and jobs."""

from abc import ABC, abstractmethod
from typing import Any

from src.commons.infrastructure.health import HealthStatus


class DocumentDBBase(ABC):
    """Document store used for videos, pipeline artifacts and the job queue.

    Documents carry their identifier in an ``id`` field and filters may
    reference ``id`` too; providers translate it to their native key.
    Filters support equality plus ``$in``, ``$nin``, ``$ne``, ``$lt``,
    ``$lte``, ``$gt``, ``$gte``, ``$exists`` and a top-level ``$or``.

    Implementations should handle:
    - MongoDB
    - In-memory (local development and tests)
    """

    # =========================================================================
    # Inserts and deletes
    # =========================================================================

    @abstractmethod
    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document.

        Args:
            collection: Collection name.
            document: Document to insert. Its ``id`` becomes the key.

        Returns:
            The document ID.

        Raises:
            ValueError: If a document with the same ID exists.
        """

    @abstractmethod
    async def insert_many(
        self,
        collection: str,
        documents: list[dict[str, Any]],
    ) -> list[str]:
        """Insert several documents, returning their IDs in order."""

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        document_id: str,
        document: dict[str, Any],
    ) -> None:
        """Replace a document by ID, inserting it if absent.

        Used for records keyed by a natural key, such as the per-phase
        execution record ``{video_id}:{phase}``.
        """

    @abstractmethod
    async def delete(self, collection: str, document_id: str) -> bool:
        """Delete a document, returning False if it did not exist."""

    @abstractmethod
    async def delete_many(self, collection: str, filters: dict[str, Any]) -> int:
        """Delete every matching document, returning how many were removed."""

    # =========================================================================
    # Reads
    # =========================================================================

    @abstractmethod
    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Fetch a document by ID, or None if it does not exist."""

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters.

        Args:
            collection: Collection name.
            filters: Query filters.
            skip: Number of documents to skip.
            limit: Maximum documents to return.
            sort: Sort keys as (field, direction) with 1 ascending and
                -1 descending, most significant first.

        Returns:
            Matching documents.
        """

    @abstractmethod
    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        """First document matching filters, or None."""

    @abstractmethod
    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Count documents, optionally restricted by filters."""

    # =========================================================================
    # Updates
    # =========================================================================

    @abstractmethod
    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Set fields on a document by ID.

        Returns:
            True if the document exists.
        """

    @abstractmethod
    async def update_where(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
        increments: dict[str, int] | None = None,
    ) -> bool:
        """Conditionally update a single document.

        This is the compare-and-swap primitive: ``filters`` carries the
        expected current values (for example ``version``) and the write
        applies atomically only if they still match.

        Args:
            collection: Collection name.
            filters: Identity plus the expected state.
            updates: Fields to set.
            increments: Fields to increment in the same write.

        Returns:
            True if a document matched and was updated.
        """

    @abstractmethod
    async def find_one_and_update(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
        increments: dict[str, int] | None = None,
        sort: list[tuple[str, int]] | None = None,
    ) -> dict[str, Any] | None:
        """Atomically update the first matching document and return it.

        Concurrent callers never receive the same document for the same
        matching state, which is what makes queue claims exclusive.

        Args:
            collection: Collection name.
            filters: Query filters.
            updates: Fields to set.
            increments: Fields to increment in the same write.
            sort: Order used to pick among matches.

        Returns:
            The document after the update, or None if nothing matched.
        """

    # =========================================================================
    # Administration
    # =========================================================================

    @abstractmethod
    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        """Create an index if it does not exist and return its name."""

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check that the store answers, with round-trip latency."""

    async def close(self) -> None:  # noqa: B027
        """Release client resources."""
