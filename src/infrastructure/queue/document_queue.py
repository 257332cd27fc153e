"""Work queue stored in a document database collection."""

from datetime import UTC, datetime, timedelta
from typing import Any

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.telemetry import get_logger
from src.domain.models.processing import JobStatus, ProcessingJob
from src.infrastructure.queue.base import WorkQueueBase


class DocumentWorkQueue(WorkQueueBase):
    """Work queue backed by a DocumentDBBase collection.

    Claims are a single find-one-and-update so concurrent workers never
    receive the same job within its visibility window. Timestamps are kept
    as native datetimes so range filters compare correctly.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        collection: str = "processing_jobs",
        visibility_timeout_seconds: int = 900,
    ) -> None:
        self._db = document_db
        self._collection = collection
        self._visibility_timeout = timedelta(seconds=visibility_timeout_seconds)
        self._logger = get_logger(__name__)

    @staticmethod
    def _to_document(job: ProcessingJob) -> dict[str, Any]:
        doc = job.model_dump(mode="json")
        doc["available_at"] = job.available_at
        doc["claimed_at"] = job.claimed_at
        doc["created_at"] = job.created_at
        return doc

    async def send(self, job: ProcessingJob) -> str:
        job_id = await self._db.insert(self._collection, self._to_document(job))
        self._logger.debug(
            "Job enqueued",
            extra={"job_id": job_id, "video_id": job.video_id, "phase": job.type.value},
        )
        return job_id

    async def claim(self) -> ProcessingJob | None:
        now = datetime.now(UTC)
        doc = await self._db.find_one_and_update(
            self._collection,
            {
                "$or": [
                    {"status": JobStatus.PENDING.value, "available_at": {"$lte": now}},
                    {
                        "status": JobStatus.CLAIMED.value,
                        "claimed_at": {"$lte": now - self._visibility_timeout},
                    },
                ]
            },
            {"status": JobStatus.CLAIMED.value, "claimed_at": now},
            increments={"attempts": 1},
            sort=[("available_at", 1)],
        )
        if doc is None:
            return None
        return ProcessingJob(**doc)

    async def ack(self, job_id: str) -> None:
        await self._db.update(
            self._collection,
            job_id,
            {"status": JobStatus.DONE.value, "claimed_at": None},
        )

    async def retry(self, job_id: str, error: str, delay_seconds: float) -> None:
        await self._db.update(
            self._collection,
            job_id,
            {
                "status": JobStatus.PENDING.value,
                "claimed_at": None,
                "last_error": error,
                "available_at": datetime.now(UTC) + timedelta(seconds=delay_seconds),
            },
        )

    async def dead_letter(self, job_id: str, error: str) -> None:
        await self._db.update(
            self._collection,
            job_id,
            {"status": JobStatus.DEAD.value, "claimed_at": None, "last_error": error},
        )
        self._logger.warning("Job dead-lettered", extra={"job_id": job_id, "error": error})

    async def pending_count(self) -> int:
        return await self._db.count(
            self._collection, {"status": JobStatus.PENDING.value}
        )
