"""Unit tests for the document-backed work queue."""

from datetime import UTC, datetime, timedelta

import pytest

from src.commons.infrastructure.documentdb import InMemoryDocumentDB
from src.domain.models import JobStatus, ProcessingJob, ProcessingPhase
from src.infrastructure.queue import DocumentWorkQueue


@pytest.fixture
def db() -> InMemoryDocumentDB:
    return InMemoryDocumentDB()


@pytest.fixture
def queue(db) -> DocumentWorkQueue:
    return DocumentWorkQueue(db, collection="jobs", visibility_timeout_seconds=60)


def make_job(video_id: str = "v1", **kwargs) -> ProcessingJob:
    return ProcessingJob(
        video_id=video_id,
        stream_id="s1",
        type=kwargs.pop("type", ProcessingPhase.TRANSCRIPTION),
        **kwargs,
    )


class TestDocumentWorkQueue:
    """Tests for DocumentWorkQueue."""

    async def test_send_and_claim(self, queue):
        job = make_job(cascade=False)
        await queue.send(job)

        claimed = await queue.claim()

        assert claimed.id == job.id
        assert claimed.status == JobStatus.CLAIMED
        assert claimed.attempts == 1
        assert claimed.cascade is False
        assert claimed.type == ProcessingPhase.TRANSCRIPTION

    async def test_claim_empty(self, queue):
        assert await queue.claim() is None

    async def test_claimed_job_is_not_redelivered(self, queue):
        await queue.send(make_job())

        assert await queue.claim() is not None
        assert await queue.claim() is None

    async def test_claims_oldest_first(self, queue):
        now = datetime.now(UTC)
        newer = make_job("newer", available_at=now - timedelta(seconds=1))
        older = make_job("older", available_at=now - timedelta(seconds=10))
        await queue.send(newer)
        await queue.send(older)

        assert (await queue.claim()).video_id == "older"

    async def test_ack_removes_from_pending(self, queue, db):
        job = make_job()
        await queue.send(job)
        await queue.claim()

        await queue.ack(job.id)

        assert (await db.find_by_id("jobs", job.id))["status"] == JobStatus.DONE.value
        assert await queue.claim() is None

    async def test_retry_delays_redelivery(self, queue, db):
        job = make_job()
        await queue.send(job)
        await queue.claim()

        await queue.retry(job.id, "boom", delay_seconds=3600)

        stored = await db.find_by_id("jobs", job.id)
        assert stored["status"] == JobStatus.PENDING.value
        assert stored["last_error"] == "boom"
        assert await queue.pending_count() == 1
        assert await queue.claim() is None

    async def test_retry_without_delay_increments_attempts(self, queue):
        job = make_job()
        await queue.send(job)
        await queue.claim()
        await queue.retry(job.id, "boom", delay_seconds=0)

        claimed = await queue.claim()

        assert claimed.attempts == 2

    async def test_visibility_timeout_reclaims(self, queue, db):
        job = make_job()
        await queue.send(job)
        await queue.claim()
        await db.update(
            "jobs", job.id, {"claimed_at": datetime.now(UTC) - timedelta(seconds=61)}
        )

        reclaimed = await queue.claim()

        assert reclaimed.id == job.id
        assert reclaimed.attempts == 2

    async def test_dead_letter(self, queue, db):
        job = make_job()
        await queue.send(job)
        await queue.claim()

        await queue.dead_letter(job.id, "gave up")

        stored = await db.find_by_id("jobs", job.id)
        assert stored["status"] == JobStatus.DEAD.value
        assert await queue.pending_count() == 0
