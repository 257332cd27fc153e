"""Abstract base class for the processing job queue."""

from abc import ABC, abstractmethod

from src.domain.models.processing import ProcessingJob


class WorkQueueBase(ABC):
    """Durable queue of processing jobs with at-least-once delivery.

    A claimed job that is neither acked nor retried within the visibility
    timeout becomes claimable again, so consumers must be idempotent.
    """

    @abstractmethod
    async def send(self, job: ProcessingJob) -> str:
        """Enqueue a job.

        Args:
            job: Job to enqueue.

        Returns:
            The job id.
        """

    @abstractmethod
    async def claim(self) -> ProcessingJob | None:
        """Claim the oldest available job.

        Returns:
            The claimed job with its attempt counter incremented, or None.
        """

    @abstractmethod
    async def ack(self, job_id: str) -> None:
        """Mark a claimed job as done."""

    @abstractmethod
    async def retry(self, job_id: str, error: str, delay_seconds: float) -> None:
        """Release a claimed job for another attempt after a delay.

        Args:
            job_id: Claimed job id.
            error: Error from the failed attempt.
            delay_seconds: Seconds before the job becomes claimable.
        """

    @abstractmethod
    async def dead_letter(self, job_id: str, error: str) -> None:
        """Park a job that exhausted its attempts."""

    @abstractmethod
    async def pending_count(self) -> int:
        """Number of jobs waiting to be claimed."""
