"""Enqueues processing-phase jobs."""

from src.commons.telemetry import get_logger
from src.domain.models.processing import ProcessingJob, ProcessingPhase
from src.infrastructure.queue.base import WorkQueueBase


class PipelineDispatcher:
    """Pushes phase jobs onto the work queue.

    Dispatch is fire-and-forget: it returns once the job is durably
    enqueued and does not wait for a worker. Ordering between phases is
    the orchestrator's concern, not the dispatcher's.
    """

    def __init__(self, queue: WorkQueueBase) -> None:
        self._queue = queue
        self._logger = get_logger(__name__)

    async def dispatch(
        self,
        video_id: str,
        stream_id: str | None,
        phase: ProcessingPhase,
        cascade: bool = True,
    ) -> str:
        """Enqueue a job for one phase of one video.

        Args:
            video_id: Video UUID.
            stream_id: Streaming provider identifier of the video.
            phase: Phase to run.
            cascade: Whether the chain continues after this phase.

        Returns:
            The queued job id.

        Raises:
            Exception: Whatever the queue raises if the job cannot be stored.
        """
        job = ProcessingJob(
            video_id=video_id,
            stream_id=stream_id,
            type=phase,
            cascade=cascade,
        )
        job_id = await self._queue.send(job)
        self._logger.info(
            "Phase dispatched",
            extra={
                "video_id": video_id,
                "phase": phase.value,
                "cascade": cascade,
                "job_id": job_id,
            },
        )
        return job_id
