"""Queue consumer that executes processing phases."""

import asyncio
import time

from src.application.services.orchestrator import PipelineOrchestrator
from src.application.services.phases import PhaseProcessor
from src.application.services.storage import VideoStorageService
from src.application.services.video_logs import VideoLogService
from src.commons.settings.models import ProcessingSettings
from src.commons.telemetry import LogContext, get_logger
from src.commons.telemetry.langfuse_client import langfuse_trace
from src.domain.models.processing import ProcessingJob
from src.domain.models.video_log import LogLevel
from src.infrastructure.queue.base import WorkQueueBase


class PhaseWorker:
    """Claims jobs from the queue and runs one phase per job.

    A failed job is retried with a delay until it has been attempted
    ``max_job_attempts`` times, then dead-lettered and reported to the
    orchestrator as a failed phase.
    """

    def __init__(
        self,
        queue: WorkQueueBase,
        storage: VideoStorageService,
        orchestrator: PipelineOrchestrator,
        processor: PhaseProcessor,
        video_logs: VideoLogService,
        settings: ProcessingSettings,
    ) -> None:
        self._queue = queue
        self._storage = storage
        self._orchestrator = orchestrator
        self._processor = processor
        self._video_logs = video_logs
        self._max_attempts = settings.max_job_attempts
        self._retry_delay = settings.retry_delay_seconds
        self._poll_interval = settings.worker_poll_interval_seconds
        self._logger = get_logger(__name__)

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Process jobs until ``stop`` is set."""
        stop = stop or asyncio.Event()
        self._logger.info("Worker started", extra={"max_attempts": self._max_attempts})
        while not stop.is_set():
            try:
                processed = await self.run_once()
            except Exception:
                self._logger.exception("Worker iteration failed")
                processed = False
            if not processed:
                try:
                    await asyncio.wait_for(stop.wait(), timeout=self._poll_interval)
                except TimeoutError:
                    pass
        self._logger.info("Worker stopped")

    async def run_once(self) -> bool:
        """Claim and handle at most one job.

        Returns:
            True if a job was claimed.
        """
        job = await self._queue.claim()
        if job is None:
            return False
        await self.handle(job)
        return True

    async def handle(self, job: ProcessingJob) -> None:
        phase = job.type
        with LogContext(
            video_id=job.video_id, phase=phase.value, job_id=job.id, attempt=job.attempts
        ):
            video = await self._storage.get_video(job.video_id)
            if video is None:
                self._logger.warning("Job for deleted video dropped")
                await self._queue.ack(job.id)
                return

            await self._orchestrator.mark_running(video.id, phase, job.attempts)
            self._logger.info("Phase started")
            start = time.perf_counter()
            try:
                with langfuse_trace(
                    name=f"phase.{phase.value}",
                    session_id=video.id,
                    metadata={"job_id": job.id, "attempt": job.attempts},
                    tags=[phase.value],
                ):
                    await self._processor.run(phase, video)
            except Exception as e:
                await self._handle_failure(job, e)
                return

            duration_ms = int((time.perf_counter() - start) * 1000)
            await self._queue.ack(job.id)
            self._logger.info("Phase completed", extra={"duration_ms": duration_ms})
            await self._video_logs.record(
                video.id,
                "phase_complete",
                f"{phase.value} completed",
                details={"phase": phase.value, "attempt": job.attempts},
                duration_ms=duration_ms,
            )
            try:
                await self._orchestrator.complete_phase(
                    video.id, phase, cascade=job.cascade, attempt=job.attempts
                )
            except Exception:
                # The job is already acked; the orchestrator has recorded
                # the pipeline as failed if the successor could not be queued.
                self._logger.error("Failed to advance pipeline", exc_info=True)

    async def _handle_failure(self, job: ProcessingJob, error: Exception) -> None:
        message = str(error) or type(error).__name__
        if job.attempts < self._max_attempts:
            self._logger.warning(
                "Phase failed, will retry",
                extra={"error": message, "retry_in_seconds": self._retry_delay},
            )
            await self._queue.retry(job.id, message, self._retry_delay)
            await self._video_logs.record(
                job.video_id,
                "phase_retry",
                f"{job.type.value} attempt {job.attempts} failed",
                level=LogLevel.WARNING,
                details={"phase": job.type.value, "error": message},
            )
            return

        await self._queue.dead_letter(job.id, message)
        await self._orchestrator.fail_phase(
            job.video_id, job.type, message, attempt=job.attempts
        )
