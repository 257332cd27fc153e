"""Pipeline orchestrator: the single owner of pipeline state."""

from src.application.services.completion import CompletionChecker
from src.application.services.dispatcher import PipelineDispatcher
from src.application.services.storage import VideoStorageService
from src.application.services.video_logs import VideoLogService
from src.commons.telemetry import get_logger
from src.domain.models.processing import (
    PhaseRun,
    PhaseRunState,
    ProcessingPhase,
    next_phase,
)
from src.domain.models.video import PipelineState, Video, VideoStatus
from src.domain.models.video_log import LogLevel


class PipelineOrchestrator:
    """Advances a video through the processing phases.

    Workers never enqueue their successor themselves. They report back
    through ``complete_phase`` or ``fail_phase`` and this class decides
    what runs next, so pipeline state lives in one place:

    - ``Video.pipeline_state`` / ``Video.pipeline_phase`` for the video
    - one PhaseRun record per (video, phase)
    """

    def __init__(
        self,
        storage: VideoStorageService,
        dispatcher: PipelineDispatcher,
        completion: CompletionChecker,
        video_logs: VideoLogService,
    ) -> None:
        self._storage = storage
        self._dispatcher = dispatcher
        self._completion = completion
        self._video_logs = video_logs
        self._logger = get_logger(__name__)

    async def start(self, video: Video) -> bool:
        """Start the pipeline for a video that just became playable.

        Claims the pipeline with a compare-and-swap from NOT_STARTED to
        RUNNING. Concurrent callers (duplicate webhooks, a webhook racing
        the poller) lose the swap and dispatch nothing.

        Args:
            video: Video whose transcoding finished.

        Returns:
            True if this call dispatched the first phase.
        """
        claimed = await self._storage.update_video(
            video.id,
            {
                "pipeline_state": PipelineState.RUNNING,
                "pipeline_phase": ProcessingPhase.TRANSCRIPTION,
            },
            expected={"pipeline_state": PipelineState.NOT_STARTED},
        )
        if not claimed:
            self._logger.info(
                "Pipeline already started, skipping dispatch",
                extra={"video_id": video.id},
            )
            return False

        try:
            await self.dispatch_phase(
                video.id, video.stream_id, ProcessingPhase.TRANSCRIPTION, cascade=True
            )
        except Exception:
            # Release the claim so the next sync can try again
            await self._storage.update_video(
                video.id,
                {"pipeline_state": PipelineState.NOT_STARTED, "pipeline_phase": None},
                expected={"pipeline_state": PipelineState.RUNNING},
            )
            self._logger.error(
                "Failed to dispatch first phase, pipeline released",
                exc_info=True,
                extra={"video_id": video.id},
            )
            raise

        await self._video_logs.record(
            video.id, "pipeline_started", "Processing pipeline started"
        )
        return True

    async def dispatch_phase(
        self,
        video_id: str,
        stream_id: str | None,
        phase: ProcessingPhase,
        cascade: bool,
    ) -> str:
        """Record a phase as pending and enqueue it.

        Args:
            video_id: Video UUID.
            stream_id: Streaming provider identifier.
            phase: Phase to run.
            cascade: Whether the chain continues after this phase.

        Returns:
            The queued job id.
        """
        run = PhaseRun(
            id=PhaseRun.key(video_id, phase),
            video_id=video_id,
            phase=phase,
            state=PhaseRunState.PENDING,
        )
        await self._storage.save_phase_run(run)
        try:
            job_id = await self._dispatcher.dispatch(video_id, stream_id, phase, cascade)
        except Exception as e:
            await self._storage.save_phase_run(
                run.model_copy(
                    update={"state": PhaseRunState.FAILED, "error": f"enqueue failed: {e}"}
                )
            )
            raise
        await self._storage.update_video(video_id, {"pipeline_phase": phase})
        return job_id

    async def mark_running(
        self, video_id: str, phase: ProcessingPhase, attempt: int
    ) -> None:
        """Record that a worker picked up a phase."""
        await self._storage.save_phase_run(
            PhaseRun(
                id=PhaseRun.key(video_id, phase),
                video_id=video_id,
                phase=phase,
                state=PhaseRunState.RUNNING,
                attempts=attempt,
            )
        )

    async def complete_phase(
        self,
        video_id: str,
        phase: ProcessingPhase,
        cascade: bool,
        attempt: int = 1,
    ) -> ProcessingPhase | None:
        """Stepping function called when a phase's artifact is committed.

        Dispatches the next phase when cascading, otherwise finishes the
        pipeline from the derived completeness.

        Args:
            video_id: Video UUID.
            phase: Phase that finished.
            cascade: Whether the finished job was part of a cascade.
            attempt: Attempt number that succeeded.

        Returns:
            The phase dispatched next, or None if the pipeline finished.
        """
        await self._storage.save_phase_run(
            PhaseRun(
                id=PhaseRun.key(video_id, phase),
                video_id=video_id,
                phase=phase,
                state=PhaseRunState.DONE,
                attempts=attempt,
            )
        )

        video = await self._storage.get_video(video_id)
        if video is None:
            self._logger.warning(
                "Phase completed for a deleted video",
                extra={"video_id": video_id, "phase": phase.value},
            )
            return None

        successor = next_phase(phase) if cascade else None
        if successor is not None:
            try:
                await self.dispatch_phase(
                    video.id, video.stream_id, successor, cascade=True
                )
            except Exception as e:
                await self.fail_phase(video.id, successor, f"enqueue failed: {e}")
                raise
            return successor

        await self._finish(video)
        return None

    async def fail_phase(
        self,
        video_id: str,
        phase: ProcessingPhase,
        error: str,
        attempt: int = 1,
    ) -> None:
        """Record a phase that exhausted its attempts.

        The video's transcoding status is untouched: a failed AI phase
        does not make the video unplayable. A video moved to PROCESSING by
        a retrigger goes back to READY.

        Args:
            video_id: Video UUID.
            phase: Phase that failed.
            error: Final error message.
            attempt: Number of attempts made.
        """
        await self._storage.save_phase_run(
            PhaseRun(
                id=PhaseRun.key(video_id, phase),
                video_id=video_id,
                phase=phase,
                state=PhaseRunState.FAILED,
                attempts=attempt,
                error=error,
            )
        )
        await self._storage.update_video(
            video_id,
            {"pipeline_state": PipelineState.FAILED, "pipeline_phase": phase},
        )
        await self._storage.update_video(
            video_id,
            {"status": VideoStatus.READY},
            expected={"status": VideoStatus.PROCESSING},
        )
        self._logger.error(
            "Phase failed",
            extra={"video_id": video_id, "phase": phase.value, "error": error},
        )
        await self._video_logs.record(
            video_id,
            "phase_failed",
            f"{phase.value} failed after {attempt} attempt(s)",
            level=LogLevel.ERROR,
            details={"phase": phase.value, "error": error, "attempts": attempt},
        )

    async def _finish(self, video: Video) -> None:
        status = await self._completion.get_processing_status(video.id)
        if status.complete:
            await self._storage.update_video(
                video.id,
                {"pipeline_state": PipelineState.COMPLETE, "pipeline_phase": None},
            )
            self._logger.info("Pipeline complete", extra={"video_id": video.id})
            await self._video_logs.record(
                video.id, "pipeline_complete", "All processing phases complete"
            )
        else:
            missing = [artifact.value for artifact in status.missing]
            await self._storage.update_video(
                video.id, {"pipeline_state": PipelineState.FAILED}
            )
            self._logger.warning(
                "Pipeline finished with missing artifacts",
                extra={"video_id": video.id, "missing": missing},
            )
            await self._video_logs.record(
                video.id,
                "pipeline_incomplete",
                "Pipeline finished with missing artifacts",
                level=LogLevel.WARNING,
                details={"missing": missing},
            )

        await self._storage.update_video(
            video.id,
            {"status": VideoStatus.READY},
            expected={"status": VideoStatus.PROCESSING},
        )
