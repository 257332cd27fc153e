"""Re-running processing phases on demand."""

from datetime import UTC, datetime

from src.application.dtos.processing import RetriggerResponse
from src.application.services.orchestrator import PipelineOrchestrator
from src.application.services.storage import VideoStorageService
from src.application.services.video_logs import VideoLogService
from src.commons.telemetry import get_logger
from src.domain.exceptions import (
    InvalidPhaseException,
    InvalidVideoStateException,
    VideoNotFoundException,
)
from src.domain.models.processing import (
    FORCE_CLEAR_ARTIFACTS,
    Artifact,
    RetriggerTarget,
)
from src.domain.models.video import PipelineState, Video, VideoStatus


def parse_retrigger_target(phase: str | None) -> RetriggerTarget:
    """Validate a requested phase name.

    Raises:
        InvalidPhaseException: If the phase is missing or unknown.
    """
    if not phase:
        raise InvalidPhaseException(None, RetriggerTarget.values())
    try:
        return RetriggerTarget(phase)
    except ValueError as e:
        raise InvalidPhaseException(phase, RetriggerTarget.values()) from e


class RetriggerController:
    """Re-runs one phase, or the whole chain, for an existing video.

    Exactly one job is enqueued per call. Retriggering ``all`` or
    ``transcription`` enqueues transcription and lets the orchestrator
    cascade, since every later phase derives from the transcript; any
    other phase runs alone. With ``force`` the phase's artifacts are
    removed first, except the title, which may have been edited by hand.
    """

    def __init__(
        self,
        storage: VideoStorageService,
        orchestrator: PipelineOrchestrator,
        video_logs: VideoLogService,
    ) -> None:
        self._storage = storage
        self._orchestrator = orchestrator
        self._video_logs = video_logs
        self._logger = get_logger(__name__)

    async def retrigger(
        self,
        video_id: str,
        phase: str | None,
        force: bool = False,
    ) -> RetriggerResponse:
        """Enqueue a re-run of a phase.

        Args:
            video_id: Video UUID.
            phase: Phase name or ``"all"``.
            force: Delete the phase's artifacts before re-running.

        Returns:
            Confirmation echo; the job runs asynchronously.

        Raises:
            InvalidPhaseException: Before any I/O, for a bad phase.
            VideoNotFoundException: If the video doesn't exist.
            InvalidVideoStateException: If the video is not ready or processing.
        """
        target = parse_retrigger_target(phase)

        video = await self._storage.get_video(video_id)
        if video is None:
            raise VideoNotFoundException(video_id)
        self._check_state(video)

        await self._claim(video)

        # No transaction spans the store and the queue: whatever was cleared
        # before a failure is logged for manual repair.
        cleared: list[Artifact] = []
        try:
            if force:
                await self._clear_artifacts(video.id, target, cleared)
            await self._orchestrator.dispatch_phase(
                video.id, video.stream_id, target.entry_phase, cascade=target.cascades
            )
        except Exception:
            await self._storage.update_video(
                video.id, {"pipeline_state": PipelineState.FAILED}
            )
            self._logger.error(
                "Retrigger failed after claiming the video",
                exc_info=True,
                extra={
                    "video_id": video.id,
                    "phase": target.value,
                    "force": force,
                    "cleared_artifacts": [a.value for a in cleared],
                },
            )
            raise

        timestamp = datetime.now(UTC)
        self._logger.info(
            "Processing retriggered",
            extra={
                "video_id": video.id,
                "phase": target.value,
                "force": force,
                "timestamp": timestamp.isoformat(),
            },
        )
        await self._video_logs.record(
            video.id,
            "retrigger",
            f"Retriggered {target.value}" + (" (force)" if force else ""),
            details={
                "phase": target.value,
                "force": force,
                "cleared": [a.value for a in cleared],
            },
        )

        return RetriggerResponse(
            message=f"Processing retriggered for phase '{target.value}'",
            video_id=video.id,
            phase=target.value,
            force=force,
            timestamp=timestamp,
        )

    @staticmethod
    def _check_state(video: Video) -> None:
        if not video.accepts_retrigger:
            raise InvalidVideoStateException(
                video.id,
                video.status,
                "retrigger",
                allowed=[VideoStatus.READY, VideoStatus.PROCESSING],
            )

    async def _claim(self, video: Video) -> None:
        """Move the video to PROCESSING with a running pipeline."""
        updates = {
            "status": VideoStatus.PROCESSING,
            "pipeline_state": PipelineState.RUNNING,
        }
        if await self._storage.update_video(
            video.id, updates, expected={"status": video.status}
        ):
            return

        # Status moved underneath us; re-check against the fresh record
        current = await self._storage.get_video(video.id)
        if current is None:
            raise VideoNotFoundException(video.id)
        self._check_state(current)
        if not await self._storage.update_video(
            current.id, updates, expected={"status": current.status}
        ):
            raise InvalidVideoStateException(current.id, current.status, "retrigger")

    async def _clear_artifacts(
        self, video_id: str, target: RetriggerTarget, cleared: list[Artifact]
    ) -> None:
        """Delete the target's artifacts, appending each to ``cleared`` once gone."""
        artifacts = sorted(FORCE_CLEAR_ARTIFACTS[target], key=lambda a: a.value)
        for artifact in artifacts:
            if artifact == Artifact.TRANSCRIPT:
                await self._storage.delete_transcript(video_id)
            elif artifact == Artifact.TAGS:
                await self._storage.delete_tags(video_id)
            elif artifact == Artifact.CHAPTERS:
                await self._storage.delete_chapters(video_id)
            elif artifact == Artifact.ABSTRACT:
                await self._storage.update_video(video_id, {"abstract": None})
            cleared.append(artifact)

        if artifacts:
            self._logger.info(
                "Artifacts cleared for forced retrigger",
                extra={
                    "video_id": video_id,
                    "phase": target.value,
                    "artifacts": [a.value for a in artifacts],
                },
            )
