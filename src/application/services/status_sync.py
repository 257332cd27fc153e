"""Reconciles local video status with the streaming provider."""

import asyncio
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from src.application.dtos.processing import (
    StreamWebhookPayload,
    SweepError,
    SweepReport,
    WebhookOutcome,
)
from src.application.services.orchestrator import PipelineOrchestrator
from src.application.services.storage import VideoStorageService
from src.application.services.webhook_signature import verify_webhook_signature
from src.commons.settings.models import ProcessingSettings, StreamingSettings
from src.commons.telemetry import get_logger, timed
from src.domain.exceptions import ValidationException, VideoNotFoundException
from src.domain.models.video import (
    PipelineState,
    ProviderState,
    Video,
    VideoStatus,
    map_provider_state,
)
from src.infrastructure.streaming.base import StreamInfo, StreamingProviderBase


class StatusReconciler:
    """Keeps ``Video.status`` consistent with the provider's state.

    Trigger sources:
    - provider webhooks (push)
    - the post-upload poller (pull)
    - manual single-video sync and the periodic sweep

    Status writes are compare-and-swap on ``Video.version`` and only
    happen when the mapped status differs, so repeated syncs with no
    provider-side change write nothing. Reaching READY hands over to the
    orchestrator, whose own compare-and-swap guarantees at most one
    pipeline start per video.
    """

    def __init__(
        self,
        storage: VideoStorageService,
        provider: StreamingProviderBase,
        orchestrator: PipelineOrchestrator,
        processing_settings: ProcessingSettings,
        streaming_settings: StreamingSettings,
    ) -> None:
        self._storage = storage
        self._provider = provider
        self._orchestrator = orchestrator
        self._batch_size = processing_settings.sweep_batch_size
        self._batch_delay = processing_settings.sweep_batch_delay_seconds
        self._sweep_limit = processing_settings.sweep_limit
        self._webhook_secret = streaming_settings.webhook_secret
        self._webhook_tolerance = streaming_settings.webhook_tolerance_seconds
        self._logger = get_logger(__name__)

    async def sync_video_status(self, video_id: str) -> Video:
        """Reconcile one video against the provider.

        Args:
            video_id: Video UUID.

        Returns:
            The video after reconciliation.

        Raises:
            VideoNotFoundException: If the video doesn't exist.
            ProviderException: If the provider query fails.
        """
        video, _ = await self._sync(video_id)
        return video

    async def _sync(self, video_id: str) -> tuple[Video, bool]:
        video = await self._storage.get_video(video_id)
        if video is None:
            raise VideoNotFoundException(video_id)
        if not video.stream_id:
            self._logger.warning(
                "Video has no stream id, nothing to sync",
                extra={"video_id": video_id},
            )
            return video, False

        info = await self._provider.get_stream(video.stream_id)
        return await self._reconcile(video, info)

    async def _reconcile(self, video: Video, info: StreamInfo) -> tuple[Video, bool]:
        """Apply a provider observation to a video.

        Returns:
            The refreshed video and whether its status changed.
        """
        new_status = VideoStatus.READY if info.ready_to_stream else map_provider_state(
            info.state
        )
        if (
            new_status == VideoStatus.READY
            and video.status == VideoStatus.PROCESSING
            and video.pipeline_state == PipelineState.RUNNING
        ):
            # Retriggered pipeline in flight; the orchestrator hands the
            # video back to READY when it finishes.
            self._logger.debug(
                "Pipeline running, keeping processing status",
                extra={"video_id": video.id, "phase": video.pipeline_phase},
            )
            return video, False

        changed = False

        if video.status != new_status:
            updates: dict[str, Any] = {
                "status": new_status,
                "error_message": (
                    info.error_message or "Stream processing failed"
                    if new_status == VideoStatus.ERROR
                    else None
                ),
            }
            if info.duration_seconds is not None:
                updates["duration_seconds"] = info.duration_seconds
            if video.thumbnail_url is None and video.stream_id:
                updates["thumbnail_url"] = info.thumbnail_url or self._provider.thumbnail_url(
                    video.stream_id
                )

            changed = await self._storage.update_video(
                video.id, updates, expected_version=video.version
            )
            if changed:
                self._logger.info(
                    "Video status updated",
                    extra={
                        "video_id": video.id,
                        "from_status": video.status.value,
                        "to_status": new_status.value,
                        "provider_state": info.state,
                    },
                )
            else:
                self._logger.warning(
                    "Concurrent update detected, status write skipped",
                    extra={"video_id": video.id, "expected_version": video.version},
                )

        refreshed = await self._storage.get_video(video.id)
        if refreshed is None:
            raise VideoNotFoundException(video.id)

        if new_status == VideoStatus.READY and (
            refreshed.pipeline_state == PipelineState.NOT_STARTED
        ):
            if await self._orchestrator.start(refreshed):
                refreshed = await self._storage.get_video(video.id) or refreshed

        return refreshed, changed

    @timed
    async def sync_all_processing_videos(self) -> SweepReport:
        """Reconcile every video currently in PROCESSING.

        Videos are synced concurrently within a batch and batches are
        spaced out to respect provider rate limits. One video's failure is
        logged and reported without affecting the others.

        Returns:
            Aggregate counts and per-video errors.
        """
        videos = await self._storage.list_videos(
            status=VideoStatus.PROCESSING, limit=self._sweep_limit
        )
        report = SweepReport(total=len(videos), started_at=datetime.now(UTC))
        self._logger.info("Sweep started", extra={"videos": len(videos)})

        for start in range(0, len(videos), self._batch_size):
            batch = videos[start : start + self._batch_size]
            results = await asyncio.gather(*(self._sweep_one(v.id) for v in batch))
            for video_id, changed, error in results:
                if error is not None:
                    report.failed += 1
                    report.errors.append(SweepError(video_id=video_id, error=error))
                    continue
                report.synced += 1
                if changed:
                    report.changed += 1

            if start + self._batch_size < len(videos):
                await asyncio.sleep(self._batch_delay)

        report.finished_at = datetime.now(UTC)
        self._logger.info(
            "Sweep finished",
            extra={
                "total": report.total,
                "synced": report.synced,
                "changed": report.changed,
                "failed": report.failed,
            },
        )
        return report

    async def _sweep_one(self, video_id: str) -> tuple[str, bool, str | None]:
        try:
            _, changed = await self._sync(video_id)
        except Exception as e:
            self._logger.error(
                "Failed to sync video",
                extra={"video_id": video_id, "error": str(e)},
            )
            return video_id, False, str(e)
        return video_id, changed, None

    async def handle_stream_webhook(
        self,
        body: bytes,
        signature: str | None,
    ) -> WebhookOutcome:
        """Process a provider webhook delivery.

        Terminal states (ready, error) are applied straight from the
        payload; anything else triggers a regular provider sync.

        Args:
            body: Raw request body.
            signature: Webhook-Signature header value.

        Returns:
            What the delivery caused.

        Raises:
            WebhookSignatureException: If a secret is configured and the
                signature does not verify.
            ValidationException: If the body is not a valid payload.
        """
        if self._webhook_secret:
            verify_webhook_signature(
                body, signature, self._webhook_secret, self._webhook_tolerance
            )

        try:
            payload = StreamWebhookPayload.model_validate_json(body)
        except ValidationError as e:
            raise ValidationException("body", f"malformed webhook payload: {e}") from e

        if not payload.uid:
            self._logger.info("Webhook without stream id ignored")
            return WebhookOutcome(action="ignored", reason="missing uid")

        video = await self._storage.get_video_by_stream_id(payload.uid)
        if video is None:
            self._logger.info(
                "Webhook for unknown stream ignored", extra={"stream_id": payload.uid}
            )
            return WebhookOutcome(action="ignored", reason="unknown stream")

        state = ProviderState.parse(payload.status.state)
        self._logger.info(
            "Stream webhook received",
            extra={
                "video_id": video.id,
                "stream_id": payload.uid,
                "state": payload.status.state,
                "ready_to_stream": payload.readyToStream,
            },
        )

        if payload.readyToStream or state in {ProviderState.READY, ProviderState.ERROR}:
            video, changed = await self._reconcile(video, _stream_info(payload))
            action = "applied" if changed else "unchanged"
        else:
            video = await self.sync_video_status(video.id)
            action = "synced"

        return WebhookOutcome(action=action, video_id=video.id, status=video.status.value)


def _stream_info(payload: StreamWebhookPayload) -> StreamInfo:
    duration = payload.duration
    return StreamInfo(
        uid=payload.uid or "",
        state=payload.status.state,
        ready_to_stream=payload.readyToStream,
        error_reason_code=payload.status.errorReasonCode,
        error_reason_text=payload.status.errorReasonText,
        duration_seconds=duration if duration is not None and duration >= 0 else None,
        thumbnail_url=payload.thumbnail,
        meta=payload.meta,
    )


class StatusPoller:
    """Polls the provider on a backoff ladder after an upload.

    Compensates for missed or delayed webhooks. Each poll stops the
    ladder early once the video has left PENDING_UPLOAD/PROCESSING.
    """

    def __init__(
        self,
        reconciler: StatusReconciler,
        schedule_seconds: list[float],
    ) -> None:
        self._reconciler = reconciler
        self._schedule = sorted(schedule_seconds)
        self._tasks: set[asyncio.Task[None]] = set()
        self._logger = get_logger(__name__)

    @property
    def active(self) -> int:
        return len(self._tasks)

    def schedule(self, video_id: str) -> asyncio.Task[None]:
        """Start background polling for a video.

        Args:
            video_id: Video UUID.

        Returns:
            The polling task.
        """
        task = asyncio.create_task(self._poll(video_id), name=f"status-poll-{video_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _poll(self, video_id: str) -> None:
        elapsed = 0.0
        for offset in self._schedule:
            await asyncio.sleep(max(0.0, offset - elapsed))
            elapsed = offset
            try:
                video = await self._reconciler.sync_video_status(video_id)
            except VideoNotFoundException:
                self._logger.info("Polled video was deleted", extra={"video_id": video_id})
                return
            except Exception as e:
                self._logger.warning(
                    "Scheduled status poll failed",
                    extra={"video_id": video_id, "after_seconds": offset, "error": str(e)},
                )
                continue
            if not video.is_processing:
                self._logger.debug(
                    "Polling finished",
                    extra={"video_id": video_id, "status": video.status.value},
                )
                return

    async def shutdown(self) -> None:
        """Cancel all pending polls."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
