"""Derived completeness of a video's processing pipeline."""

import asyncio

from src.application.services.storage import VideoStorageService
from src.commons.telemetry import get_logger
from src.domain.models.processing import ProcessingStatus


class CompletionChecker:
    """Answers whether every pipeline artifact of a video exists.

    Completeness is recomputed from storage on each call: a transcript,
    at least one tag, at least one chapter, and a non-empty abstract and
    title on the video. Nothing here is cached or stored.
    """

    def __init__(self, storage: VideoStorageService) -> None:
        self._storage = storage
        self._logger = get_logger(__name__)

    async def _collect(self, video_id: str) -> ProcessingStatus:
        video = await self._storage.get_video(video_id)
        if video is None:
            return ProcessingStatus()

        has_transcript, tag_count, chapter_count = await asyncio.gather(
            self._storage.has_transcript(video_id),
            self._storage.count_tags(video_id),
            self._storage.count_chapters(video_id),
        )
        return ProcessingStatus(
            transcript=has_transcript,
            tags=tag_count > 0,
            chapters=chapter_count > 0,
            abstract=bool(video.abstract),
            title=bool(video.title),
        )

    async def is_processing_complete(self, video_id: str) -> bool:
        """Check whether all artifacts exist.

        Fails closed: a missing video or a storage error yields False.

        Args:
            video_id: Video UUID.

        Returns:
            True only if every artifact is present.
        """
        try:
            status = await self._collect(video_id)
        except Exception as e:
            self._logger.error(
                "Completion check failed",
                extra={"video_id": video_id, "error": str(e)},
            )
            return False
        return status.complete

    async def get_processing_status(self, video_id: str) -> ProcessingStatus:
        """Per-artifact presence for display.

        Never raises; on a storage error every flag is False.

        Args:
            video_id: Video UUID.

        Returns:
            Processing status with one flag per artifact.
        """
        try:
            return await self._collect(video_id)
        except Exception as e:
            self._logger.error(
                "Processing status lookup failed",
                extra={"video_id": video_id, "error": str(e)},
            )
            return ProcessingStatus()
