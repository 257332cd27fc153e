"""Video storage service for videos, phase artifacts and phase runs."""

from datetime import UTC, datetime
from typing import Any

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.settings.models import DocumentDBSettings
from src.commons.telemetry import get_logger
from src.domain.models.artifacts import Chapter, Transcript, VideoTag
from src.domain.models.processing import PhaseRun, ProcessingPhase
from src.domain.models.video import Video, VideoStatus


class VideoStorageService:
    """Manages persistence of videos and everything hanging off them.

    Handles:
    - Video CRUD and compare-and-swap updates on ``version``
    - Transcript, chapter and tag artifacts
    - Per-phase execution records
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        doc_settings: DocumentDBSettings,
    ) -> None:
        """Initialize storage service.

        Args:
            document_db: Document database provider.
            doc_settings: Document database configuration.
        """
        self._doc_db = document_db
        self._logger = get_logger(__name__)

        collections = doc_settings.collections
        self._videos_collection = collections.videos
        self._transcripts_collection = collections.transcripts
        self._chapters_collection = collections.chapters
        self._tags_collection = collections.video_tags
        self._phase_runs_collection = collections.phase_runs

    async def ensure_indexes(self) -> None:
        """Create the indexes point lookups rely on."""
        await self._doc_db.create_index(
            self._videos_collection, [("stream_id", 1)], name="stream_id"
        )
        await self._doc_db.create_index(
            self._videos_collection, [("status", 1), ("created_at", -1)], name="status"
        )
        for collection in (
            self._transcripts_collection,
            self._chapters_collection,
            self._tags_collection,
            self._phase_runs_collection,
        ):
            await self._doc_db.create_index(collection, [("video_id", 1)], name="video_id")

    # =========================================================================
    # Video operations
    # =========================================================================

    async def save_video(self, video: Video) -> str:
        """Insert a new video.

        Args:
            video: Video to save.

        Returns:
            Document ID.
        """
        doc_id = await self._doc_db.insert(
            self._videos_collection,
            video.model_dump(mode="json"),
        )
        self._logger.info(
            "Video saved",
            extra={"video_id": video.id, "stream_id": video.stream_id},
        )
        return doc_id

    async def get_video(self, video_id: str) -> Video | None:
        """Get a video by ID.

        Args:
            video_id: Video UUID.

        Returns:
            Video if found, None otherwise.
        """
        doc = await self._doc_db.find_by_id(self._videos_collection, video_id)
        if doc is None:
            return None
        return Video(**doc)

    async def get_video_by_stream_id(self, stream_id: str) -> Video | None:
        """Find a video by its streaming provider identifier."""
        doc = await self._doc_db.find_one(
            self._videos_collection, {"stream_id": stream_id}
        )
        if doc is None:
            return None
        return Video(**doc)

    async def list_videos(
        self,
        status: VideoStatus | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> list[Video]:
        """List videos, newest first.

        Args:
            status: Optional status filter.
            skip: Number of videos to skip.
            limit: Maximum number of videos to return.

        Returns:
            List of videos.
        """
        filters: dict[str, Any] = {}
        if status is not None:
            filters["status"] = status.value
        docs = await self._doc_db.find(
            self._videos_collection,
            filters,
            skip=skip,
            limit=limit,
            sort=[("created_at", -1)],
        )
        return [Video(**doc) for doc in docs]

    async def count_videos(self, status: VideoStatus | None = None) -> int:
        filters = {"status": status.value} if status is not None else None
        return await self._doc_db.count(self._videos_collection, filters)

    async def update_video(
        self,
        video_id: str,
        updates: dict[str, Any],
        *,
        expected_version: int | None = None,
        expected: dict[str, Any] | None = None,
    ) -> bool:
        """Update a video, optionally as a compare-and-swap.

        Every successful write bumps ``version`` and ``updated_at``.

        Args:
            video_id: Video UUID.
            updates: Fields to set. Enum values are stored by value.
            expected_version: Only apply if the stored version matches.
            expected: Only apply if these stored fields match.

        Returns:
            True if the write applied, False if the video is missing or
            the expectation no longer holds.
        """
        filters: dict[str, Any] = {"id": video_id}
        if expected_version is not None:
            filters["version"] = expected_version
        for field, value in (expected or {}).items():
            filters[field] = _plain(value)

        applied = await self._doc_db.update_where(
            self._videos_collection,
            filters,
            {
                **{k: _plain(v) for k, v in updates.items()},
                "updated_at": datetime.now(UTC).isoformat(),
            },
            increments={"version": 1},
        )
        if not applied:
            self._logger.debug(
                "Conditional video update did not apply",
                extra={"video_id": video_id, "filters": filters},
            )
        return applied

    async def delete_video(self, video_id: str) -> dict[str, int]:
        """Delete a video and every artifact that references it.

        Args:
            video_id: Video UUID.

        Returns:
            Count of deleted documents per collection.
        """
        deleted = {
            "transcripts": await self.delete_transcript(video_id),
            "chapters": await self.delete_chapters(video_id),
            "video_tags": await self.delete_tags(video_id),
            "phase_runs": await self._doc_db.delete_many(
                self._phase_runs_collection, {"video_id": video_id}
            ),
            "videos": int(await self._doc_db.delete(self._videos_collection, video_id)),
        }
        self._logger.info(
            "Video deleted", extra={"video_id": video_id, "deleted": deleted}
        )
        return deleted

    # =========================================================================
    # Transcript operations
    # =========================================================================

    async def save_transcript(self, transcript: Transcript) -> None:
        """Store the transcript of a video, replacing any previous one."""
        await self._doc_db.delete_many(
            self._transcripts_collection, {"video_id": transcript.video_id}
        )
        await self._doc_db.insert(
            self._transcripts_collection, transcript.model_dump(mode="json")
        )

    async def get_transcript(self, video_id: str) -> Transcript | None:
        doc = await self._doc_db.find_one(
            self._transcripts_collection, {"video_id": video_id}
        )
        return Transcript(**doc) if doc else None

    async def has_transcript(self, video_id: str) -> bool:
        count = await self._doc_db.count(
            self._transcripts_collection, {"video_id": video_id}
        )
        return count > 0

    async def delete_transcript(self, video_id: str) -> int:
        return await self._doc_db.delete_many(
            self._transcripts_collection, {"video_id": video_id}
        )

    # =========================================================================
    # Chapter operations
    # =========================================================================

    async def replace_chapters(self, video_id: str, chapters: list[Chapter]) -> int:
        """Replace all chapters of a video.

        Args:
            video_id: Video UUID.
            chapters: New chapters.

        Returns:
            Number of chapters stored.
        """
        await self.delete_chapters(video_id)
        if not chapters:
            return 0
        ids = await self._doc_db.insert_many(
            self._chapters_collection,
            [chapter.model_dump(mode="json") for chapter in chapters],
        )
        return len(ids)

    async def list_chapters(self, video_id: str) -> list[Chapter]:
        docs = await self._doc_db.find(
            self._chapters_collection,
            {"video_id": video_id},
            limit=1000,
            sort=[("start_time", 1)],
        )
        return [Chapter(**doc) for doc in docs]

    async def count_chapters(self, video_id: str) -> int:
        return await self._doc_db.count(self._chapters_collection, {"video_id": video_id})

    async def delete_chapters(self, video_id: str) -> int:
        return await self._doc_db.delete_many(
            self._chapters_collection, {"video_id": video_id}
        )

    # =========================================================================
    # Tag operations
    # =========================================================================

    async def replace_tags(self, video_id: str, tags: list[VideoTag]) -> int:
        """Replace all tags of a video.

        Args:
            video_id: Video UUID.
            tags: New tags.

        Returns:
            Number of tags stored.
        """
        await self.delete_tags(video_id)
        if not tags:
            return 0
        ids = await self._doc_db.insert_many(
            self._tags_collection,
            [tag.model_dump(mode="json") for tag in tags],
        )
        return len(ids)

    async def list_tags(self, video_id: str) -> list[VideoTag]:
        docs = await self._doc_db.find(
            self._tags_collection, {"video_id": video_id}, limit=1000
        )
        return [VideoTag(**doc) for doc in docs]

    async def count_tags(self, video_id: str) -> int:
        return await self._doc_db.count(self._tags_collection, {"video_id": video_id})

    async def delete_tags(self, video_id: str) -> int:
        return await self._doc_db.delete_many(
            self._tags_collection, {"video_id": video_id}
        )

    # =========================================================================
    # Phase run operations
    # =========================================================================

    async def save_phase_run(self, run: PhaseRun) -> None:
        """Insert or replace the execution record of one phase."""
        await self._doc_db.upsert(
            self._phase_runs_collection, run.id, run.model_dump(mode="json")
        )

    async def get_phase_run(
        self, video_id: str, phase: ProcessingPhase
    ) -> PhaseRun | None:
        doc = await self._doc_db.find_by_id(
            self._phase_runs_collection, PhaseRun.key(video_id, phase)
        )
        return PhaseRun(**doc) if doc else None

    async def list_phase_runs(self, video_id: str) -> list[PhaseRun]:
        docs = await self._doc_db.find(
            self._phase_runs_collection, {"video_id": video_id}, limit=100
        )
        return [PhaseRun(**doc) for doc in docs]


def _plain(value: Any) -> Any:
    """Store enums by value, matching model_dump(mode='json')."""
    return getattr(value, "value", value)
