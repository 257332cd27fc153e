"""Per-video processing and audit log."""

from typing import Any

from src.commons.infrastructure.documentdb.base import DocumentDBBase
from src.commons.settings.models import DocumentDBSettings
from src.commons.telemetry import get_logger
from src.domain.models.video_log import LogLevel, VideoLogEntry


class VideoLogService:
    """Records processing events against a video.

    Entries complement the application log: they are queryable per video
    and survive log rotation. Recording is best-effort and never raises.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        doc_settings: DocumentDBSettings,
    ) -> None:
        self._doc_db = document_db
        self._collection = doc_settings.collections.video_logs
        self._logger = get_logger(__name__)

    async def record(
        self,
        video_id: str,
        event_type: str,
        message: str,
        *,
        level: LogLevel = LogLevel.INFO,
        details: dict[str, Any] | None = None,
        duration_ms: int | None = None,
    ) -> VideoLogEntry | None:
        """Append a log entry for a video.

        Args:
            video_id: Video UUID.
            event_type: Machine-readable event kind.
            message: Human-readable description.
            level: Severity.
            details: Structured event data.
            duration_ms: Optional duration of the logged operation.

        Returns:
            The stored entry, or None if it could not be written.
        """
        entry = VideoLogEntry(
            video_id=video_id,
            level=level,
            event_type=event_type,
            message=message,
            details=details or {},
            duration_ms=duration_ms,
        )
        try:
            await self._doc_db.insert(self._collection, entry.model_dump(mode="json"))
        except Exception as e:
            self._logger.warning(
                "Failed to record video log entry",
                extra={"video_id": video_id, "event_type": event_type, "error": str(e)},
            )
            return None
        return entry

    async def list_entries(self, video_id: str, limit: int = 100) -> list[VideoLogEntry]:
        """Most recent entries for a video, newest first."""
        docs = await self._doc_db.find(
            self._collection,
            {"video_id": video_id},
            limit=limit,
            sort=[("created_at", -1)],
        )
        return [VideoLogEntry(**doc) for doc in docs]

    async def delete_entries(self, video_id: str) -> int:
        return await self._doc_db.delete_many(self._collection, {"video_id": video_id})
