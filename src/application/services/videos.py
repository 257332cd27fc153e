"""Video upload and management."""

from src.application.dtos.videos import CreateUploadResponse
from src.application.services.status_sync import StatusPoller
from src.application.services.storage import VideoStorageService
from src.application.services.video_logs import VideoLogService
from src.commons.telemetry import get_logger
from src.domain.exceptions import VideoNotFoundException
from src.domain.models.video import Video, VideoStatus
from src.domain.models.video_log import VideoLogEntry
from src.infrastructure.streaming.base import StreamingProviderBase


class VideoService:
    """Creates upload slots and manages stored videos."""

    def __init__(
        self,
        storage: VideoStorageService,
        provider: StreamingProviderBase,
        video_logs: VideoLogService,
        poller: StatusPoller | None = None,
    ) -> None:
        self._storage = storage
        self._provider = provider
        self._video_logs = video_logs
        self._poller = poller
        self._logger = get_logger(__name__)

    async def create_upload(
        self,
        title: str | None = None,
        description: str = "",
    ) -> CreateUploadResponse:
        """Reserve a stream and register a pending video.

        The provider's stream metadata carries the local video id, so a
        webhook can be traced back even before the stream id is stored.

        Args:
            title: Optional title.
            description: Free-form description.

        Returns:
            Video id, stream id and one-time upload URL.
        """
        video = Video(title=title, description=description)
        meta = {"video_id": video.id}
        if title:
            meta["name"] = title

        upload = await self._provider.create_direct_upload(meta=meta)
        video = video.model_copy(update={"stream_id": upload.uid})
        await self._storage.save_video(video)

        self._logger.info(
            "Upload created",
            extra={"video_id": video.id, "stream_id": upload.uid},
        )
        await self._video_logs.record(
            video.id,
            "upload_created",
            "Direct upload URL issued",
            details={"stream_id": upload.uid},
        )

        if self._poller is not None:
            self._poller.schedule(video.id)

        return CreateUploadResponse(
            video_id=video.id,
            stream_id=upload.uid,
            upload_url=upload.upload_url,
            status=video.status,
        )

    async def get_video(self, video_id: str) -> Video:
        video = await self._storage.get_video(video_id)
        if video is None:
            raise VideoNotFoundException(video_id)
        return video

    async def list_videos(
        self,
        status: VideoStatus | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Video], int]:
        """List videos newest first.

        Returns:
            The requested page and the total number of matching videos.
        """
        videos = await self._storage.list_videos(status=status, skip=skip, limit=limit)
        total = await self._storage.count_videos(status=status)
        return videos, total

    async def delete_video(self, video_id: str) -> dict[str, int]:
        """Delete a video, its artifacts, its log and its provider stream.

        A provider failure is logged and does not block the local delete.

        Returns:
            Count of deleted documents per collection.

        Raises:
            VideoNotFoundException: If the video doesn't exist.
        """
        video = await self.get_video(video_id)

        if video.stream_id:
            try:
                await self._provider.delete_stream(video.stream_id)
            except Exception as e:
                self._logger.warning(
                    "Failed to delete provider stream",
                    extra={
                        "video_id": video_id,
                        "stream_id": video.stream_id,
                        "error": str(e),
                    },
                )

        deleted = await self._storage.delete_video(video_id)
        deleted["video_logs"] = await self._video_logs.delete_entries(video_id)
        return deleted

    async def get_video_logs(self, video_id: str, limit: int = 100) -> list[VideoLogEntry]:
        await self.get_video(video_id)
        return await self._video_logs.list_entries(video_id, limit=limit)
