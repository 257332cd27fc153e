"""Unit tests for the video service."""

from unittest.mock import MagicMock

import pytest

from src.application.services.storage import VideoStorageService
from src.application.services.video_logs import VideoLogService
from src.application.services.videos import VideoService
from src.commons.infrastructure.documentdb import InMemoryDocumentDB
from src.commons.settings.models import DocumentDBSettings
from src.domain.exceptions import ProviderException, VideoNotFoundException
from src.domain.models import Transcript, Video, VideoStatus
from src.infrastructure.streaming.base import DirectUpload, StreamingProviderBase


@pytest.fixture
def db() -> InMemoryDocumentDB:
    return InMemoryDocumentDB()


@pytest.fixture
def storage(db) -> VideoStorageService:
    return VideoStorageService(db, DocumentDBSettings())


@pytest.fixture
def video_logs(db) -> VideoLogService:
    return VideoLogService(db, DocumentDBSettings())


@pytest.fixture
def provider() -> MagicMock:
    provider = MagicMock(spec=StreamingProviderBase)
    provider.create_direct_upload.return_value = DirectUpload(
        uid="stream-1", upload_url="https://upload.example/stream-1"
    )
    return provider


@pytest.fixture
def poller() -> MagicMock:
    return MagicMock()


@pytest.fixture
def service(storage, provider, video_logs, poller) -> VideoService:
    return VideoService(storage, provider, video_logs, poller=poller)


class TestCreateUpload:
    """Tests for VideoService.create_upload."""

    async def test_registers_pending_video(self, service, storage, provider, poller):
        response = await service.create_upload(title="Demo", description="desc")

        stored = await storage.get_video(response.video_id)
        assert response.stream_id == "stream-1"
        assert response.upload_url == "https://upload.example/stream-1"
        assert response.status == VideoStatus.PENDING_UPLOAD
        assert stored.stream_id == "stream-1"
        assert stored.title == "Demo"
        provider.create_direct_upload.assert_awaited_once_with(
            meta={"video_id": response.video_id, "name": "Demo"}
        )
        poller.schedule.assert_called_once_with(response.video_id)

    async def test_untitled_upload_meta(self, service, provider):
        response = await service.create_upload()

        provider.create_direct_upload.assert_awaited_once_with(
            meta={"video_id": response.video_id}
        )

    async def test_provider_failure_saves_nothing(self, service, storage, provider):
        provider.create_direct_upload.side_effect = ProviderException(
            "cloudflare_stream", "quota exceeded"
        )

        with pytest.raises(ProviderException):
            await service.create_upload(title="Demo")

        assert await storage.count_videos() == 0


class TestVideoQueries:
    """Tests for reading videos."""

    async def test_get_missing(self, service):
        with pytest.raises(VideoNotFoundException):
            await service.get_video("missing")

    async def test_list_with_status_filter(self, service, storage):
        for status in (VideoStatus.READY, VideoStatus.READY, VideoStatus.ERROR):
            await storage.save_video(Video(stream_id="s", status=status))

        videos, total = await service.list_videos(status=VideoStatus.READY, limit=1)

        assert len(videos) == 1
        assert total == 2

    async def test_logs_require_video(self, service):
        with pytest.raises(VideoNotFoundException):
            await service.get_video_logs("missing")


class TestDeleteVideo:
    """Tests for VideoService.delete_video."""

    async def test_deletes_everything(self, service, storage, provider, video_logs):
        video = Video(stream_id="stream-1", status=VideoStatus.READY)
        await storage.save_video(video)
        await storage.save_transcript(Transcript(video_id=video.id, content="text"))
        await video_logs.record(video.id, "upload_created", "created")

        deleted = await service.delete_video(video.id)

        provider.delete_stream.assert_awaited_once_with("stream-1")
        assert deleted["videos"] == 1
        assert deleted["transcripts"] == 1
        assert deleted["video_logs"] == 1
        assert await storage.get_video(video.id) is None

    async def test_provider_failure_does_not_block_delete(self, service, storage, provider):
        video = Video(stream_id="stream-1")
        await storage.save_video(video)
        provider.delete_stream.side_effect = ProviderException("cloudflare_stream", "down")

        deleted = await service.delete_video(video.id)

        assert deleted["videos"] == 1

    async def test_missing(self, service):
        with pytest.raises(VideoNotFoundException):
            await service.delete_video("missing")
