"""Unit tests for the completion checker."""

import itertools
from unittest.mock import AsyncMock

import pytest

from src.application.services.completion import CompletionChecker
from src.application.services.storage import VideoStorageService
from src.commons.infrastructure.documentdb import InMemoryDocumentDB
from src.commons.settings.models import DocumentDBSettings
from src.domain.models import Chapter, Transcript, Video, VideoStatus, VideoTag


@pytest.fixture
def storage() -> VideoStorageService:
    return VideoStorageService(InMemoryDocumentDB(), DocumentDBSettings())


async def seed(
    storage: VideoStorageService,
    *,
    transcript: bool,
    tags: bool,
    chapters: bool,
    abstract: bool,
    title: bool,
) -> Video:
    video = Video(
        stream_id="s1",
        status=VideoStatus.READY,
        title="A title" if title else None,
        abstract="An abstract." if abstract else None,
    )
    await storage.save_video(video)
    if transcript:
        await storage.save_transcript(Transcript(video_id=video.id, content="hello"))
    if tags:
        await storage.replace_tags(video.id, [VideoTag(video_id=video.id, tag="demo")])
    if chapters:
        await storage.replace_chapters(
            video.id,
            [Chapter(video_id=video.id, title="Intro", start_time=0, end_time=10)],
        )
    return video


class TestIsProcessingComplete:
    """Tests for CompletionChecker.is_processing_complete."""

    @pytest.mark.parametrize(
        ("transcript", "tags", "chapters", "abstract", "title"),
        list(itertools.product([False, True], repeat=5)),
    )
    async def test_complete_only_when_every_artifact_exists(
        self, storage, transcript, tags, chapters, abstract, title
    ):
        video = await seed(
            storage,
            transcript=transcript,
            tags=tags,
            chapters=chapters,
            abstract=abstract,
            title=title,
        )

        result = await CompletionChecker(storage).is_processing_complete(video.id)

        assert result is all([transcript, tags, chapters, abstract, title])

    async def test_empty_strings_do_not_count(self, storage):
        video = await seed(
            storage, transcript=True, tags=True, chapters=True, abstract=True, title=True
        )
        await storage.update_video(video.id, {"abstract": "", "title": ""})

        assert not await CompletionChecker(storage).is_processing_complete(video.id)

    async def test_missing_video(self, storage):
        assert not await CompletionChecker(storage).is_processing_complete("missing")

    async def test_fails_closed_on_storage_error(self, storage):
        video = await seed(
            storage, transcript=True, tags=True, chapters=True, abstract=True, title=True
        )
        storage.count_tags = AsyncMock(side_effect=ConnectionError("db down"))

        assert not await CompletionChecker(storage).is_processing_complete(video.id)


class TestGetProcessingStatus:
    """Tests for CompletionChecker.get_processing_status."""

    async def test_reports_each_artifact(self, storage):
        video = await seed(
            storage, transcript=True, tags=False, chapters=True, abstract=False, title=True
        )

        status = await CompletionChecker(storage).get_processing_status(video.id)

        assert status.as_dict() == {
            "transcript": True,
            "tags": False,
            "chapters": True,
            "abstract": False,
            "title": True,
            "complete": False,
        }

    async def test_never_raises(self, storage):
        storage.get_video = AsyncMock(side_effect=ConnectionError("db down"))

        status = await CompletionChecker(storage).get_processing_status("v1")

        assert not status.complete
        assert status.missing
