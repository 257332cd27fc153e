"""Unit tests for Application DTOs."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from src.application.dtos.processing import (
    RetriggerRequest,
    StreamWebhookPayload,
    SweepReport,
    WebhookOutcome,
)
from src.application.dtos.videos import (
    CreateUploadRequest,
    PaginationInfo,
    VideoResponse,
)
from src.domain.models import Video, VideoStatus


class TestRetriggerRequest:
    """Tests for RetriggerRequest DTO."""

    def test_defaults(self):
        request = RetriggerRequest()

        assert request.phase is None
        assert request.force is False

    def test_unknown_phase_is_not_rejected_here(self):
        """Phase names are validated by the controller, not the schema."""
        assert RetriggerRequest(phase="subtitles").phase == "subtitles"


class TestStreamWebhookPayload:
    """Tests for StreamWebhookPayload DTO."""

    def test_parses_provider_body(self):
        payload = StreamWebhookPayload.model_validate_json(
            '{"uid": "abc", "readyToStream": true, "status": {"state": "ready", '
            '"pctComplete": "100.000000"}, "meta": {"video_id": "v1"}, '
            '"duration": 12.5, "created": "2024-01-01T00:00:00Z"}'
        )

        assert payload.uid == "abc"
        assert payload.readyToStream is True
        assert payload.status.state == "ready"
        assert payload.meta == {"video_id": "v1"}
        assert payload.duration == 12.5

    def test_minimal_body(self):
        payload = StreamWebhookPayload.model_validate_json("{}")

        assert payload.uid is None
        assert payload.readyToStream is False
        assert payload.status.state is None

    def test_invalid_json(self):
        with pytest.raises(ValidationError):
            StreamWebhookPayload.model_validate_json("not json")


class TestWebhookOutcome:
    """Tests for WebhookOutcome DTO."""

    def test_received_defaults_true(self):
        outcome = WebhookOutcome(action="ignored", reason="unknown stream")

        assert outcome.received is True
        assert outcome.video_id is None


class TestSweepReport:
    """Tests for SweepReport DTO."""

    def test_counts_default_to_zero(self):
        report = SweepReport(started_at=datetime.now(UTC))

        assert (report.total, report.synced, report.changed, report.failed) == (0, 0, 0, 0)
        assert report.errors == []

    def test_negative_counts_rejected(self):
        with pytest.raises(ValidationError):
            SweepReport(total=-1, started_at=datetime.now(UTC))


class TestVideoDTOs:
    """Tests for video DTOs."""

    def test_title_length_limit(self):
        with pytest.raises(ValidationError):
            CreateUploadRequest(title="x" * 301)

    def test_video_response_hides_version(self):
        video = Video(stream_id="s1", status=VideoStatus.READY, version=7)

        response = VideoResponse.from_video(video)

        assert response.id == video.id
        assert "version" not in response.model_dump()

    def test_page_size_bounds(self):
        with pytest.raises(ValidationError):
            PaginationInfo(page=1, page_size=101, total_items=0, total_pages=0)
