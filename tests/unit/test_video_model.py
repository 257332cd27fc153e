"""Unit tests for the Video model and provider state mapping."""

import pytest

from src.domain.models.video import (
    PipelineState,
    ProviderState,
    Video,
    VideoStatus,
    map_provider_state,
)


class TestVideoStatus:
    """Tests for VideoStatus enum."""

    def test_values(self):
        assert VideoStatus.PENDING_UPLOAD == "pending_upload"
        assert VideoStatus.PROCESSING == "processing"
        assert VideoStatus.READY == "ready"
        assert VideoStatus.ERROR == "error"

    def test_string_conversion(self):
        assert VideoStatus.READY.value == "ready"
        assert f"{VideoStatus.READY.value}" == "ready"


class TestProviderStateMapping:
    """Tests for mapping provider states onto local status."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("pendingupload", VideoStatus.PROCESSING),
            ("downloading", VideoStatus.PROCESSING),
            ("queued", VideoStatus.PROCESSING),
            ("inprogress", VideoStatus.PROCESSING),
            ("ready", VideoStatus.READY),
            ("error", VideoStatus.ERROR),
        ],
    )
    def test_known_states(self, raw, expected):
        assert map_provider_state(raw) == expected

    def test_case_insensitive(self):
        assert map_provider_state("READY") == VideoStatus.READY

    def test_unknown_state_is_processing(self):
        assert map_provider_state("somethingnew") == VideoStatus.PROCESSING

    def test_missing_state_is_processing(self):
        assert map_provider_state(None) == VideoStatus.PROCESSING
        assert map_provider_state("") == VideoStatus.PROCESSING

    def test_parse_unknown_returns_none(self):
        assert ProviderState.parse("bogus") is None
        assert ProviderState.parse("inprogress") == ProviderState.IN_PROGRESS


class TestVideo:
    """Tests for Video model."""

    @pytest.fixture
    def sample_video(self) -> Video:
        return Video(stream_id="stream-abc", title="Sample Video")

    def test_defaults(self, sample_video):
        assert sample_video.status == VideoStatus.PENDING_UPLOAD
        assert sample_video.pipeline_state == PipelineState.NOT_STARTED
        assert sample_video.pipeline_phase is None
        assert sample_video.abstract is None
        assert sample_video.version == 0

    def test_auto_generated_id(self, sample_video):
        assert sample_video.id is not None
        assert len(sample_video.id) == 36  # UUID format

    def test_auto_timestamps(self, sample_video):
        assert sample_video.created_at is not None
        assert sample_video.updated_at is not None

    def test_is_processing(self, sample_video):
        assert sample_video.is_processing
        assert Video(status=VideoStatus.PROCESSING).is_processing
        assert not Video(status=VideoStatus.READY).is_processing

    @pytest.mark.parametrize(
        ("status", "accepted"),
        [
            (VideoStatus.PENDING_UPLOAD, False),
            (VideoStatus.PROCESSING, True),
            (VideoStatus.READY, True),
            (VideoStatus.ERROR, False),
        ],
    )
    def test_accepts_retrigger(self, status, accepted):
        assert Video(status=status).accepts_retrigger is accepted

    def test_roundtrip_through_json_dump(self, sample_video):
        restored = Video(**sample_video.model_dump(mode="json"))
        assert restored == sample_video
