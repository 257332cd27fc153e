"""Unit tests for domain exceptions."""

from src.domain.exceptions import (
    DomainException,
    InvalidPhaseException,
    InvalidVideoStateException,
    PhaseExecutionException,
    ProviderException,
    ValidationException,
    VideoNotFoundException,
    WebhookSignatureException,
)
from src.domain.models.video import VideoStatus


class TestDomainException:
    """Tests for base DomainException."""

    def test_is_exception(self):
        exc = DomainException("Test error")
        assert isinstance(exc, Exception)

    def test_message(self):
        exc = DomainException("Custom message")
        assert str(exc) == "Custom message"


class TestValidationException:
    """Tests for ValidationException and InvalidPhaseException."""

    def test_attributes(self):
        exc = ValidationException("body", "malformed")
        assert exc.field == "body"
        assert exc.reason == "malformed"
        assert isinstance(exc, DomainException)

    def test_unknown_phase(self):
        exc = InvalidPhaseException("subtitles", ["transcription", "all"])
        assert isinstance(exc, ValidationException)
        assert exc.field == "phase"
        assert exc.phase == "subtitles"
        assert "unknown phase 'subtitles'" in str(exc)
        assert "transcription, all" in str(exc)

    def test_missing_phase(self):
        exc = InvalidPhaseException(None, ["all"])
        assert "phase is required" in str(exc)


class TestVideoNotFoundException:
    """Tests for VideoNotFoundException."""

    def test_attributes(self):
        exc = VideoNotFoundException("video-123")
        assert exc.video_id == "video-123"
        assert "video-123" in str(exc)
        assert isinstance(exc, DomainException)


class TestInvalidVideoStateException:
    """Tests for InvalidVideoStateException."""

    def test_attributes(self):
        exc = InvalidVideoStateException(
            "video-456",
            VideoStatus.PENDING_UPLOAD,
            "retrigger",
            allowed=[VideoStatus.READY],
        )
        assert exc.video_id == "video-456"
        assert exc.status == VideoStatus.PENDING_UPLOAD
        assert exc.allowed == [VideoStatus.READY]
        assert str(exc) == "Cannot retrigger video video-456 in status 'pending_upload'"

    def test_allowed_defaults_to_empty(self):
        exc = InvalidVideoStateException("v", VideoStatus.ERROR, "sync")
        assert exc.allowed == []


class TestProviderException:
    """Tests for ProviderException."""

    def test_attributes(self):
        exc = ProviderException("cloudflare_stream", "HTTP 502", status_code=502)
        assert exc.provider == "cloudflare_stream"
        assert exc.status_code == 502
        assert exc.details == {}
        assert "HTTP 502" in str(exc)


class TestWebhookSignatureException:
    """Tests for WebhookSignatureException."""

    def test_attributes(self):
        exc = WebhookSignatureException("signature mismatch")
        assert exc.reason == "signature mismatch"
        assert "signature mismatch" in str(exc)


class TestPhaseExecutionException:
    """Tests for PhaseExecutionException."""

    def test_attributes(self):
        exc = PhaseExecutionException("video-1", "tagging", "no transcript available")
        assert exc.video_id == "video-1"
        assert exc.phase == "tagging"
        assert "no transcript available" in str(exc)
