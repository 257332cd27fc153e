"""Unit tests for API routes."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from src.api.main import create_app
from src.application.dtos.processing import (
    RetriggerResponse,
    SweepError,
    SweepReport,
    WebhookOutcome,
)
from src.application.dtos.videos import CreateUploadResponse
from src.commons.infrastructure.health import HealthStatus
from src.domain.exceptions import (
    InvalidPhaseException,
    InvalidVideoStateException,
    ProviderException,
    VideoNotFoundException,
    WebhookSignatureException,
)
from src.domain.models import (
    PhaseRun,
    PhaseRunState,
    ProcessingPhase,
    ProcessingStatus,
    RetriggerTarget,
    Video,
    VideoStatus,
)


@pytest.fixture
def mock_settings():
    """Create mock settings for the app."""
    settings = MagicMock()
    settings.app.name = "test-app"
    settings.app.version = "0.1.0"
    settings.app.environment = "test"
    settings.server.cors_origins = ["*"]
    settings.server.api_prefix = "/v1"
    settings.server.docs_enabled = True
    return settings


@pytest.fixture
def mock_factory():
    """Create mock infrastructure factory."""
    factory = MagicMock()
    document_db = MagicMock()
    document_db.health_check = AsyncMock(
        return_value=HealthStatus(healthy=True, latency_ms=1.0, message="ok")
    )
    provider = MagicMock()
    provider.health_check = AsyncMock(
        return_value=HealthStatus(healthy=True, latency_ms=2.0, message="ok")
    )
    factory.get_document_db.return_value = document_db
    factory.get_streaming_provider.return_value = provider
    factory.get_work_queue.return_value = MagicMock()
    return factory


@pytest.fixture
def mock_video_service():
    return AsyncMock()


@pytest.fixture
def mock_reconciler():
    return AsyncMock()


@pytest.fixture
def mock_retrigger_controller():
    return AsyncMock()


@pytest.fixture
def mock_storage():
    return AsyncMock()


@pytest.fixture
def mock_completion():
    return AsyncMock()


@pytest.fixture
def client(
    mock_settings,
    mock_factory,
    mock_video_service,
    mock_reconciler,
    mock_retrigger_controller,
    mock_storage,
    mock_completion,
):
    """Create test client with mocked dependencies."""
    from src.api.dependencies import (
        get_completion_checker,
        get_infrastructure_factory,
        get_retrigger_controller,
        get_settings,
        get_status_reconciler,
        get_storage_service,
        get_video_service,
    )

    with (
        patch("src.api.main.get_settings", return_value=mock_settings),
        patch("src.api.dependencies.init_services", new_callable=AsyncMock),
        patch("src.api.dependencies.shutdown_services", new_callable=AsyncMock),
    ):
        app = create_app()
        app.dependency_overrides[get_settings] = lambda: mock_settings
        app.dependency_overrides[get_infrastructure_factory] = lambda: mock_factory
        app.dependency_overrides[get_video_service] = lambda: mock_video_service
        app.dependency_overrides[get_status_reconciler] = lambda: mock_reconciler
        app.dependency_overrides[get_retrigger_controller] = (
            lambda: mock_retrigger_controller
        )
        app.dependency_overrides[get_storage_service] = lambda: mock_storage
        app.dependency_overrides[get_completion_checker] = lambda: mock_completion
        yield TestClient(app, raise_server_exceptions=False)


def make_video(**kwargs) -> Video:
    return Video(id=kwargs.pop("id", "video-1"), stream_id="stream-1", **kwargs)


class TestHealthRoutes:
    """Tests for health check endpoints."""

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert {c["name"] for c in data["components"]} == {
            "document_db",
            "streaming_provider",
        }

    def test_provider_outage_degrades(self, client, mock_factory):
        provider = mock_factory.get_streaming_provider.return_value
        provider.health_check.return_value = HealthStatus(
            healthy=False, latency_ms=5.0, message="down"
        )

        response = client.get("/health")

        assert response.json()["status"] == "degraded"

    def test_document_db_outage_is_unhealthy(self, client, mock_factory):
        mock_factory.get_document_db.return_value.health_check.side_effect = (
            ConnectionError("refused")
        )

        response = client.get("/health")

        assert response.json()["status"] == "unhealthy"

    def test_liveness_check(self, client):
        response = client.get("/health/live")

        assert response.status_code == status.HTTP_200_OK

    def test_readiness_check(self, client):
        response = client.get("/health/ready")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "ready": True,
            "checks": {"document_db": True, "work_queue": True},
        }


class TestVideoRoutes:
    """Tests for video endpoints."""

    def test_create_upload(self, client, mock_video_service):
        mock_video_service.create_upload.return_value = CreateUploadResponse(
            video_id="video-1",
            stream_id="stream-1",
            upload_url="https://upload.example/stream-1",
            status=VideoStatus.PENDING_UPLOAD,
        )

        response = client.post("/v1/videos/upload", json={"title": "Demo"})

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["upload_url"] == "https://upload.example/stream-1"
        mock_video_service.create_upload.assert_awaited_once_with(
            title="Demo", description=""
        )

    def test_provider_failure_maps_to_500(self, client, mock_video_service):
        mock_video_service.create_upload.side_effect = ProviderException(
            "cloudflare_stream", "quota exceeded"
        )

        response = client.post("/v1/videos/upload", json={})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["error"]["code"] == "PROVIDER_ERROR"

    def test_list_videos_paginates(self, client, mock_video_service):
        mock_video_service.list_videos.return_value = (
            [make_video(status=VideoStatus.READY)],
            41,
        )

        response = client.get("/v1/videos", params={"status": "ready", "page": 3})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["pagination"] == {
            "page": 3,
            "page_size": 20,
            "total_items": 41,
            "total_pages": 3,
        }
        assert "version" not in data["videos"][0]
        mock_video_service.list_videos.assert_awaited_once_with(
            status=VideoStatus.READY, skip=40, limit=20
        )

    def test_list_videos_rejects_unknown_status(self, client):
        response = client.get("/v1/videos", params={"status": "archived"})

        assert response.status_code == 422

    def test_get_video(self, client, mock_video_service):
        mock_video_service.get_video.return_value = make_video(title="Demo")

        response = client.get("/v1/videos/video-1")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["title"] == "Demo"

    def test_get_video_not_found(self, client, mock_video_service):
        mock_video_service.get_video.side_effect = VideoNotFoundException("nope")

        response = client.get("/v1/videos/nope")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        error = response.json()["error"]
        assert error["code"] == "VIDEO_NOT_FOUND"
        assert "request_id" in error

    def test_delete_requires_confirmation(self, client, mock_video_service):
        response = client.delete("/v1/videos/video-1")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "CONFIRMATION_REQUIRED"
        mock_video_service.delete_video.assert_not_called()

    def test_delete_video(self, client, mock_video_service):
        mock_video_service.delete_video.return_value = {"videos": 1}

        response = client.delete(
            "/v1/videos/video-1", headers={"X-Confirm-Delete": "true"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["success"] is True

    def test_processing_status(self, client, mock_storage, mock_completion):
        mock_storage.get_video.return_value = make_video(status=VideoStatus.READY)
        mock_storage.list_phase_runs.return_value = [
            PhaseRun(
                id=PhaseRun.key("video-1", ProcessingPhase.TRANSCRIPTION),
                video_id="video-1",
                phase=ProcessingPhase.TRANSCRIPTION,
                state=PhaseRunState.DONE,
                attempts=1,
            )
        ]
        mock_completion.get_processing_status.return_value = ProcessingStatus(
            transcript=True
        )

        response = client.get("/v1/videos/video-1/processing-status")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["transcript"] is True
        assert data["tags"] is False
        assert data["complete"] is False
        assert data["phases"][0]["phase"] == "transcription"
        assert data["phases"][0]["state"] == "done"

    def test_processing_status_not_found(self, client, mock_storage):
        mock_storage.get_video.return_value = None

        response = client.get("/v1/videos/nope/processing-status")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_sync_video(self, client, mock_reconciler):
        mock_reconciler.sync_video_status.return_value = make_video(
            status=VideoStatus.READY
        )

        response = client.post("/v1/videos/video-1/sync")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "ready"


class TestProcessRoute:
    """Tests for the retrigger endpoint."""

    def test_retrigger_accepted(self, client, mock_retrigger_controller):
        mock_retrigger_controller.retrigger.return_value = RetriggerResponse(
            message="Processing retriggered for phase 'all'",
            video_id="video-1",
            phase="all",
            force=True,
            timestamp=datetime.now(UTC),
        )

        response = client.post(
            "/v1/videos/video-1/process", json={"phase": "all", "force": True}
        )

        assert response.status_code == status.HTTP_202_ACCEPTED
        assert response.json()["message"] == "Processing retriggered for phase 'all'"
        mock_retrigger_controller.retrigger.assert_awaited_once_with(
            "video-1", "all", force=True
        )

    def test_invalid_phase(self, client, mock_retrigger_controller):
        mock_retrigger_controller.retrigger.side_effect = InvalidPhaseException(
            "subtitles", RetriggerTarget.values()
        )

        response = client.post("/v1/videos/video-1/process", json={"phase": "subtitles"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"]["allowed"] == RetriggerTarget.values()

    def test_invalid_state(self, client, mock_retrigger_controller):
        mock_retrigger_controller.retrigger.side_effect = InvalidVideoStateException(
            "video-1", VideoStatus.PENDING_UPLOAD, "retrigger"
        )

        response = client.post("/v1/videos/video-1/process", json={"phase": "tagging"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"]["code"] == "INVALID_STATE"


class TestSyncAndWebhookRoutes:
    """Tests for the sweep and webhook endpoints."""

    def test_sync_all(self, client, mock_reconciler):
        mock_reconciler.sync_all_processing_videos.return_value = SweepReport(
            total=2,
            synced=1,
            failed=1,
            errors=[SweepError(video_id="v2", error="timeout")],
            started_at=datetime.now(UTC),
        )

        response = client.post("/v1/sync")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["failed"] == 1

    def test_webhook_passes_raw_body_and_signature(self, client, mock_reconciler):
        mock_reconciler.handle_stream_webhook.return_value = WebhookOutcome(
            action="applied", video_id="video-1", status="ready"
        )
        body = b'{"uid": "stream-1", "readyToStream": true}'

        response = client.post(
            "/v1/stream/webhook",
            content=body,
            headers={"Webhook-Signature": "time=1,sig1=ab"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["action"] == "applied"
        mock_reconciler.handle_stream_webhook.assert_awaited_once_with(
            body, "time=1,sig1=ab"
        )

    def test_webhook_bad_signature(self, client, mock_reconciler):
        mock_reconciler.handle_stream_webhook.side_effect = WebhookSignatureException(
            "signature mismatch"
        )

        response = client.post("/v1/stream/webhook", content=b"{}")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"]["code"] == "INVALID_SIGNATURE"


class TestRequestId:
    """Tests for request id propagation."""

    def test_request_id_echoed(self, client):
        response = client.get("/health/live", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, client):
        response = client.get("/health/live")

        assert response.headers["X-Request-ID"]
