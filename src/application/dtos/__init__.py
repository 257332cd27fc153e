"""Data Transfer Objects for application layer."""

from src.application.dtos.processing import (
    PhaseRunInfo,
    ProcessingStatusResponse,
    RetriggerRequest,
    RetriggerResponse,
    StreamWebhookPayload,
    SweepError,
    SweepReport,
    WebhookOutcome,
)
from src.application.dtos.videos import (
    CreateUploadRequest,
    CreateUploadResponse,
    DeleteResponse,
    PaginationInfo,
    VideoListResponse,
    VideoLogsResponse,
    VideoResponse,
)

__all__ = [
    # Processing DTOs
    "RetriggerRequest",
    "RetriggerResponse",
    "SweepReport",
    "SweepError",
    "PhaseRunInfo",
    "ProcessingStatusResponse",
    "StreamWebhookPayload",
    "WebhookOutcome",
    # Video DTOs
    "CreateUploadRequest",
    "CreateUploadResponse",
    "VideoResponse",
    "VideoListResponse",
    "PaginationInfo",
    "DeleteResponse",
    "VideoLogsResponse",
]
