"""Application layer - use cases and orchestration.

This layer contains:
- Services: status sync, pipeline orchestration and retrigger
- DTOs: Data transfer objects for API boundaries
"""

from src.application.dtos import (
    CreateUploadResponse,
    ProcessingStatusResponse,
    RetriggerRequest,
    RetriggerResponse,
    SweepReport,
    WebhookOutcome,
)
from src.application.services import (
    CompletionChecker,
    PhaseWorker,
    PipelineDispatcher,
    PipelineOrchestrator,
    RetriggerController,
    StatusReconciler,
    VideoService,
    VideoStorageService,
)

__all__ = [
    # DTOs
    "CreateUploadResponse",
    "ProcessingStatusResponse",
    "RetriggerRequest",
    "RetriggerResponse",
    "SweepReport",
    "WebhookOutcome",
    # Services
    "CompletionChecker",
    "PhaseWorker",
    "PipelineDispatcher",
    "PipelineOrchestrator",
    "RetriggerController",
    "StatusReconciler",
    "VideoService",
    "VideoStorageService",
]
