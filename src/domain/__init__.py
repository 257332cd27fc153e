"""Domain layer - business models and logic."""

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
from src.domain.models import (
    Chapter,
    PipelineState,
    ProcessingJob,
    ProcessingPhase,
    ProcessingStatus,
    RetriggerTarget,
    Transcript,
    Video,
    VideoStatus,
    VideoTag,
)

__all__ = [
    # Exceptions
    "DomainException",
    "ValidationException",
    "InvalidPhaseException",
    "VideoNotFoundException",
    "InvalidVideoStateException",
    "ProviderException",
    "WebhookSignatureException",
    "PhaseExecutionException",
    # Models
    "Video",
    "VideoStatus",
    "PipelineState",
    "ProcessingPhase",
    "RetriggerTarget",
    "ProcessingJob",
    "ProcessingStatus",
    "Transcript",
    "Chapter",
    "VideoTag",
]
