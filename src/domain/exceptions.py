"""Domain exceptions for the video pipeline service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.domain.models.video import VideoStatus


class DomainException(Exception):
    """Base exception for domain errors."""


class ValidationException(DomainException):
    """Raised when caller input is malformed."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid value for '{field}': {reason}")


class InvalidPhaseException(ValidationException):
    """Raised when a retrigger phase is missing or unknown."""

    def __init__(self, phase: str | None, allowed: list[str]) -> None:
        self.phase = phase
        self.allowed = allowed
        if phase is None:
            reason = "phase is required"
        else:
            reason = f"unknown phase '{phase}'"
        super().__init__("phase", f"{reason}, expected one of: {', '.join(allowed)}")


class VideoNotFoundException(DomainException):
    """Raised when a requested video is not found."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Video not found: {video_id}")


class InvalidVideoStateException(DomainException):
    """Raised when a video's status does not allow the requested operation."""

    def __init__(
        self,
        video_id: str,
        status: VideoStatus,
        operation: str,
        allowed: list[VideoStatus] | None = None,
    ) -> None:
        self.video_id = video_id
        self.status = status
        self.operation = operation
        self.allowed = allowed or []
        super().__init__(
            f"Cannot {operation} video {video_id} in status '{status.value}'"
        )


class ProviderException(DomainException):
    """Raised when an external provider call fails or returns an unexpected shape."""

    def __init__(
        self,
        provider: str,
        reason: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.provider = provider
        self.reason = reason
        self.status_code = status_code
        self.details = details or {}
        super().__init__(f"{provider} request failed: {reason}")


class WebhookSignatureException(DomainException):
    """Raised when a webhook signature is missing, malformed, stale or invalid."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Webhook signature rejected: {reason}")


class PhaseExecutionException(DomainException):
    """Raised when a processing phase cannot produce its artifact."""

    def __init__(self, video_id: str, phase: str, reason: str) -> None:
        self.video_id = video_id
        self.phase = phase
        self.reason = reason
        super().__init__(f"Phase {phase} failed for video {video_id}: {reason}")
