"""DTOs for status sync, retrigger and pipeline inspection."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.domain.models.processing import PhaseRunState


class RetriggerRequest(BaseModel):
    """Request to re-run one phase or the whole pipeline.

    ``phase`` is validated by the retrigger controller rather than by an
    enum here, so an unknown value surfaces as a VALIDATION_ERROR.
    """

    phase: str | None = Field(
        default=None,
        description=(
            "Phase to re-run: transcription, tagging, abstract, "
            "title_generation, chapters, thumbnail or all"
        ),
    )
    force: bool = Field(
        default=False,
        description="Delete the phase's existing artifacts before re-running",
    )


class RetriggerResponse(BaseModel):
    """Confirmation that a retrigger job was enqueued."""

    message: str = Field(description="Human-readable confirmation")
    video_id: str = Field(description="Video the job was enqueued for")
    phase: str = Field(description="Requested phase")
    force: bool = Field(description="Whether artifacts were cleared first")
    timestamp: datetime = Field(description="When the retrigger was accepted")


class SweepError(BaseModel):
    """A single video's failure during a sweep."""

    video_id: str
    error: str


class SweepReport(BaseModel):
    """Aggregate result of reconciling every processing video."""

    total: int = Field(default=0, ge=0, description="Videos considered")
    synced: int = Field(default=0, ge=0, description="Videos reconciled without error")
    changed: int = Field(default=0, ge=0, description="Videos whose status changed")
    failed: int = Field(default=0, ge=0, description="Videos whose sync raised")
    errors: list[SweepError] = Field(default_factory=list)
    started_at: datetime
    finished_at: datetime | None = None


class PhaseRunInfo(BaseModel):
    """Execution state of one phase."""

    phase: str
    state: PhaseRunState
    attempts: int
    error: str | None = None
    updated_at: datetime


class ProcessingStatusResponse(BaseModel):
    """Per-artifact completion plus pipeline bookkeeping for a video."""

    video_id: str
    transcript: bool
    tags: bool
    chapters: bool
    abstract: bool
    title: bool
    complete: bool
    pipeline_state: str | None = None
    pipeline_phase: str | None = None
    phases: list[PhaseRunInfo] = Field(default_factory=list)


class StreamWebhookStatus(BaseModel):
    model_config = ConfigDict(extra="allow")

    state: str | None = None
    pctComplete: str | float | None = None  # noqa: N815
    errorReasonCode: str | None = None  # noqa: N815
    errorReasonText: str | None = None  # noqa: N815


class StreamWebhookPayload(BaseModel):
    """Body of a streaming provider webhook delivery."""

    model_config = ConfigDict(extra="allow")

    uid: str | None = None
    readyToStream: bool = False  # noqa: N815
    status: StreamWebhookStatus = Field(default_factory=StreamWebhookStatus)
    meta: dict[str, Any] = Field(default_factory=dict)
    duration: float | None = None
    thumbnail: str | None = None


class WebhookOutcome(BaseModel):
    """What a webhook delivery caused."""

    received: bool = True
    action: str = Field(description="ignored, applied, synced or unchanged")
    video_id: str | None = None
    status: str | None = None
    reason: str | None = None
