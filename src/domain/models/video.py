"""Video domain model."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


class VideoStatus(str, Enum):
    """Lifecycle status of a video in the system."""

    PENDING_UPLOAD = "pending_upload"  # Upload URL issued, bytes not yet received
    PROCESSING = "processing"  # Transcoding or AI pipeline in progress
    READY = "ready"  # Playable
    ERROR = "error"  # Provider reported a failure


class PipelineState(str, Enum):
    """State of the AI post-processing pipeline for a video."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"


class ProviderState(str, Enum):
    """Transcoding states reported by the streaming provider."""

    PENDING_UPLOAD = "pendingupload"
    DOWNLOADING = "downloading"
    QUEUED = "queued"
    IN_PROGRESS = "inprogress"
    READY = "ready"
    ERROR = "error"

    @classmethod
    def parse(cls, raw: str | None) -> "ProviderState | None":
        """Parse a provider state string, returning None when unrecognized."""
        if not raw:
            return None
        try:
            return cls(raw.lower())
        except ValueError:
            return None

    def to_video_status(self) -> VideoStatus:
        """Map the provider state onto the local video status."""
        if self is ProviderState.READY:
            return VideoStatus.READY
        if self is ProviderState.ERROR:
            return VideoStatus.ERROR
        return VideoStatus.PROCESSING


def map_provider_state(raw: str | None) -> VideoStatus:
    """Map a raw provider state onto a local status.

    Unknown or missing states count as still processing.
    """
    state = ProviderState.parse(raw)
    if state is None:
        return VideoStatus.PROCESSING
    return state.to_video_status()


class Video(BaseModel):
    """Core entity representing an uploaded video.

    This is the aggregate root: transcripts, chapters, tags, phase runs and
    logs all reference a video through video_id. ``version`` is bumped on
    every orchestrated write and used for compare-and-swap updates.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Internal UUID for this video record",
    )
    stream_id: str | None = Field(
        default=None,
        description="Streaming provider's identifier for the uploaded asset",
    )
    title: str | None = Field(
        default=None,
        description="Video title, generated if not provided",
    )
    description: str = Field(default="", description="Free-form description")
    abstract: str | None = Field(
        default=None,
        description="AI-generated summary of the video",
    )
    status: VideoStatus = Field(
        default=VideoStatus.PENDING_UPLOAD,
        description="Current lifecycle status",
    )
    thumbnail_url: str | None = Field(default=None, description="Thumbnail image URL")
    duration_seconds: float | None = Field(
        default=None,
        ge=0,
        description="Duration reported by the streaming provider",
    )
    error_message: str | None = Field(
        default=None,
        description="Error details if status is ERROR",
    )
    pipeline_state: PipelineState = Field(
        default=PipelineState.NOT_STARTED,
        description="State of the AI processing pipeline",
    )
    pipeline_phase: str | None = Field(
        default=None,
        description="Most recently dispatched processing phase",
    )
    version: int = Field(
        default=0,
        ge=0,
        description="Optimistic concurrency counter",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When this record was created",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Last update timestamp",
    )

    @property
    def is_processing(self) -> bool:
        """Check if the video is still waiting on the provider or the pipeline."""
        return self.status in {VideoStatus.PENDING_UPLOAD, VideoStatus.PROCESSING}

    @property
    def accepts_retrigger(self) -> bool:
        """Check if processing phases may be re-run for this video."""
        return self.status in {VideoStatus.READY, VideoStatus.PROCESSING}
