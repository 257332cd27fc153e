"""DTOs for video upload and management."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.domain.models.video import PipelineState, Video, VideoStatus
from src.domain.models.video_log import VideoLogEntry


class CreateUploadRequest(BaseModel):
    """Request to create a direct upload slot."""

    title: str | None = Field(
        default=None,
        max_length=300,
        description="Optional title; generated from the transcript if omitted",
    )
    description: str = Field(default="", max_length=5000)


class CreateUploadResponse(BaseModel):
    """Where the client should send the video bytes."""

    video_id: str = Field(description="Internal video UUID")
    stream_id: str = Field(description="Streaming provider identifier")
    upload_url: str = Field(description="One-time direct upload URL")
    status: VideoStatus = Field(description="Initial status (pending_upload)")


class VideoResponse(BaseModel):
    """Public view of a video."""

    id: str
    stream_id: str | None
    title: str | None
    description: str
    abstract: str | None
    status: VideoStatus
    thumbnail_url: str | None
    duration_seconds: float | None
    error_message: str | None
    pipeline_state: PipelineState
    pipeline_phase: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_video(cls, video: Video) -> "VideoResponse":
        return cls(**video.model_dump(exclude={"version"}))


class PaginationInfo(BaseModel):
    """Pagination metadata."""

    page: int = Field(ge=1, description="Current page number")
    page_size: int = Field(ge=1, le=100, description="Items per page")
    total_items: int = Field(ge=0, description="Total number of items")
    total_pages: int = Field(ge=0, description="Total number of pages")


class VideoListResponse(BaseModel):
    """Response for video listing."""

    videos: list[VideoResponse]
    pagination: PaginationInfo


class DeleteResponse(BaseModel):
    """Response for video deletion."""

    success: bool = Field(description="Whether deletion was successful")
    video_id: str = Field(description="ID of deleted video")
    message: str = Field(description="Status message")


class VideoLogsResponse(BaseModel):
    """Processing and audit log for a video."""

    video_id: str
    entries: list[VideoLogEntry]
