"""Artifacts written by processing phases."""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field


class Transcript(BaseModel):
    """Full transcript of a video. One per video."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    video_id: str
    content: str
    language: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Chapter(BaseModel):
    """A titled time range within a video."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    video_id: str
    title: str
    start_time: float = Field(ge=0, description="Start offset in seconds")
    end_time: float = Field(ge=0, description="End offset in seconds")
    summary: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class VideoTag(BaseModel):
    """Association between a video and a tag value."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    video_id: str
    tag: str
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
