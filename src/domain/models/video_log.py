"""Per-video processing and audit log entries."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class VideoLogEntry(BaseModel):
    """A processing event recorded against a video."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    video_id: str
    level: LogLevel = LogLevel.INFO
    event_type: str = Field(description="Machine-readable event kind, e.g. 'retrigger'")
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    duration_ms: int | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
