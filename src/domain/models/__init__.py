"""Domain models."""

from src.domain.models.artifacts import Chapter, Transcript, VideoTag
from src.domain.models.processing import (
    FORCE_CLEAR_ARTIFACTS,
    PHASE_CHAIN,
    Artifact,
    JobStatus,
    PhaseRun,
    PhaseRunState,
    ProcessingJob,
    ProcessingPhase,
    ProcessingStatus,
    RetriggerTarget,
    next_phase,
)
from src.domain.models.video import (
    PipelineState,
    ProviderState,
    Video,
    VideoStatus,
    map_provider_state,
)
from src.domain.models.video_log import LogLevel, VideoLogEntry

__all__ = [
    # Video
    "Video",
    "VideoStatus",
    "PipelineState",
    "ProviderState",
    "map_provider_state",
    # Processing
    "ProcessingPhase",
    "PHASE_CHAIN",
    "next_phase",
    "RetriggerTarget",
    "Artifact",
    "FORCE_CLEAR_ARTIFACTS",
    "PhaseRun",
    "PhaseRunState",
    "JobStatus",
    "ProcessingJob",
    "ProcessingStatus",
    # Artifacts
    "Transcript",
    "Chapter",
    "VideoTag",
    # Logs
    "LogLevel",
    "VideoLogEntry",
]
