"""Processing pipeline domain models."""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


class ProcessingPhase(str, Enum):
    """A discrete AI-processing step, in pipeline order."""

    TRANSCRIPTION = "transcription"
    TAGGING = "tagging"
    CHAPTERS = "chapters"
    ABSTRACT = "abstract"
    TITLE_GENERATION = "title_generation"
    THUMBNAIL = "thumbnail"


PHASE_CHAIN: tuple[ProcessingPhase, ...] = (
    ProcessingPhase.TRANSCRIPTION,
    ProcessingPhase.TAGGING,
    ProcessingPhase.CHAPTERS,
    ProcessingPhase.ABSTRACT,
    ProcessingPhase.TITLE_GENERATION,
    ProcessingPhase.THUMBNAIL,
)


def next_phase(phase: ProcessingPhase) -> ProcessingPhase | None:
    """Return the phase that follows ``phase`` in the chain, if any."""
    index = PHASE_CHAIN.index(phase)
    if index + 1 < len(PHASE_CHAIN):
        return PHASE_CHAIN[index + 1]
    return None


class RetriggerTarget(str, Enum):
    """Phases accepted by the retrigger operation."""

    TRANSCRIPTION = "transcription"
    TAGGING = "tagging"
    ABSTRACT = "abstract"
    TITLE_GENERATION = "title_generation"
    CHAPTERS = "chapters"
    THUMBNAIL = "thumbnail"
    ALL = "all"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]

    @property
    def entry_phase(self) -> ProcessingPhase:
        """The single phase enqueued for this target."""
        if self is RetriggerTarget.ALL:
            return ProcessingPhase.TRANSCRIPTION
        return ProcessingPhase(self.value)

    @property
    def cascades(self) -> bool:
        """Whether the enqueued job continues down the chain.

        A new transcript invalidates everything derived from it, so
        transcription always cascades.
        """
        return self in (RetriggerTarget.ALL, RetriggerTarget.TRANSCRIPTION)


class Artifact(str, Enum):
    """Stored outputs of the pipeline that determine completeness."""

    TRANSCRIPT = "transcript"
    TAGS = "tags"
    CHAPTERS = "chapters"
    ABSTRACT = "abstract"
    TITLE = "title"


# Artifacts deleted by a forced retrigger. Title generation clears nothing
# because titles may have been edited by hand.
FORCE_CLEAR_ARTIFACTS: dict[RetriggerTarget, frozenset[Artifact]] = {
    RetriggerTarget.TRANSCRIPTION: frozenset({Artifact.TRANSCRIPT}),
    RetriggerTarget.TAGGING: frozenset({Artifact.TAGS}),
    RetriggerTarget.CHAPTERS: frozenset({Artifact.CHAPTERS}),
    RetriggerTarget.ABSTRACT: frozenset({Artifact.ABSTRACT}),
    RetriggerTarget.TITLE_GENERATION: frozenset(),
    RetriggerTarget.THUMBNAIL: frozenset(),
    RetriggerTarget.ALL: frozenset(
        {Artifact.TRANSCRIPT, Artifact.CHAPTERS, Artifact.TAGS, Artifact.ABSTRACT}
    ),
}


class PhaseRunState(str, Enum):
    """Execution state of one phase for one video."""

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class PhaseRun(BaseModel):
    """Per-(video, phase) execution record."""

    id: str = Field(description="Composite key '{video_id}:{phase}'")
    video_id: str
    phase: ProcessingPhase
    state: PhaseRunState = PhaseRunState.PENDING
    attempts: int = Field(default=0, ge=0)
    error: str | None = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def key(video_id: str, phase: ProcessingPhase) -> str:
        return f"{video_id}:{phase.value}"


class JobStatus(str, Enum):
    """Queue message lifecycle."""

    PENDING = "pending"
    CLAIMED = "claimed"
    DONE = "done"
    DEAD = "dead"


class ProcessingJob(BaseModel):
    """Unit of work handed to a phase worker."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    video_id: str
    stream_id: str | None = None
    type: ProcessingPhase = Field(description="Phase to execute")
    status: JobStatus = JobStatus.PENDING
    cascade: bool = Field(
        default=True,
        description="Continue with the next phase once this one completes",
    )
    attempts: int = Field(default=0, ge=0)
    last_error: str | None = None
    available_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    claimed_at: datetime | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ProcessingStatus(BaseModel):
    """Per-artifact completion view for a video."""

    transcript: bool = False
    tags: bool = False
    chapters: bool = False
    abstract: bool = False
    title: bool = False

    @property
    def complete(self) -> bool:
        return (
            self.transcript
            and self.tags
            and self.chapters
            and self.abstract
            and self.title
        )

    @property
    def missing(self) -> list[Artifact]:
        present = {
            Artifact.TRANSCRIPT: self.transcript,
            Artifact.TAGS: self.tags,
            Artifact.CHAPTERS: self.chapters,
            Artifact.ABSTRACT: self.abstract,
            Artifact.TITLE: self.title,
        }
        return [artifact for artifact, ok in present.items() if not ok]

    def as_dict(self) -> dict[str, bool]:
        """Flatten to the wire shape including the aggregate flag."""
        return {**self.model_dump(), "complete": self.complete}
