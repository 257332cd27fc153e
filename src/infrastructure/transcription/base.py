"""Abstract base class for transcription services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class TranscriptionSegment:
    """A timed segment of transcribed text."""

    text: str
    start_time: float
    end_time: float


@dataclass
class TranscriptionResult:
    """Complete transcription result."""

    full_text: str
    language: str | None
    duration_seconds: float
    segments: list[TranscriptionSegment] = field(default_factory=list)


class TranscriptionServiceBase(ABC):
    """Abstract base class for transcription services.

    Implementations should handle:
    - OpenAI Whisper API
    """

    @abstractmethod
    async def transcribe(
        self,
        media_path: str,
        language_hint: str | None = None,
    ) -> TranscriptionResult:
        """Transcribe an audio or video file.

        Args:
            media_path: Path to the media file.
            language_hint: Optional ISO language code hint (e.g., 'en', 'es').

        Returns:
            Transcription with segment timing.
        """
