"""OpenAI Whisper implementation of transcription service."""

from pathlib import Path
from typing import Any, cast

from openai import AsyncOpenAI

from src.infrastructure.transcription.base import (
    TranscriptionResult,
    TranscriptionSegment,
    TranscriptionServiceBase,
)


def _field(item: Any, name: str, default: Any = None) -> Any:
    """Read a field from either an SDK object or a plain dict."""
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


class OpenAIWhisperTranscription(TranscriptionServiceBase):
    """OpenAI Whisper API implementation of transcription service.

    The API accepts MP4 directly, so no audio extraction step is needed.
    Uploads are limited to 25 MB by the API.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "whisper-1",
        base_url: str | None = None,
        timeout: float = 300.0,
    ) -> None:
        """Initialize OpenAI Whisper client.

        Args:
            api_key: OpenAI API key.
            model: Whisper model to use.
            base_url: Optional custom API endpoint (for Azure, etc.).
            timeout: Request timeout in seconds.
        """
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        self._model = model

    async def transcribe(
        self,
        media_path: str,
        language_hint: str | None = None,
    ) -> TranscriptionResult:
        """Transcribe a media file."""
        # Cast to Any to work around strict overload typing in OpenAI SDK
        create_fn = cast("Any", self._client.audio.transcriptions.create)
        with Path(media_path).open("rb") as media_file:
            response = await create_fn(
                model=self._model,
                file=media_file,
                language=language_hint,
                response_format="verbose_json",
                timestamp_granularities=["segment"],
            )

        segments = [
            TranscriptionSegment(
                text=str(_field(seg, "text", "")).strip(),
                start_time=float(_field(seg, "start", 0)),
                end_time=float(_field(seg, "end", 0)),
            )
            for seg in (_field(response, "segments") or [])
        ]
        duration = _field(response, "duration")
        if duration is None:
            duration = segments[-1].end_time if segments else 0.0

        return TranscriptionResult(
            full_text=str(_field(response, "text", "")).strip(),
            language=_field(response, "language", language_hint),
            duration_seconds=float(duration),
            segments=segments,
        )
