"""Execution of individual AI processing phases."""

import json
import re
import tempfile
from pathlib import Path
from typing import Any

import httpx

from src.application.services.storage import VideoStorageService
from src.commons.settings.models import LLMSettings, ProcessingSettings
from src.commons.telemetry import get_logger
from src.domain.exceptions import PhaseExecutionException
from src.domain.models.artifacts import Chapter, Transcript, VideoTag
from src.domain.models.processing import ProcessingPhase
from src.domain.models.video import Video
from src.infrastructure.llm.base import LLMServiceBase, Message, MessageRole
from src.infrastructure.streaming.base import StreamingProviderBase
from src.infrastructure.transcription.base import TranscriptionServiceBase

MAX_TAGS = 10
MAX_TITLE_CHARS = 100
GENERATED_TAG_CONFIDENCE = 0.8

TAGS_PROMPT = """\
Analyze this video content and generate relevant tags for searchability.

Title: {title}
Transcript: {transcript}

Generate 5-10 specific, searchable tags. Tags should be as short as possible.
Return only the tags as a comma-separated list, nothing else."""

CHAPTERS_PROMPT = """\
Analyze this video transcript and create chapters for easy navigation.
Video duration: {duration} seconds

Transcript: {transcript}

Create 3-8 chapters with a descriptive title, start/end timestamps in \
seconds and a brief summary. Timestamps must not overlap and must stay \
within the video duration.

Return ONLY one JSON array, no markdown and no explanations:
[{{"title": "...", "start_time": 0, "end_time": 120, "summary": "..."}}]"""

ABSTRACT_SYSTEM_PROMPT = """\
You create concise, informative abstracts for video content.

Guidelines:
- Keep the abstract between 2-4 sentences (50-150 words)
- Focus on the main topics, key insights and practical takeaways
- Write in a professional, clear tone
- Do not include timestamps or speaker references"""

TITLE_SYSTEM_PROMPT = """\
You create descriptive titles for video content.

Guidelines:
- Keep the title between 5-12 words (40-80 characters)
- Be specific to the content, no clickbait
- Do not use quotes, colons or special characters
- Use title case
- Respond with the title only"""

_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


class PhaseProcessor:
    """Produces and stores the artifact of one processing phase.

    Each phase overwrites its previous artifact, so re-running a phase is
    an idempotent upsert.
    """

    def __init__(
        self,
        storage: VideoStorageService,
        provider: StreamingProviderBase,
        transcription: TranscriptionServiceBase,
        llm: LLMServiceBase,
        processing_settings: ProcessingSettings,
        llm_settings: LLMSettings,
        language_hint: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._storage = storage
        self._provider = provider
        self._transcription = transcription
        self._llm = llm
        self._prompt_chars = processing_settings.transcript_prompt_chars
        self._temperature = llm_settings.temperature
        self._language_hint = language_hint
        self._http_client = http_client
        self._logger = get_logger(__name__)

    async def run(self, phase: ProcessingPhase, video: Video) -> None:
        """Execute one phase for a video.

        Raises:
            PhaseExecutionException: If a prerequisite is missing or the
                phase produced nothing usable.
        """
        handlers = {
            ProcessingPhase.TRANSCRIPTION: self.transcribe,
            ProcessingPhase.TAGGING: self.generate_tags,
            ProcessingPhase.CHAPTERS: self.generate_chapters,
            ProcessingPhase.ABSTRACT: self.generate_abstract,
            ProcessingPhase.TITLE_GENERATION: self.generate_title,
            ProcessingPhase.THUMBNAIL: self.update_thumbnail,
        }
        await handlers[phase](video)

    async def transcribe(self, video: Video) -> Transcript:
        stream_id = self._require_stream(video, ProcessingPhase.TRANSCRIPTION)
        download_url = await self._provider.get_download_url(stream_id)

        with tempfile.TemporaryDirectory() as temp_dir:
            media_path = Path(temp_dir) / f"{stream_id}.mp4"
            size = await self._download(download_url, media_path)
            self._logger.debug(
                "Media downloaded",
                extra={"video_id": video.id, "size_mb": round(size / (1024 * 1024), 2)},
            )
            result = await self._transcription.transcribe(
                str(media_path), language_hint=self._language_hint
            )

        content = result.full_text.strip()
        if not content:
            raise PhaseExecutionException(
                video.id, ProcessingPhase.TRANSCRIPTION.value, "transcription is empty"
            )

        transcript = Transcript(video_id=video.id, content=content, language=result.language)
        await self._storage.save_transcript(transcript)
        self._logger.info(
            "Transcript stored",
            extra={
                "video_id": video.id,
                "language": result.language,
                "characters": len(content),
                "segments": len(result.segments),
            },
        )
        return transcript

    async def _download(self, url: str, destination: Path) -> int:
        client = self._http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(300.0), follow_redirects=True
        )
        size = 0
        try:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                with destination.open("wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
                        size += len(chunk)
        finally:
            if self._http_client is None:
                await client.aclose()
        return size

    async def generate_tags(self, video: Video) -> list[str]:
        transcript = await self._require_transcript(video, ProcessingPhase.TAGGING)
        content = await self._complete(
            [
                Message(
                    role=MessageRole.USER,
                    content=TAGS_PROMPT.format(
                        title=video.title or "Untitled",
                        transcript=self._truncate(transcript.content),
                    ),
                )
            ],
            max_tokens=200,
        )

        tags = parse_tags(content)
        if not tags:
            raise PhaseExecutionException(
                video.id, ProcessingPhase.TAGGING.value, "no tags in model response"
            )

        await self._storage.replace_tags(
            video.id,
            [
                VideoTag(video_id=video.id, tag=tag, confidence=GENERATED_TAG_CONFIDENCE)
                for tag in tags
            ],
        )
        self._logger.info("Tags stored", extra={"video_id": video.id, "tags": tags})
        return tags

    async def generate_chapters(self, video: Video) -> list[Chapter]:
        transcript = await self._require_transcript(video, ProcessingPhase.CHAPTERS)
        duration = video.duration_seconds
        content = await self._complete(
            [
                Message(
                    role=MessageRole.USER,
                    content=CHAPTERS_PROMPT.format(
                        duration=int(duration) if duration is not None else "unknown",
                        transcript=transcript.content,
                    ),
                )
            ],
            max_tokens=1000,
        )

        try:
            raw_chapters = parse_json_array(content)
        except ValueError as e:
            raise PhaseExecutionException(
                video.id, ProcessingPhase.CHAPTERS.value, str(e)
            ) from e

        chapters = [
            Chapter(
                video_id=video.id,
                title=item["title"].strip(),
                start_time=float(item["start_time"]),
                end_time=float(item["end_time"]),
                summary=item.get("summary"),
            )
            for item in raw_chapters
            if _valid_chapter(item, duration)
        ]
        self._logger.info(
            "Chapters parsed",
            extra={
                "video_id": video.id,
                "returned": len(raw_chapters),
                "valid": len(chapters),
            },
        )
        if not chapters:
            raise PhaseExecutionException(
                video.id, ProcessingPhase.CHAPTERS.value, "no valid chapters in model response"
            )

        await self._storage.replace_chapters(video.id, chapters)
        return chapters

    async def generate_abstract(self, video: Video) -> str:
        transcript = await self._require_transcript(video, ProcessingPhase.ABSTRACT)
        abstract = await self._complete(
            [
                Message(role=MessageRole.SYSTEM, content=ABSTRACT_SYSTEM_PROMPT),
                Message(
                    role=MessageRole.USER,
                    content=self._describe(video, transcript)
                    + "\n\nCreate a concise abstract for this video:",
                ),
            ],
            max_tokens=300,
        )
        if not abstract:
            raise PhaseExecutionException(
                video.id, ProcessingPhase.ABSTRACT.value, "model returned no abstract"
            )

        await self._storage.update_video(video.id, {"abstract": abstract})
        self._logger.info(
            "Abstract stored", extra={"video_id": video.id, "characters": len(abstract)}
        )
        return abstract

    async def generate_title(self, video: Video) -> str:
        transcript = await self._require_transcript(video, ProcessingPhase.TITLE_GENERATION)
        content = await self._complete(
            [
                Message(role=MessageRole.SYSTEM, content=TITLE_SYSTEM_PROMPT),
                Message(
                    role=MessageRole.USER,
                    content=self._describe(video, transcript)
                    + "\n\nCreate a descriptive title for this video:",
                ),
            ],
            max_tokens=50,
        )
        title = clean_title(content)
        if not title:
            raise PhaseExecutionException(
                video.id, ProcessingPhase.TITLE_GENERATION.value, "model returned no title"
            )

        await self._storage.update_video(video.id, {"title": title})
        self._logger.info("Title stored", extra={"video_id": video.id, "title": title})
        return title

    async def update_thumbnail(self, video: Video) -> str:
        stream_id = self._require_stream(video, ProcessingPhase.THUMBNAIL)
        info = await self._provider.get_stream(stream_id)
        url = info.thumbnail_url or self._provider.thumbnail_url(stream_id)
        await self._storage.update_video(video.id, {"thumbnail_url": url})
        return url

    async def _complete(self, messages: list[Message], max_tokens: int) -> str:
        response = await self._llm.generate(
            messages=messages,
            temperature=self._temperature,
            max_tokens=max_tokens,
        )
        return response.content.strip()

    async def _require_transcript(self, video: Video, phase: ProcessingPhase) -> Transcript:
        transcript = await self._storage.get_transcript(video.id)
        if transcript is None or not transcript.content:
            raise PhaseExecutionException(video.id, phase.value, "no transcript available")
        return transcript

    @staticmethod
    def _require_stream(video: Video, phase: ProcessingPhase) -> str:
        if not video.stream_id:
            raise PhaseExecutionException(video.id, phase.value, "video has no stream id")
        return video.stream_id

    def _truncate(self, text: str) -> str:
        if len(text) <= self._prompt_chars:
            return text
        return text[: self._prompt_chars] + "..."

    def _describe(self, video: Video, transcript: Transcript) -> str:
        lines = [f'Video Title: "{video.title or "Untitled"}"']
        if video.description:
            lines.append(f'Video Description: "{video.description}"')
        lines.append(f"\nTranscript:\n{self._truncate(transcript.content)}")
        return "\n".join(lines)


def parse_tags(content: str) -> list[str]:
    """Split a comma-separated model answer into unique lowercase tags."""
    tags: list[str] = []
    for raw in re.split(r"[,\n]", content):
        tag = raw.strip().lstrip("-*#").strip().strip("\"'").lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tags[:MAX_TAGS]


def parse_json_array(content: str) -> list[dict[str, Any]]:
    """Extract the first JSON array from a model answer.

    Handles answers wrapped in code fences and answers that repeat the
    array or trail off with commentary.

    Raises:
        ValueError: If no JSON array can be decoded.
    """
    fenced = _CODE_FENCE.search(content)
    if fenced:
        content = fenced.group(1)

    start = content.find("[")
    if start < 0:
        raise ValueError("No JSON array found in response")
    try:
        data, _ = json.JSONDecoder().raw_decode(content[start:])
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON array in response: {e}") from e
    if not isinstance(data, list):
        raise ValueError("Response JSON is not an array")
    return [item for item in data if isinstance(item, dict)]


def _valid_chapter(item: dict[str, Any], duration: float | None) -> bool:
    title, start, end = item.get("title"), item.get("start_time"), item.get("end_time")
    if not isinstance(title, str) or not title.strip():
        return False
    if isinstance(start, bool) or isinstance(end, bool):
        return False
    if not isinstance(start, int | float) or not isinstance(end, int | float):
        return False
    if start < 0 or start >= end:
        return False
    return duration is None or end <= duration


def clean_title(content: str) -> str:
    title = content.strip().splitlines()[0] if content.strip() else ""
    title = title.strip().strip("\"'").strip()
    return title[:MAX_TITLE_CHARS].strip()
