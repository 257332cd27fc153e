"""Abstract base class for video streaming/transcoding providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from src.commons.infrastructure.health import HealthStatus


@dataclass
class StreamInfo:
    """Provider-side view of a stream."""

    uid: str
    state: str | None
    ready_to_stream: bool = False
    pct_complete: float | None = None
    error_reason_code: str | None = None
    error_reason_text: str | None = None
    duration_seconds: float | None = None
    thumbnail_url: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def error_message(self) -> str | None:
        """Human-readable error built from the provider's reason fields."""
        parts = [p for p in (self.error_reason_code, self.error_reason_text) if p]
        return ": ".join(parts) if parts else None


@dataclass
class DirectUpload:
    """A one-time URL the client uploads video bytes to."""

    uid: str
    upload_url: str


class StreamingProviderBase(ABC):
    """Abstract base class for streaming providers.

    Implementations should handle:
    - Cloudflare Stream
    """

    @abstractmethod
    async def get_stream(self, stream_id: str) -> StreamInfo:
        """Fetch the current state of a stream.

        Args:
            stream_id: Provider identifier of the stream.

        Returns:
            Current stream information.

        Raises:
            ProviderException: If the request fails or the response is malformed.
        """

    @abstractmethod
    async def create_direct_upload(
        self,
        meta: dict[str, str] | None = None,
        max_duration_seconds: int | None = None,
    ) -> DirectUpload:
        """Reserve a stream and get a direct creator upload URL.

        Args:
            meta: Metadata attached to the stream (e.g., local video id).
            max_duration_seconds: Reject uploads longer than this.

        Returns:
            The new stream id and upload URL.
        """

    @abstractmethod
    async def delete_stream(self, stream_id: str) -> None:
        """Delete a stream from the provider.

        Args:
            stream_id: Provider identifier of the stream.
        """

    @abstractmethod
    async def get_download_url(self, stream_id: str) -> str:
        """Get a URL the stream's MP4 rendition can be downloaded from.

        Args:
            stream_id: Provider identifier of the stream.

        Returns:
            Download URL.
        """

    @abstractmethod
    def thumbnail_url(self, stream_id: str) -> str:
        """Build the public thumbnail URL of a stream."""

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check provider reachability."""

    async def close(self) -> None:  # noqa: B027
        """Release client resources."""
