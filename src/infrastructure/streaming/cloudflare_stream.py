"""Cloudflare Stream implementation of the streaming provider."""

import time
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx

from src.commons.infrastructure.health import HealthStatus
from src.commons.telemetry import get_logger
from src.domain.exceptions import ProviderException
from src.infrastructure.streaming.base import (
    DirectUpload,
    StreamInfo,
    StreamingProviderBase,
)

_PROVIDER = "cloudflare_stream"


class CloudflareStreamProvider(StreamingProviderBase):
    """Cloudflare Stream client.

    API reference:
    GET    /accounts/{account}/stream/{uid}
    POST   /accounts/{account}/stream/direct_upload
    DELETE /accounts/{account}/stream/{uid}
    POST   /accounts/{account}/stream/{uid}/downloads

    Every response is wrapped in {"success": bool, "errors": [...], "result": ...}.
    """

    def __init__(
        self,
        account_id: str,
        api_token: str,
        base_url: str = "https://api.cloudflare.com/client/v4",
        delivery_base_url: str = "https://videodelivery.net",
        timeout: float = 30.0,
        upload_expiry_minutes: int = 60,
        max_duration_seconds: int = 3600,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize Cloudflare Stream client.

        Args:
            account_id: Cloudflare account identifier.
            api_token: API token with Stream edit permission.
            base_url: Cloudflare API base URL.
            delivery_base_url: Base URL for thumbnails.
            timeout: Request timeout in seconds.
            upload_expiry_minutes: Lifetime of direct upload URLs.
            max_duration_seconds: Default maximum upload duration.
            client: Optional preconfigured HTTP client.
        """
        self._account_id = account_id
        self._base_url = base_url.rstrip("/")
        self._delivery_base_url = delivery_base_url.rstrip("/")
        self._upload_expiry = timedelta(minutes=upload_expiry_minutes)
        self._max_duration_seconds = max_duration_seconds
        self._logger = get_logger(__name__)

        self._client = client or httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
        )

    @property
    def _stream_url(self) -> str:
        return f"{self._base_url}/accounts/{self._account_id}/stream"

    async def _request(
        self,
        method: str,
        url: str,
        json: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(method, url, json=json)
        except httpx.HTTPError as e:
            raise ProviderException(_PROVIDER, f"{method} {url}: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400 or not isinstance(body, dict):
            raise ProviderException(
                _PROVIDER,
                f"{method} {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
                details={"body": body if body is not None else response.text[:500]},
            )
        if not body.get("success", False):
            raise ProviderException(
                _PROVIDER,
                f"{method} {url} was not successful",
                status_code=response.status_code,
                details={"errors": body.get("errors", [])},
            )
        return body.get("result")

    async def get_stream(self, stream_id: str) -> StreamInfo:
        result = await self._request("GET", f"{self._stream_url}/{stream_id}")
        if not isinstance(result, dict):
            raise ProviderException(_PROVIDER, f"stream {stream_id} has no result")
        return self.parse_stream(result, default_uid=stream_id)

    @staticmethod
    def parse_stream(result: dict[str, Any], default_uid: str | None = None) -> StreamInfo:
        """Build StreamInfo from a Stream API result or webhook payload.

        Args:
            result: Stream object as returned by the API.
            default_uid: Uid to use when the object has none.

        Returns:
            Parsed stream information.
        """
        status = result.get("status") or {}
        duration = result.get("duration")
        return StreamInfo(
            uid=result.get("uid") or default_uid or "",
            state=status.get("state"),
            ready_to_stream=bool(result.get("readyToStream", False)),
            pct_complete=_as_float(status.get("pctComplete")),
            error_reason_code=status.get("errorReasonCode") or None,
            error_reason_text=status.get("errorReasonText") or None,
            # Cloudflare reports -1 while the duration is unknown
            duration_seconds=duration if isinstance(duration, int | float) and duration >= 0 else None,
            thumbnail_url=result.get("thumbnail"),
            meta=result.get("meta") or {},
        )

    async def create_direct_upload(
        self,
        meta: dict[str, str] | None = None,
        max_duration_seconds: int | None = None,
    ) -> DirectUpload:
        expiry = datetime.now(UTC) + self._upload_expiry
        payload = {
            "maxDurationSeconds": max_duration_seconds or self._max_duration_seconds,
            "expiry": expiry.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "meta": meta or {},
            "requireSignedURLs": False,
            "thumbnailTimestampPct": 0.5,
        }
        result = await self._request(
            "POST", f"{self._stream_url}/direct_upload", json=payload
        )
        if not isinstance(result, dict) or not result.get("uid") or not result.get(
            "uploadURL"
        ):
            raise ProviderException(_PROVIDER, "direct upload response missing uid")

        self._logger.info(
            "Created direct upload",
            extra={"stream_id": result["uid"], "expiry": payload["expiry"]},
        )
        return DirectUpload(uid=result["uid"], upload_url=result["uploadURL"])

    async def delete_stream(self, stream_id: str) -> None:
        try:
            response = await self._client.delete(f"{self._stream_url}/{stream_id}")
        except httpx.HTTPError as e:
            raise ProviderException(_PROVIDER, f"delete {stream_id}: {e}") from e
        # 404 means already gone
        if response.status_code >= 400 and response.status_code != 404:
            raise ProviderException(
                _PROVIDER,
                f"delete {stream_id} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

    async def get_download_url(self, stream_id: str) -> str:
        result = await self._request("POST", f"{self._stream_url}/{stream_id}/downloads")
        default = (result or {}).get("default") if isinstance(result, dict) else None
        url = (default or {}).get("url")
        if not url:
            raise ProviderException(_PROVIDER, f"no MP4 download for {stream_id}")
        return str(url)

    def thumbnail_url(self, stream_id: str) -> str:
        return (
            f"{self._delivery_base_url}/{stream_id}/thumbnails/thumbnail.jpg"
            "?time=0s&height=600"
        )

    async def health_check(self) -> HealthStatus:
        start = time.perf_counter()
        try:
            await self._request("GET", f"{self._stream_url}?limit=1")
            return HealthStatus(
                healthy=True,
                latency_ms=(time.perf_counter() - start) * 1000,
                message="Cloudflare Stream is reachable",
            )
        except ProviderException as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"Cloudflare Stream health check failed: {e}",
                details={"error": e.reason},
            )

    async def close(self) -> None:
        await self._client.aclose()


def _as_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
