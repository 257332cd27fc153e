"""Streaming provider abstractions and implementations."""

from src.infrastructure.streaming.base import (
    DirectUpload,
    StreamInfo,
    StreamingProviderBase,
)
from src.infrastructure.streaming.cloudflare_stream import CloudflareStreamProvider

__all__ = [
    "StreamingProviderBase",
    "StreamInfo",
    "DirectUpload",
    "CloudflareStreamProvider",
]
