"""API route handlers."""

from src.api.openapi.routes import health, sync, videos, webhooks

__all__ = [
    "health",
    "sync",
    "videos",
    "webhooks",
]
