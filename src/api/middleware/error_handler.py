"""Translation of raised exceptions into the JSON error envelope."""

import logging
from collections.abc import Callable
from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from src.commons.telemetry.logger import get_logger
from src.domain.exceptions import (
    DomainException,
    InvalidPhaseException,
    InvalidVideoStateException,
    ProviderException,
    ValidationException,
    VideoNotFoundException,
    WebhookSignatureException,
)

logger = get_logger(__name__)


class APIError(Exception):
    """Error raised by route handlers that already know their response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


DetailsBuilder = Callable[[Any], dict[str, Any]]

# Checked in order, so subclasses must precede their bases.
_EXCEPTION_MAP: list[tuple[type[Exception], str, int, int, DetailsBuilder]] = [
    (
        InvalidPhaseException,
        "VALIDATION_ERROR",
        status.HTTP_400_BAD_REQUEST,
        logging.WARNING,
        lambda e: {"field": e.field, "phase": e.phase, "allowed": e.allowed},
    ),
    (
        ValidationException,
        "VALIDATION_ERROR",
        status.HTTP_400_BAD_REQUEST,
        logging.WARNING,
        lambda e: {"field": e.field},
    ),
    (
        VideoNotFoundException,
        "VIDEO_NOT_FOUND",
        status.HTTP_404_NOT_FOUND,
        logging.WARNING,
        lambda e: {"video_id": e.video_id},
    ),
    (
        InvalidVideoStateException,
        "INVALID_STATE",
        status.HTTP_400_BAD_REQUEST,
        logging.WARNING,
        lambda e: {
            "video_id": e.video_id,
            "status": e.status.value,
            "allowed": [s.value for s in e.allowed],
        },
    ),
    (
        WebhookSignatureException,
        "INVALID_SIGNATURE",
        status.HTTP_401_UNAUTHORIZED,
        logging.WARNING,
        lambda e: {},
    ),
    (
        ProviderException,
        "PROVIDER_ERROR",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        logging.ERROR,
        lambda e: {"provider": e.provider, "provider_status": e.status_code},
    ),
    (
        DomainException,
        "DOMAIN_ERROR",
        status.HTTP_400_BAD_REQUEST,
        logging.WARNING,
        lambda e: {},
    ),
]


def _error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Render the ``{"error": {...}}`` envelope shared by every failure."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": getattr(request.state, "request_id", "unknown"),
            }
        },
    )


def _handle_exception(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, APIError):
        logger.warning(
            f"API error: {exc.code}",
            extra={"error_code": exc.code, "details": exc.details},
        )
        return _error_response(
            request, exc.code, exc.message, exc.status_code, exc.details
        )

    for exc_type, code, status_code, level, build_details in _EXCEPTION_MAP:
        if isinstance(exc, exc_type):
            details = build_details(exc)
            logger.log(
                level,
                f"{code}: {exc}",
                extra={"error_code": code, "request_path": request.url.path},
            )
            return _error_response(request, code, str(exc), status_code, details)

    logger.exception(f"Unexpected error: {exc}")
    return _error_response(
        request,
        "INTERNAL_ERROR",
        "An unexpected error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Turn any exception escaping a route into an error envelope.

    Args:
        request: HTTP request.
        call_next: Next handler in chain.

    Returns:
        The route's response, or the error envelope.
    """
    try:
        return await call_next(request)
    except Exception as exc:
        return _handle_exception(request, exc)
