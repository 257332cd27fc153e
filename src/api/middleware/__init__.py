"""HTTP middleware: request logging and the error envelope."""

from src.api.middleware.error_handler import APIError, error_handler_middleware
from src.api.middleware.logging import LoggingMiddleware

__all__ = ["APIError", "LoggingMiddleware", "error_handler_middleware"]
