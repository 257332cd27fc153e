"""Decorators for timing sweeps and logging failures of entrypoints."""

import functools
import inspect
import logging
import time
from collections.abc import Callable
from typing import Any, ParamSpec, TypeVar, overload

from src.commons.telemetry.logger import get_log_context, get_logger, log_context_var

P = ParamSpec("P")
R = TypeVar("R")


def _wrap(
    fn: Callable[P, R],
    around: Callable[[Callable[[], Any]], Any],
    around_async: Callable[[Callable[[], Any]], Any],
) -> Callable[P, R]:
    """Wrap sync and async callables with the matching hook."""

    @functools.wraps(fn)
    def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return around(lambda: fn(*args, **kwargs))  # type: ignore[no-any-return]

    @functools.wraps(fn)
    async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        return await around_async(lambda: fn(*args, **kwargs))  # type: ignore[no-any-return]

    if inspect.iscoroutinefunction(fn):
        return async_wrapper  # type: ignore[return-value]
    return sync_wrapper


@overload
def log_exceptions(
    func: Callable[P, R],
) -> Callable[P, R]: ...


@overload
def log_exceptions(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.ERROR,
    reraise: bool = True,
    message: str | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def log_exceptions(
    func: Callable[P, R] | None = None,
    *,
    logger: logging.Logger | None = None,
    level: int = logging.ERROR,
    reraise: bool = True,
    message: str | None = None,
) -> Callable[P, R] | Callable[[Callable[P, R]], Callable[P, R]]:
    """Log an exception escaping ``fn`` with its traceback.

    Args:
        func: The function to decorate (when used without parentheses).
        logger: Optional logger instance.
        level: Log level for exceptions.
        reraise: Re-raise after logging; when False the call returns None.
        message: Log message; defaults to the qualified function name.

    Returns:
        Decorated function.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        log = logger or get_logger(fn.__module__)
        msg = message or f"Exception in {fn.__qualname__}"

        def _report(e: Exception) -> None:
            log.log(level, msg, exc_info=True, extra={"exception_type": type(e).__name__})
            if reraise:
                raise e

        def around(call: Callable[[], Any]) -> Any:
            try:
                return call()
            except Exception as e:
                _report(e)
                return None

        async def around_async(call: Callable[[], Any]) -> Any:
            try:
                return await call()
            except Exception as e:
                _report(e)
                return None

        return _wrap(fn, around, around_async)

    if func is not None:
        return decorator(func)
    return decorator


@overload
def timed(
    func: Callable[P, R],
) -> Callable[P, R]: ...


@overload
def timed(
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]: ...


def timed(
    func: Callable[P, R] | None = None,
    *,
    logger: logging.Logger | None = None,
    level: int = logging.DEBUG,
    threshold_ms: float | None = None,
) -> Callable[P, R] | Callable[[Callable[P, R]], Callable[P, R]]:
    """Log how long each call of ``fn`` took, whether or not it raised.

    Args:
        func: The function to decorate (when used without parentheses).
        logger: Optional logger instance.
        level: Log level for timing messages.
        threshold_ms: Skip calls faster than this many milliseconds.

    Returns:
        Decorated function.
    """

    def decorator(fn: Callable[P, R]) -> Callable[P, R]:
        log = logger or get_logger(fn.__module__)

        def _emit(start: float) -> None:
            elapsed_ms = (time.perf_counter() - start) * 1000
            if threshold_ms is None or elapsed_ms >= threshold_ms:
                log.log(
                    level,
                    f"{fn.__qualname__} completed",
                    extra={"duration_ms": round(elapsed_ms, 2)},
                )

        def around(call: Callable[[], Any]) -> Any:
            start = time.perf_counter()
            try:
                return call()
            finally:
                _emit(start)

        async def around_async(call: Callable[[], Any]) -> Any:
            start = time.perf_counter()
            try:
                return await call()
            finally:
                _emit(start)

        return _wrap(fn, around, around_async)

    if func is not None:
        return decorator(func)
    return decorator


class LogContext:
    """Scope extra fields onto every log line emitted inside the block.

    Example:
        with LogContext(video_id=video.id, phase="tagging"):
            await processor.run(...)
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs
        self._previous_context: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._previous_context = get_log_context()
        log_context_var.set({**self._previous_context, **self.context})
        return self

    def __exit__(self, *args: Any) -> None:
        log_context_var.set(self._previous_context)
