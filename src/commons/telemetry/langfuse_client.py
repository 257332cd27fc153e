"""Langfuse tracing for the LLM calls made by processing phases.

A worker opens one trace per phase job (session = video id) and the LLM
providers attach a generation per completion to whatever trace is active.
Every helper degrades to a no-op while tracing is off, and tracing
failures are logged rather than raised so they never fail a phase.
"""

from __future__ import annotations

import contextlib
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from langfuse import Langfuse

if TYPE_CHECKING:
    from collections.abc import Iterator

    from langfuse.client import StatefulGenerationClient, StatefulTraceClient

    from src.commons.settings.models import LangfuseSettings

logger = logging.getLogger(__name__)

_current_trace: ContextVar[Any] = ContextVar("langfuse_trace", default=None)


class _Tracer:
    client: Langfuse | None = None


def _active_client() -> Langfuse | None:
    return _Tracer.client


def init_langfuse(settings: LangfuseSettings) -> None:
    """Create the process-wide Langfuse client if tracing is configured."""
    _Tracer.client = None
    if not settings.enabled:
        logger.info("Langfuse tracing disabled")
        return
    if not (settings.public_key and settings.secret_key):
        logger.warning("Langfuse enabled without keys, tracing stays off")
        return

    try:
        _Tracer.client = Langfuse(
            public_key=settings.public_key,
            secret_key=settings.secret_key,
            host=settings.host,
            debug=settings.debug,
            sample_rate=settings.sample_rate,
            flush_at=settings.flush_at,
            flush_interval=settings.flush_interval,
        )
    except Exception as e:
        logger.error("Could not create Langfuse client", extra={"error": str(e)})
        return
    logger.info("Langfuse tracing enabled", extra={"host": settings.host})


def shutdown_langfuse() -> None:
    """Flush buffered events and drop the client."""
    client, _Tracer.client = _Tracer.client, None
    if client is None:
        return
    try:
        client.flush()
        client.shutdown()
    except Exception as e:
        logger.error("Langfuse shutdown failed", extra={"error": str(e)})


def is_langfuse_enabled() -> bool:
    return _active_client() is not None


@contextmanager
def langfuse_trace(
    name: str,
    session_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    tags: list[str] | None = None,
) -> Iterator[StatefulTraceClient | None]:
    """Make a new trace current for the duration of the block.

    Args:
        name: Trace name, e.g. ``phase.tagging``.
        session_id: Groups traces; phase jobs pass the video id.
        metadata: Extra trace metadata.
        tags: Trace tags.

    Yields:
        The trace, or None when tracing is off or the trace failed.
    """
    client = _active_client()
    trace = None
    if client is not None:
        try:
            trace = client.trace(
                name=name,
                session_id=session_id,
                metadata=metadata or {},
                tags=tags or [],
            )
        except Exception as e:
            logger.error("Could not open Langfuse trace", extra={"error": str(e)})

    token = _current_trace.set(trace)
    try:
        yield trace
    finally:
        with contextlib.suppress(ValueError):
            _current_trace.reset(token)


def create_llm_generation(
    name: str,
    model: str,
    input_messages: list[dict[str, Any]],
    model_parameters: dict[str, Any] | None = None,
    metadata: dict[str, Any] | None = None,
) -> StatefulGenerationClient | None:
    """Record the start of an LLM call.

    Attaches to the current trace; outside of one a standalone trace is
    created so ad hoc calls are still visible.
    """
    client = _active_client()
    if client is None:
        return None

    try:
        parent = _current_trace.get() or client.trace(name=f"standalone_{name}")
        return parent.generation(
            name=name,
            model=model,
            input=input_messages,
            model_parameters=model_parameters or {},
            metadata=metadata or {},
        )
    except Exception as e:
        logger.error("Could not record LLM generation", extra={"error": str(e)})
        return None


def end_llm_generation(
    generation: StatefulGenerationClient | None,
    output: str | dict[str, Any] | None,
    usage: dict[str, int] | None = None,
    level: str = "DEFAULT",
    status_message: str | None = None,
) -> None:
    """Close a generation with its output, token usage and outcome.

    Args:
        generation: Value returned by ``create_llm_generation``.
        output: Completion text, or None on failure.
        usage: ``prompt_tokens``/``completion_tokens``/``total_tokens``.
        level: Langfuse level; ``ERROR`` marks failed calls.
        status_message: Failure description.
    """
    if generation is None:
        return
    try:
        generation.end(
            output=output,
            usage=usage,
            level=level,
            status_message=status_message,
        )
    except Exception as e:
        logger.error("Could not close LLM generation", extra={"error": str(e)})
