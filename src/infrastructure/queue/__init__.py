"""Processing job queue abstractions and implementations."""

from src.infrastructure.queue.base import WorkQueueBase
from src.infrastructure.queue.document_queue import DocumentWorkQueue

__all__ = [
    "WorkQueueBase",
    "DocumentWorkQueue",
]
