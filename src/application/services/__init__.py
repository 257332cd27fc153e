"""Application services for status sync and the processing pipeline."""

from src.application.services.completion import CompletionChecker
from src.application.services.dispatcher import PipelineDispatcher
from src.application.services.orchestrator import PipelineOrchestrator
from src.application.services.phases import PhaseProcessor
from src.application.services.retrigger import RetriggerController, parse_retrigger_target
from src.application.services.status_sync import StatusPoller, StatusReconciler
from src.application.services.storage import VideoStorageService
from src.application.services.video_logs import VideoLogService
from src.application.services.videos import VideoService
from src.application.services.webhook_signature import verify_webhook_signature
from src.application.services.worker import PhaseWorker

__all__ = [
    "CompletionChecker",
    "PhaseProcessor",
    "PhaseWorker",
    "PipelineDispatcher",
    "PipelineOrchestrator",
    "RetriggerController",
    "StatusPoller",
    "StatusReconciler",
    "VideoLogService",
    "VideoService",
    "VideoStorageService",
    "parse_retrigger_target",
    "verify_webhook_signature",
]
