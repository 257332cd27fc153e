"""FastAPI dependency injection for services and settings."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.application.services.completion import CompletionChecker
from src.application.services.dispatcher import PipelineDispatcher
from src.application.services.orchestrator import PipelineOrchestrator
from src.application.services.retrigger import RetriggerController
from src.application.services.status_sync import StatusPoller, StatusReconciler
from src.application.services.storage import VideoStorageService
from src.application.services.video_logs import VideoLogService
from src.application.services.videos import VideoService
from src.commons.settings.loader import get_settings as _load_settings
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)

logger = get_logger(__name__)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from config files and environment.
    """
    return _load_settings()


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    """Get infrastructure factory with all providers.

    Args:
        settings: Application settings.

    Returns:
        Configured infrastructure factory.
    """
    return get_factory(settings)


def get_storage_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> VideoStorageService:
    return VideoStorageService(factory.get_document_db(), settings.document_db)


def get_video_log_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> VideoLogService:
    return VideoLogService(factory.get_document_db(), settings.document_db)


def get_completion_checker(
    storage: Annotated[VideoStorageService, Depends(get_storage_service)],
) -> CompletionChecker:
    return CompletionChecker(storage)


def get_orchestrator(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    storage: Annotated[VideoStorageService, Depends(get_storage_service)],
    completion: Annotated[CompletionChecker, Depends(get_completion_checker)],
    video_logs: Annotated[VideoLogService, Depends(get_video_log_service)],
) -> PipelineOrchestrator:
    """Get the pipeline orchestrator wired to the work queue.

    Args:
        factory: Infrastructure factory.
        storage: Video storage service.
        completion: Completion checker.
        video_logs: Video log service.

    Returns:
        Configured orchestrator.
    """
    return PipelineOrchestrator(
        storage=storage,
        dispatcher=PipelineDispatcher(factory.get_work_queue()),
        completion=completion,
        video_logs=video_logs,
    )


def get_status_reconciler(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
    storage: Annotated[VideoStorageService, Depends(get_storage_service)],
    orchestrator: Annotated[PipelineOrchestrator, Depends(get_orchestrator)],
) -> StatusReconciler:
    """Get the status reconciler.

    Args:
        factory: Infrastructure factory.
        settings: Application settings.
        storage: Video storage service.
        orchestrator: Pipeline orchestrator.

    Returns:
        Configured status reconciler.
    """
    return StatusReconciler(
        storage=storage,
        provider=factory.get_streaming_provider(),
        orchestrator=orchestrator,
        processing_settings=settings.processing,
        streaming_settings=settings.streaming,
    )


class _PollerHolder:
    """Process-wide poller so background polls outlive the request."""

    instance: StatusPoller | None = None


def get_status_poller(
    reconciler: Annotated[StatusReconciler, Depends(get_status_reconciler)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> StatusPoller:
    if _PollerHolder.instance is None:
        _PollerHolder.instance = StatusPoller(
            reconciler, settings.processing.poll_schedule_seconds
        )
    return _PollerHolder.instance


def get_retrigger_controller(
    storage: Annotated[VideoStorageService, Depends(get_storage_service)],
    orchestrator: Annotated[PipelineOrchestrator, Depends(get_orchestrator)],
    video_logs: Annotated[VideoLogService, Depends(get_video_log_service)],
) -> RetriggerController:
    return RetriggerController(storage, orchestrator, video_logs)


def get_video_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    storage: Annotated[VideoStorageService, Depends(get_storage_service)],
    video_logs: Annotated[VideoLogService, Depends(get_video_log_service)],
    poller: Annotated[StatusPoller, Depends(get_status_poller)],
) -> VideoService:
    return VideoService(
        storage=storage,
        provider=factory.get_streaming_provider(),
        video_logs=video_logs,
        poller=poller,
    )


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
StorageServiceDep = Annotated[VideoStorageService, Depends(get_storage_service)]
CompletionCheckerDep = Annotated[CompletionChecker, Depends(get_completion_checker)]
StatusReconcilerDep = Annotated[StatusReconciler, Depends(get_status_reconciler)]
RetriggerControllerDep = Annotated[RetriggerController, Depends(get_retrigger_controller)]
VideoServiceDep = Annotated[VideoService, Depends(get_video_service)]


async def init_services(settings: Settings) -> None:
    """Initialize infrastructure services on startup.

    Args:
        settings: Application settings.
    """
    factory = get_factory(settings)

    # Pre-initialize critical services to fail fast
    document_db = factory.get_document_db()
    factory.get_work_queue()
    factory.get_streaming_provider()

    await VideoStorageService(document_db, settings.document_db).ensure_indexes()


async def shutdown_services() -> None:
    """Cancel background polls and shut down infrastructure services."""
    if _PollerHolder.instance is not None:
        await _PollerHolder.instance.shutdown()
        _PollerHolder.instance = None
    try:
        factory = get_factory()
        await factory.close_all()
    except ValueError:
        pass  # Factory not initialized
    finally:
        reset_factory()
        get_settings.cache_clear()
