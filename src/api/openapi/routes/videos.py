"""Video management and processing endpoints."""

from typing import Annotated

from fastapi import APIRouter, Header, Query, status

from src.api.dependencies import (
    CompletionCheckerDep,
    RetriggerControllerDep,
    StatusReconcilerDep,
    StorageServiceDep,
    VideoServiceDep,
)
from src.api.middleware.error_handler import APIError
from src.application.dtos.processing import (
    PhaseRunInfo,
    ProcessingStatusResponse,
    RetriggerRequest,
    RetriggerResponse,
)
from src.application.dtos.videos import (
    CreateUploadRequest,
    CreateUploadResponse,
    DeleteResponse,
    PaginationInfo,
    VideoListResponse,
    VideoLogsResponse,
    VideoResponse,
)
from src.domain.exceptions import VideoNotFoundException
from src.domain.models.video import VideoStatus

router = APIRouter()


@router.post(
    "/videos/upload",
    response_model=CreateUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create upload",
    description="Reserve a stream and get a one-time direct upload URL.",
)
async def create_upload(
    request: CreateUploadRequest,
    service: VideoServiceDep,
) -> CreateUploadResponse:
    """Register a pending video and return where to upload it."""
    return await service.create_upload(
        title=request.title,
        description=request.description,
    )


@router.get(
    "/videos",
    response_model=VideoListResponse,
    summary="List videos",
    description="List videos with optional status filtering and pagination.",
)
async def list_videos(
    service: VideoServiceDep,
    status_filter: Annotated[
        VideoStatus | None,
        Query(
            alias="status",
            description="Filter by status (pending_upload, processing, ready, error)",
        ),
    ] = None,
    page: Annotated[
        int,
        Query(ge=1, description="Page number"),
    ] = 1,
    page_size: Annotated[
        int,
        Query(ge=1, le=100, description="Items per page"),
    ] = 20,
) -> VideoListResponse:
    """List videos newest first."""
    skip = (page - 1) * page_size
    videos, total_items = await service.list_videos(
        status=status_filter,
        skip=skip,
        limit=page_size,
    )

    return VideoListResponse(
        videos=[VideoResponse.from_video(v) for v in videos],
        pagination=PaginationInfo(
            page=page,
            page_size=page_size,
            total_items=total_items,
            total_pages=(total_items + page_size - 1) // page_size,
        ),
    )


@router.get(
    "/videos/{video_id}",
    response_model=VideoResponse,
    summary="Get video details",
    description="Get detailed information about a specific video.",
)
async def get_video(
    video_id: str,
    service: VideoServiceDep,
) -> VideoResponse:
    """Get details for a specific video."""
    return VideoResponse.from_video(await service.get_video(video_id))


@router.delete(
    "/videos/{video_id}",
    response_model=DeleteResponse,
    summary="Delete video",
    description="Delete a video, its artifacts and its provider stream.",
)
async def delete_video(
    video_id: str,
    service: VideoServiceDep,
    x_confirm_delete: Annotated[
        str | None,
        Header(description="Must be 'true' to confirm deletion"),
    ] = None,
) -> DeleteResponse:
    """Delete a video and all associated data.

    Requires X-Confirm-Delete header set to 'true'.
    """
    if x_confirm_delete != "true":
        raise APIError(
            code="CONFIRMATION_REQUIRED",
            message="Deletion requires X-Confirm-Delete header set to 'true'",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    await service.delete_video(video_id)

    return DeleteResponse(
        success=True,
        video_id=video_id,
        message="Video and all associated data deleted successfully",
    )


@router.get(
    "/videos/{video_id}/processing-status",
    response_model=ProcessingStatusResponse,
    summary="Get processing status",
    description="Per-artifact completion plus the pipeline's phase runs.",
)
async def get_processing_status(
    video_id: str,
    storage: StorageServiceDep,
    completion: CompletionCheckerDep,
) -> ProcessingStatusResponse:
    """Report which artifacts exist and where the pipeline is."""
    video = await storage.get_video(video_id)
    if video is None:
        raise VideoNotFoundException(video_id)

    processing_status = await completion.get_processing_status(video_id)
    runs = await storage.list_phase_runs(video_id)

    return ProcessingStatusResponse(
        video_id=video_id,
        **processing_status.as_dict(),
        pipeline_state=video.pipeline_state.value,
        pipeline_phase=video.pipeline_phase,
        phases=[
            PhaseRunInfo(
                phase=run.phase.value,
                state=run.state,
                attempts=run.attempts,
                error=run.error,
                updated_at=run.updated_at,
            )
            for run in runs
        ],
    )


@router.get(
    "/videos/{video_id}/logs",
    response_model=VideoLogsResponse,
    summary="Get video logs",
    description="Processing and audit log entries for a video, newest first.",
)
async def get_video_logs(
    video_id: str,
    service: VideoServiceDep,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> VideoLogsResponse:
    entries = await service.get_video_logs(video_id, limit=limit)
    return VideoLogsResponse(video_id=video_id, entries=entries)


@router.post(
    "/videos/{video_id}/sync",
    response_model=VideoResponse,
    summary="Sync video status",
    description="Reconcile the video's status with the streaming provider.",
)
async def sync_video(
    video_id: str,
    reconciler: StatusReconcilerDep,
) -> VideoResponse:
    video = await reconciler.sync_video_status(video_id)
    return VideoResponse.from_video(video)


@router.post(
    "/videos/{video_id}/process",
    response_model=RetriggerResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Retrigger processing",
    description=(
        "Re-run one processing phase, or all of them. With force=true the "
        "phase's existing artifacts are deleted first (titles are kept)."
    ),
)
async def retrigger_processing(
    video_id: str,
    request: RetriggerRequest,
    controller: RetriggerControllerDep,
) -> RetriggerResponse:
    """Enqueue a re-run; the job completes asynchronously."""
    return await controller.retrigger(video_id, request.phase, force=request.force)
