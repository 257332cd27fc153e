"""Bulk status synchronization endpoint."""

from fastapi import APIRouter

from src.api.dependencies import StatusReconcilerDep
from src.application.dtos.processing import SweepReport

router = APIRouter()


@router.post(
    "/sync",
    response_model=SweepReport,
    summary="Sync all processing videos",
    description=(
        "Reconcile every video in processing status with the streaming "
        "provider. Individual failures are reported, not raised."
    ),
)
async def sync_all(reconciler: StatusReconcilerDep) -> SweepReport:
    return await reconciler.sync_all_processing_videos()
