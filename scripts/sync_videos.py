#!/usr/bin/env python3
"""
Reconcile video status with the streaming provider.

Meant to run periodically (cron or a scheduler) to catch videos whose
webhooks were lost.

Usage:
    python scripts/sync_videos.py [--video-id ID]

Options:
    --video-id   Sync a single video instead of every processing video
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from src.application.services.completion import CompletionChecker  # noqa: E402
from src.application.services.dispatcher import PipelineDispatcher  # noqa: E402
from src.application.services.orchestrator import PipelineOrchestrator  # noqa: E402
from src.application.services.status_sync import StatusReconciler  # noqa: E402
from src.application.services.storage import VideoStorageService  # noqa: E402
from src.application.services.video_logs import VideoLogService  # noqa: E402
from src.commons.settings.loader import get_settings  # noqa: E402
from src.commons.telemetry import configure_logging, log_exceptions  # noqa: E402
from src.infrastructure.factory import InfrastructureFactory  # noqa: E402


@log_exceptions(message="Status sync run failed")
async def run(video_id: str | None) -> int:
    settings = get_settings()
    configure_logging(
        level=settings.telemetry.log_level,
        format_type=settings.telemetry.log_format,
    )

    factory = InfrastructureFactory(settings)
    storage = VideoStorageService(factory.get_document_db(), settings.document_db)
    video_logs = VideoLogService(factory.get_document_db(), settings.document_db)
    orchestrator = PipelineOrchestrator(
        storage=storage,
        dispatcher=PipelineDispatcher(factory.get_work_queue()),
        completion=CompletionChecker(storage),
        video_logs=video_logs,
    )
    reconciler = StatusReconciler(
        storage=storage,
        provider=factory.get_streaming_provider(),
        orchestrator=orchestrator,
        processing_settings=settings.processing,
        streaming_settings=settings.streaming,
    )

    try:
        if video_id:
            video = await reconciler.sync_video_status(video_id)
            print(f"{video.id}: {video.status.value} (pipeline {video.pipeline_state.value})")
            return 0

        report = await reconciler.sync_all_processing_videos()
        print(
            f"Synced {report.synced}/{report.total} videos, "
            f"{report.changed} changed, {report.failed} failed"
        )
        for error in report.errors:
            print(f"  {error.video_id}: {error.error}")
        return 1 if report.failed else 0
    finally:
        await factory.close_all()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Reconcile video status with the streaming provider",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--video-id", help="Sync a single video")
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args.video_id)))


if __name__ == "__main__":
    main()
