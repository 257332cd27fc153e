#!/usr/bin/env python3
"""
Run the processing-phase worker.

Claims jobs from the work queue and executes transcription, tagging,
chapters, abstract, title generation and thumbnail phases until
interrupted.

Usage:
    python scripts/run_worker.py [--once] [--concurrency N]

Options:
    --once          Handle at most one job per worker and exit
    --concurrency   Number of concurrent worker loops (default 1)
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv()

from src.application.services.completion import CompletionChecker  # noqa: E402
from src.application.services.dispatcher import PipelineDispatcher  # noqa: E402
from src.application.services.orchestrator import PipelineOrchestrator  # noqa: E402
from src.application.services.phases import PhaseProcessor  # noqa: E402
from src.application.services.storage import VideoStorageService  # noqa: E402
from src.application.services.video_logs import VideoLogService  # noqa: E402
from src.application.services.worker import PhaseWorker  # noqa: E402
from src.commons.settings.loader import get_settings  # noqa: E402
from src.commons.settings.models import Settings  # noqa: E402
from src.commons.telemetry import configure_logging, get_logger  # noqa: E402
from src.commons.telemetry.langfuse_client import (  # noqa: E402
    init_langfuse,
    shutdown_langfuse,
)
from src.infrastructure.factory import InfrastructureFactory  # noqa: E402


def build_worker(settings: Settings, factory: InfrastructureFactory) -> PhaseWorker:
    """Wire a worker from configured infrastructure."""
    storage = VideoStorageService(factory.get_document_db(), settings.document_db)
    video_logs = VideoLogService(factory.get_document_db(), settings.document_db)
    queue = factory.get_work_queue()
    orchestrator = PipelineOrchestrator(
        storage=storage,
        dispatcher=PipelineDispatcher(queue),
        completion=CompletionChecker(storage),
        video_logs=video_logs,
    )
    processor = PhaseProcessor(
        storage=storage,
        provider=factory.get_streaming_provider(),
        transcription=factory.get_transcription_service(),
        llm=factory.get_llm_service(),
        processing_settings=settings.processing,
        llm_settings=settings.llm,
        language_hint=settings.transcription.language,
    )
    return PhaseWorker(
        queue=queue,
        storage=storage,
        orchestrator=orchestrator,
        processor=processor,
        video_logs=video_logs,
        settings=settings.processing,
    )


async def run(once: bool, concurrency: int) -> None:
    settings = get_settings()
    configure_logging(
        level=settings.telemetry.log_level,
        format_type=settings.telemetry.log_format,
    )
    logger = get_logger("scripts.run_worker")
    if settings.telemetry.enabled:
        init_langfuse(settings.telemetry.langfuse)

    factory = InfrastructureFactory(settings)
    worker = build_worker(settings, factory)
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    try:
        if once:
            await asyncio.gather(*(worker.run_once() for _ in range(concurrency)))
        else:
            logger.info(
                "Starting workers",
                extra={
                    "concurrency": concurrency,
                    "pending_jobs": await factory.get_work_queue().pending_count(),
                },
            )
            await asyncio.gather(*(worker.run(stop) for _ in range(concurrency)))
    finally:
        await factory.close_all()
        shutdown_langfuse()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run the processing-phase worker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--once", action="store_true", help="Handle at most one job and exit"
    )
    parser.add_argument(
        "--concurrency", type=int, default=1, help="Concurrent worker loops"
    )
    args = parser.parse_args()

    asyncio.run(run(args.once, max(1, args.concurrency)))


if __name__ == "__main__":
    main()
