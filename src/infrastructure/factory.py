"""Builds and caches the infrastructure clients named in settings."""

from typing import Any, cast

from src.commons.infrastructure.documentdb import (
    DocumentDBBase,
    InMemoryDocumentDB,
    MongoDBDocumentDB,
)
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.infrastructure.llm import AnthropicLLMService, LLMServiceBase, OpenAILLMService
from src.infrastructure.queue import DocumentWorkQueue, WorkQueueBase
from src.infrastructure.streaming import CloudflareStreamProvider, StreamingProviderBase
from src.infrastructure.transcription import (
    OpenAIWhisperTranscription,
    TranscriptionServiceBase,
)


class InfrastructureFactory:
    """Lazily constructs one client per infrastructure concern.

    Which implementation is built is decided by settings; the API process,
    the worker script and the sync script each own one factory.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._instances: dict[str, Any] = {}
        self._logger = get_logger(__name__)

    def get_document_db(self) -> DocumentDBBase:
        """Document store: MongoDB, or in-memory when provider is ``memory``.

        Returns:
            The shared document store.
        """
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            if doc_settings.provider == "memory":
                self._instances["document_db"] = InMemoryDocumentDB()
            else:
                if doc_settings.username and doc_settings.password:
                    connection_string = (
                        f"mongodb://{doc_settings.username}:{doc_settings.password}"
                        f"@{doc_settings.host}:{doc_settings.port}"
                        f"/?authSource={doc_settings.auth_source}"
                    )
                else:
                    connection_string = (
                        f"mongodb://{doc_settings.host}:{doc_settings.port}"
                    )
                self._instances["document_db"] = MongoDBDocumentDB(
                    connection_string=connection_string,
                    database_name=doc_settings.database,
                )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_work_queue(self) -> WorkQueueBase:
        """Phase job queue, kept in the document store.

        Returns:
            Queue stored in the document database.
        """
        if "work_queue" not in self._instances:
            self._instances["work_queue"] = DocumentWorkQueue(
                document_db=self.get_document_db(),
                collection=self._settings.document_db.collections.processing_jobs,
                visibility_timeout_seconds=(
                    self._settings.processing.visibility_timeout_seconds
                ),
            )
        return cast("WorkQueueBase", self._instances["work_queue"])

    def get_streaming_provider(self) -> StreamingProviderBase:
        """Cloudflare Stream client.

        Returns:
            The streaming provider.
        """
        if "streaming" not in self._instances:
            stream_settings = self._settings.streaming
            self._instances["streaming"] = CloudflareStreamProvider(
                account_id=stream_settings.account_id,
                api_token=stream_settings.api_token,
                base_url=stream_settings.base_url,
                delivery_base_url=stream_settings.delivery_base_url,
                timeout=stream_settings.timeout_seconds,
                upload_expiry_minutes=stream_settings.upload_expiry_minutes,
                max_duration_seconds=stream_settings.max_duration_seconds,
            )
        return cast("StreamingProviderBase", self._instances["streaming"])

    def get_transcription_service(self) -> TranscriptionServiceBase:
        """Whisper transcription client used by the transcription phase.

        Returns:
            The transcription service.
        """
        if "transcription" not in self._instances:
            trans_settings = self._settings.transcription
            self._instances["transcription"] = OpenAIWhisperTranscription(
                api_key=trans_settings.api_key,
                model=trans_settings.model,
                timeout=trans_settings.timeout_seconds,
            )
        return cast("TranscriptionServiceBase", self._instances["transcription"])

    def get_llm_service(self) -> LLMServiceBase:
        """Chat model used by the text phases.

        Returns:
            OpenAI (also Azure OpenAI via endpoint) or Anthropic client.

        Raises:
            ValueError: If ``llm.provider`` is unknown.
        """
        if "llm" not in self._instances:
            llm_settings = self._settings.llm
            provider = llm_settings.provider

            if provider == "anthropic":
                self._instances["llm"] = AnthropicLLMService(
                    api_key=llm_settings.api_key,
                    model=llm_settings.model,
                    base_url=llm_settings.endpoint,
                )
            elif provider in ("openai", "azure_openai"):
                self._instances["llm"] = OpenAILLMService(
                    api_key=llm_settings.api_key,
                    model=llm_settings.model,
                    base_url=llm_settings.endpoint,
                    timeout=llm_settings.timeout_seconds,
                )
            else:
                raise ValueError(f"Unsupported LLM provider: {provider}")

        return cast("LLMServiceBase", self._instances["llm"])

    async def close_all(self) -> None:
        """Close every client built so far; close failures are only logged."""
        for name, instance in self._instances.items():
            close = getattr(instance, "close", None)
            if close is None:
                continue
            try:
                result = close()
                if hasattr(result, "__await__"):
                    await result
            except Exception as e:
                self._logger.warning(
                    "Error closing service", extra={"service": name, "error": str(e)}
                )

        self._instances.clear()


class _FactoryHolder:
    """Module-level slot for the API process's factory."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Factory shared by the API dependencies.

    Args:
        settings: Required the first time, ignored afterwards.

    Returns:
        The shared factory.

    Raises:
        ValueError: If called before any settings were given.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Forget the shared factory without closing it."""
    _FactoryHolder.instance = None
