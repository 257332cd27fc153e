"""Infrastructure layer - external service implementations."""

from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)
from src.infrastructure.llm import (
    AnthropicLLMService,
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
    OpenAILLMService,
)
from src.infrastructure.queue import DocumentWorkQueue, WorkQueueBase
from src.infrastructure.streaming import (
    CloudflareStreamProvider,
    DirectUpload,
    StreamInfo,
    StreamingProviderBase,
)
from src.infrastructure.transcription import (
    OpenAIWhisperTranscription,
    TranscriptionResult,
    TranscriptionSegment,
    TranscriptionServiceBase,
)

__all__ = [
    # Factory
    "InfrastructureFactory",
    "get_factory",
    "reset_factory",
    # Streaming
    "StreamingProviderBase",
    "StreamInfo",
    "DirectUpload",
    "CloudflareStreamProvider",
    # Queue
    "WorkQueueBase",
    "DocumentWorkQueue",
    # Transcription
    "TranscriptionServiceBase",
    "TranscriptionResult",
    "TranscriptionSegment",
    "OpenAIWhisperTranscription",
    # LLM
    "LLMServiceBase",
    "LLMResponse",
    "LLMUsage",
    "Message",
    "MessageRole",
    "OpenAILLMService",
    "AnthropicLLMService",
]
