"""LLM service abstractions and implementations."""

from src.infrastructure.llm.anthropic_llm import AnthropicLLMService
from src.infrastructure.llm.base import (
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
)
from src.infrastructure.llm.openai_llm import OpenAILLMService

__all__ = [
    "LLMServiceBase",
    "LLMResponse",
    "LLMUsage",
    "Message",
    "MessageRole",
    "OpenAILLMService",
    "AnthropicLLMService",
]
