"""Anthropic implementation of LLM service."""

from typing import Any

from anthropic import AsyncAnthropic

from src.commons.telemetry.langfuse_client import (
    create_llm_generation,
    end_llm_generation,
)
from src.infrastructure.llm.base import (
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
)


class AnthropicLLMService(LLMServiceBase):
    """Anthropic messages API client."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-haiku-latest",
        base_url: str | None = None,
        max_retries: int = 2,
    ) -> None:
        """Initialize Anthropic LLM client.

        Args:
            api_key: Anthropic API key.
            model: Default model to use.
            base_url: Optional custom API endpoint.
            max_retries: Maximum number of retries for failed requests.
        """
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            max_retries=max_retries,
        )
        self._model = model

    async def generate(
        self,
        messages: list[Message],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        json_mode: bool = False,  # noqa: ARG002 - Claude handles JSON via prompting
    ) -> LLMResponse:
        """Generate a completion."""
        use_model = model or self._model
        # Anthropic takes the system prompt separately from the turns
        system_prompt = "\n\n".join(
            m.content for m in messages if m.role == MessageRole.SYSTEM
        )
        turns = [
            {"role": m.role.value, "content": m.content}
            for m in messages
            if m.role != MessageRole.SYSTEM
        ]

        kwargs: dict[str, Any] = {
            "model": use_model,
            "messages": turns,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        generation = create_llm_generation(
            name="anthropic_messages",
            model=use_model,
            input_messages=[{"role": m.role.value, "content": m.content} for m in messages],
            model_parameters={"temperature": temperature, "max_tokens": max_tokens},
            metadata={"provider": "anthropic"},
        )

        try:
            response = await self._client.messages.create(**kwargs)
        except Exception as e:
            end_llm_generation(generation, None, level="ERROR", status_message=str(e))
            raise

        content = next(
            (block.text for block in response.content if block.type == "text"), ""
        )
        result = LLMResponse(
            content=content,
            finish_reason=response.stop_reason or "end_turn",
            usage=LLMUsage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
                total_tokens=response.usage.input_tokens + response.usage.output_tokens,
            ),
            model=response.model,
        )
        end_llm_generation(generation, result.content, usage=result.usage.as_dict())
        return result

    @property
    def default_model(self) -> str:
        return self._model
