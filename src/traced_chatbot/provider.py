from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from traced_chatbot.messages import Message, ToolCall


@dataclass
class ProviderResponse:
    text: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    stop_reason: str = "end_turn"


@runtime_checkable
class LLMProvider(Protocol):
    async def generate(
        self,
        model: str,
        max_tokens: int,
        temperature: float,
        system_prompt: str,
        messages: list[Message],
        tools: list[dict],
    ) -> ProviderResponse:
        """Run one model step over the full history.

        The response carries the step's text and any tool calls the model
        requested; tools are never executed by the provider.
        """
        ...

    def convert_tools(self, definitions: dict[str, dict[str, Any]]) -> list[dict]:
        """Convert registry definitions (name -> description/schema) to the provider's tool format."""
        ...


def create_provider(
    provider_name: str,
    api_key: str,
    *,
    timeout_seconds: float | None = None,
    trace_calls: bool = False,
) -> LLMProvider:
    """Factory: create an LLMProvider by name.

    With ``trace_calls`` the SDK client is wrapped by Braintrust so every model
    call is logged with its messages, token usage and latency.
    """
    name = provider_name.strip().lower()
    if name == "openai":
        from traced_chatbot.providers.openai_provider import OpenAIProvider
        return OpenAIProvider(api_key, timeout_seconds=timeout_seconds, trace_calls=trace_calls)
    if name == "anthropic":
        from traced_chatbot.providers.anthropic_provider import AnthropicProvider
        return AnthropicProvider(api_key, timeout_seconds=timeout_seconds, trace_calls=trace_calls)
    raise ValueError(f"Unknown provider: {provider_name!r}. Supported: 'openai', 'anthropic'")
