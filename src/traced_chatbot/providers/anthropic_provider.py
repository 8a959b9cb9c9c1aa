from typing import Any

import anthropic
import braintrust
from loguru import logger
from tenacity import retry

from traced_chatbot.llm_client import default_retry_kwargs
from traced_chatbot.messages import Message, ToolCall
from traced_chatbot.provider import ProviderResponse


def _to_anthropic_messages(messages: list[Message]) -> list[dict]:
    out: list[dict] = []
    for msg in messages:
        if msg.kind == "text":
            # The Messages API rejects empty assistant turns
            if msg.role == "assistant" and not msg.text:
                continue
            out.append({"role": msg.role, "content": msg.text})
        elif msg.kind == "tool_calls":
            out.append({
                "role": "assistant",
                "content": [
                    {"type": "tool_use", "id": call.id, "name": call.name, "input": call.input}
                    for call in msg.tool_calls
                ],
            })
        else:
            blocks: list[dict] = []
            for result in msg.tool_results:
                block: dict[str, Any] = {
                    "type": "tool_result",
                    "tool_use_id": result.tool_call_id,
                    "content": result.output,
                }
                if result.is_error:
                    block["is_error"] = True
                blocks.append(block)
            out.append({"role": "user", "content": blocks})
    return out


class AnthropicProvider:
    def __init__(self, api_key: str, *, timeout_seconds: float | None = None, trace_calls: bool = False):
        kwargs: dict[str, Any] = {"api_key": api_key}
        if timeout_seconds:
            kwargs["timeout"] = timeout_seconds
        client = anthropic.AsyncAnthropic(**kwargs)
        if trace_calls:
            client = braintrust.wrap_anthropic(client)
        self._client = client

    def convert_tools(self, definitions: dict[str, dict[str, Any]]) -> list[dict]:
        return [
            {
                "name": name,
                "description": d.get("description", ""),
                "input_schema": d.get("input_schema", {"type": "object", "properties": {}}),
            }
            for name, d in definitions.items()
        ]

    @retry(**default_retry_kwargs((
        anthropic.RateLimitError,
        anthropic.APIConnectionError,
        anthropic.APITimeoutError,
    )))
    async def generate(
        self,
        model: str,
        max_tokens: int,
        temperature: float,
        system_prompt: str,
        messages: list[Message],
        tools: list[dict],
    ) -> ProviderResponse:
        api_messages = _to_anthropic_messages(messages)
        logger.debug(
            f"API request: model={model}, max_tokens={max_tokens}, "
            f"messages={len(api_messages)}, tools={len(tools)}"
        )
        kwargs: dict = dict(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=api_messages,
        )
        if system_prompt:
            kwargs["system"] = system_prompt
        if tools:
            kwargs["tools"] = tools

        response = await self._client.messages.create(**kwargs)

        usage = response.usage
        logger.debug(
            f"API response: stop_reason={response.stop_reason}, "
            f"input_tokens={usage.input_tokens}, output_tokens={usage.output_tokens}"
        )

        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(ToolCall(id=block.id, name=block.name, input=dict(block.input or {})))

        return ProviderResponse(
            text="".join(text_parts),
            tool_calls=tool_calls,
            stop_reason=response.stop_reason or "end_turn",
        )
