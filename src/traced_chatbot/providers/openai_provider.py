import json
from typing import Any

import braintrust
import openai
from loguru import logger
from tenacity import retry

from traced_chatbot.llm_client import default_retry_kwargs
from traced_chatbot.messages import Message, ToolCall
from traced_chatbot.provider import ProviderResponse

# Map OpenAI finish reasons to the stop reasons used internally.
_STOP_REASON_MAP = {
    "stop": "end_turn",
    "tool_calls": "tool_use",
    "length": "max_tokens",
}


def _to_openai_messages(system_prompt: str, messages: list[Message]) -> list[dict]:
    """Convert history messages to OpenAI chat format."""
    out: list[dict] = []

    if system_prompt:
        out.append({"role": "system", "content": system_prompt})

    for msg in messages:
        if msg.kind == "text":
            out.append({"role": msg.role, "content": msg.text})
        elif msg.kind == "tool_calls":
            out.append({
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {
                            "name": call.name,
                            "arguments": json.dumps(call.input),
                        },
                    }
                    for call in msg.tool_calls
                ],
            })
        else:
            # One OpenAI tool message per result
            for result in msg.tool_results:
                out.append({
                    "role": "tool",
                    "tool_call_id": result.tool_call_id,
                    "content": result.output,
                })

    return out


def _to_openai_tools(tools: list[dict]) -> list[dict]:
    """Convert internal tool dicts to OpenAI function-calling format."""
    return [
        {
            "type": "function",
            "function": {
                "name": t["name"],
                "description": t.get("description", ""),
                "parameters": t.get("input_schema", {}),
            },
        }
        for t in tools
    ]


def _parse_arguments(raw_args: str | None) -> dict:
    if not raw_args:
        return {}
    try:
        parsed = json.loads(raw_args)
    except json.JSONDecodeError:
        logger.warning(f"Failed to parse tool call arguments: {raw_args[:200]}")
        return {}
    return parsed if isinstance(parsed, dict) else {}


class OpenAIProvider:
    def __init__(self, api_key: str, *, timeout_seconds: float | None = None, trace_calls: bool = False):
        kwargs: dict[str, Any] = {"api_key": api_key}
        if timeout_seconds:
            kwargs["timeout"] = timeout_seconds
        client = openai.AsyncOpenAI(**kwargs)
        if trace_calls:
            client = braintrust.wrap_openai(client)
        self._client = client

    def convert_tools(self, definitions: dict[str, dict[str, Any]]) -> list[dict]:
        return [
            {
                "name": name,
                "description": d.get("description", ""),
                "input_schema": d.get("input_schema", {}),
            }
            for name, d in definitions.items()
        ]

    @retry(**default_retry_kwargs((
        openai.RateLimitError,
        openai.APIConnectionError,
        openai.APITimeoutError,
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
        oai_messages = _to_openai_messages(system_prompt, messages)
        oai_tools = _to_openai_tools(tools)

        logger.debug(
            f"API request: model={model}, max_tokens={max_tokens}, "
            f"messages={len(oai_messages)}, tools={len(oai_tools)}"
        )
        kwargs: dict = dict(
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=oai_messages,
        )
        if oai_tools:
            kwargs["tools"] = oai_tools

        response = await self._client.chat.completions.create(**kwargs)

        choice = response.choices[0]
        message = choice.message
        stop_reason = _STOP_REASON_MAP.get(choice.finish_reason or "stop", "end_turn")

        tool_calls = [
            ToolCall(
                id=tc.id,
                name=tc.function.name,
                input=_parse_arguments(tc.function.arguments),
            )
            for tc in (message.tool_calls or [])
        ]
        text = message.content or ""

        logger.debug(
            f"API response: stop_reason={stop_reason}, "
            f"text_len={len(text)}, tool_calls={len(tool_calls)}"
        )
        return ProviderResponse(text=text, tool_calls=tool_calls, stop_reason=stop_reason)
