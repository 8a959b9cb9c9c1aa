from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from traced_chatbot.exceptions import GenerationError, ValidationError
from traced_chatbot.llm_client import spinner
from traced_chatbot.messages import Message, ToolCall, ToolResult, tool_call_message, tool_result_message
from traced_chatbot.provider import LLMProvider
from traced_chatbot.tool_registry import ToolRegistry


@dataclass
class GenerationResult:
    text: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)
    steps: int = 1
    truncated: bool = False


class TextGenerator:
    """Runs model steps, executing requested tools between them.

    Works on a private copy of the history: nothing here touches the session.
    """

    def __init__(
        self,
        *,
        provider: LLMProvider,
        registry: ToolRegistry,
        model: str,
        max_tokens: int,
        temperature: float,
        system_prompt: str = "",
        max_steps: int = 5,
        tool_timeout_seconds: float | None = None,
    ) -> None:
        self._provider = provider
        self._registry = registry
        self._model = model
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._system_prompt = system_prompt
        self._max_steps = max(1, max_steps)
        self._tool_timeout_seconds = tool_timeout_seconds
        self._converted_tools = provider.convert_tools(registry.definitions())

    async def generate(self, messages: list[Message] | tuple[Message, ...]) -> GenerationResult:
        working = list(messages)
        all_calls: list[ToolCall] = []
        all_results: list[ToolResult] = []

        step = 0
        while True:
            step += 1
            response = await self._call_provider(working)

            if not response.tool_calls:
                truncated = response.stop_reason == "max_tokens"
                if truncated:
                    logger.warning(f"Reply hit the max_tokens limit ({self._max_tokens}) and was cut off")
                return GenerationResult(response.text, all_calls, all_results, step, truncated)

            results = await self.execute_tools(response.tool_calls)
            all_calls.extend(response.tool_calls)
            all_results.extend(results)

            if step >= self._max_steps:
                logger.warning(
                    f"Stopped after {step} step(s) with tool calls still pending; "
                    f"returning the last step's text"
                )
                return GenerationResult(response.text, all_calls, all_results, step)

            working.append(tool_call_message(response.tool_calls))
            working.append(tool_result_message(results))

    async def _call_provider(self, messages: list[Message]):
        try:
            with spinner():
                return await self._provider.generate(
                    self._model,
                    self._max_tokens,
                    self._temperature,
                    self._system_prompt,
                    messages,
                    self._converted_tools,
                )
        except Exception as ex:
            raise GenerationError(f"{type(ex).__name__}: {ex}") from ex

    async def execute_tools(self, calls: list[ToolCall]) -> list[ToolResult]:
        """Run calls in request order.

        Bad input is reported back to the model as an error result.
        ToolNotFoundError and ToolExecutionError propagate.
        """
        results: list[ToolResult] = []
        names = ", ".join(c.name for c in calls)
        with spinner(label=f" Running {names}..."):
            for call in calls:
                try:
                    output = await self._registry.execute(
                        call.name,
                        call.input,
                        timeout_seconds=self._tool_timeout_seconds,
                    )
                except ValidationError as ex:
                    logger.warning(str(ex))
                    results.append(ToolResult(call.id, call.name, f"Error: {ex}", is_error=True))
                    continue
                logger.debug(f"Tool {call.name} ({call.id}) returned {len(output)} chars")
                results.append(ToolResult(call.id, call.name, output))
        return results
