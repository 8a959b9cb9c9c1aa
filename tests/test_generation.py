import asyncio
import random
import unittest

from traced_chatbot.exceptions import GenerationError, ToolExecutionError, ToolNotFoundError
from traced_chatbot.generation import TextGenerator
from traced_chatbot.messages import ToolCall, user_message
from traced_chatbot.provider import ProviderResponse
from traced_chatbot.tool_registry import build_default_registry


class _ScriptedProvider:
    def __init__(self, responses: list) -> None:
        self._responses = list(responses)
        self.calls: list[list] = []
        self.tools: list[dict] = []

    def convert_tools(self, definitions: dict) -> list[dict]:
        return [{"name": name, **d} for name, d in definitions.items()]

    async def generate(self, model, max_tokens, temperature, system_prompt, messages, tools):
        self.calls.append(list(messages))
        self.tools = tools
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _generator(provider: _ScriptedProvider, **kwargs) -> TextGenerator:
    return TextGenerator(
        provider=provider,
        registry=build_default_registry(rng=random.Random(3)),
        model="test-model",
        max_tokens=256,
        temperature=0.0,
        **kwargs,
    )


def _weather_call(call_id: str = "call_1", city: str = "Paris") -> ToolCall:
    return ToolCall(call_id, "getWeather", {"city": city})


class TextGeneratorTests(unittest.TestCase):
    def test_plain_text_response(self) -> None:
        provider = _ScriptedProvider([ProviderResponse("Hello!")])
        result = asyncio.run(_generator(provider).generate([user_message("hi")]))

        self.assertEqual("Hello!", result.text)
        self.assertEqual([], result.tool_calls)
        self.assertEqual(1, result.steps)
        self.assertFalse(result.truncated)
        self.assertEqual("getWeather", provider.tools[0]["name"])

    def test_token_limit_marks_reply_truncated(self) -> None:
        provider = _ScriptedProvider([ProviderResponse("It is sunny in Par", [], "max_tokens")])
        result = asyncio.run(_generator(provider).generate([user_message("weather in Paris?")]))

        self.assertTrue(result.truncated)
        self.assertEqual("It is sunny in Par", result.text)

    def test_tool_round_then_text(self) -> None:

        provider = _ScriptedProvider([
            ProviderResponse("", [_weather_call()], "tool_use"),
            ProviderResponse("It is nice in Paris."),
        ])
        result = asyncio.run(_generator(provider).generate([user_message("weather in Paris?")]))

        self.assertEqual("It is nice in Paris.", result.text)
        self.assertEqual(1, len(result.tool_calls))
        self.assertEqual("call_1", result.tool_results[0].tool_call_id)
        self.assertIn("Paris", result.tool_results[0].output)
        self.assertEqual(2, result.steps)

        second_step = provider.calls[1]
        self.assertEqual(["user", "assistant", "tool"], [m.role for m in second_step])
        self.assertEqual("tool_calls", second_step[1].kind)

    def test_input_history_not_mutated(self) -> None:
        history = [user_message("weather?")]
        provider = _ScriptedProvider([
            ProviderResponse("", [_weather_call()], "tool_use"),
            ProviderResponse("done"),
        ])
        asyncio.run(_generator(provider).generate(history))
        self.assertEqual(1, len(history))

    def test_invalid_tool_input_reported_as_failed_step(self) -> None:
        provider = _ScriptedProvider([
            ProviderResponse("", [ToolCall("call_1", "getWeather", {"town": "Paris"})], "tool_use"),
            ProviderResponse("Which city?"),
        ])
        result = asyncio.run(_generator(provider).generate([user_message("weather?")]))

        self.assertEqual("Which city?", result.text)
        self.assertTrue(result.tool_results[0].is_error)
        self.assertIn("city", result.tool_results[0].output)

    def test_unknown_tool_raises(self) -> None:
        provider = _ScriptedProvider([
            ProviderResponse("", [ToolCall("call_1", "getTime", {})], "tool_use"),
        ])
        with self.assertRaises(ToolNotFoundError):
            asyncio.run(_generator(provider).generate([user_message("time?")]))

    def test_tool_failure_raises_tool_execution_error(self) -> None:
        registry = build_default_registry()
        tool = registry.lookup("getWeather")

        async def boom(tool_input):
            raise OSError("sensor offline")

        tool.execute = boom  # type: ignore[method-assign]
        provider = _ScriptedProvider([ProviderResponse("", [_weather_call()], "tool_use")])
        generator = TextGenerator(
            provider=provider, registry=registry, model="m", max_tokens=10, temperature=0.0
        )
        with self.assertRaises(ToolExecutionError):
            asyncio.run(generator.generate([user_message("weather?")]))

    def test_provider_failure_wrapped(self) -> None:
        provider = _ScriptedProvider([ConnectionError("network unreachable")])
        with self.assertRaises(GenerationError) as ctx:
            asyncio.run(_generator(provider).generate([user_message("hi")]))
        self.assertIn("network unreachable", str(ctx.exception))
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)

    def test_max_steps_bounds_tool_rounds(self) -> None:
        provider = _ScriptedProvider([
            ProviderResponse("", [_weather_call("c1")], "tool_use"),
            ProviderResponse("partial", [_weather_call("c2", "Rome")], "tool_use"),
            ProviderResponse("never reached"),
        ])
        result = asyncio.run(_generator(provider, max_steps=2).generate([user_message("weather?")]))

        self.assertEqual("partial", result.text)
        self.assertEqual(2, result.steps)
        self.assertEqual(["c1", "c2"], [c.id for c in result.tool_calls])
        self.assertEqual(2, len(result.tool_results))
        self.assertEqual(2, len(provider.calls))


if __name__ == "__main__":
    unittest.main()
