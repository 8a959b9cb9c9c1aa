import asyncio
import unittest
from types import SimpleNamespace
from unittest import mock

import anthropic

from traced_chatbot.messages import ToolCall, ToolResult, assistant_message, tool_call_message, tool_result_message, user_message
from traced_chatbot.providers.anthropic_provider import AnthropicProvider, _to_anthropic_messages


class _FakeMessages:
    def __init__(self, create_response=None):
        self._create_response = create_response
        self.kwargs: dict | None = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        return self._create_response


class _FakeClient:
    def __init__(self, create_response=None):
        self.messages = _FakeMessages(create_response)


class ToAnthropicMessagesTests(unittest.TestCase):
    def test_tool_round_shapes(self) -> None:
        result = _to_anthropic_messages([
            user_message("weather?"),
            tool_call_message([ToolCall("t1", "getWeather", {"city": "Paris"})]),
            tool_result_message([ToolResult("t1", "getWeather", "Error: bad", is_error=True)]),
            assistant_message("Sorry."),
        ])

        self.assertEqual(["user", "assistant", "user", "assistant"], [m["role"] for m in result])
        self.assertEqual(
            {"type": "tool_use", "id": "t1", "name": "getWeather", "input": {"city": "Paris"}},
            result[1]["content"][0],
        )
        self.assertEqual(
            {"type": "tool_result", "tool_use_id": "t1", "content": "Error: bad", "is_error": True},
            result[2]["content"][0],
        )

    def test_empty_assistant_text_dropped(self) -> None:
        result = _to_anthropic_messages([user_message("a"), assistant_message(""), user_message("b")])
        self.assertEqual(["a", "b"], [m["content"] for m in result])


class AnthropicProviderTests(unittest.TestCase):
    def _make_provider(self, create_response=None) -> AnthropicProvider:
        provider = AnthropicProvider.__new__(AnthropicProvider)
        provider._client = _FakeClient(create_response)
        return provider

    def test_convert_tools(self) -> None:
        provider = self._make_provider()
        result = provider.convert_tools({
            "getWeather": {"description": "Get weather", "input_schema": {"type": "object", "properties": {}}},
        })
        self.assertEqual("getWeather", result[0]["name"])
        self.assertEqual("Get weather", result[0]["description"])
        self.assertIn("properties", result[0]["input_schema"])

    def test_generate_text_and_tool_use(self) -> None:
        response = SimpleNamespace(
            stop_reason="tool_use",
            usage=SimpleNamespace(input_tokens=10, output_tokens=5),
            content=[
                SimpleNamespace(type="text", text="Checking."),
                SimpleNamespace(type="tool_use", id="t1", name="getWeather", input={"city": "Paris"}),
            ],
        )
        provider = self._make_provider(response)

        result = asyncio.run(provider.generate("m", 100, 0.5, "sys", [user_message("hi")], [{"name": "getWeather"}]))

        self.assertEqual("Checking.", result.text)
        self.assertEqual("tool_use", result.stop_reason)
        self.assertEqual([ToolCall("t1", "getWeather", {"city": "Paris"})], result.tool_calls)
        sent = provider._client.messages.kwargs
        self.assertEqual("sys", sent["system"])
        self.assertEqual([{"name": "getWeather"}], sent["tools"])

    def test_generate_text_only_omits_empty_options(self) -> None:
        response = SimpleNamespace(
            stop_reason="end_turn",
            usage=SimpleNamespace(input_tokens=3, output_tokens=2),
            content=[SimpleNamespace(type="text", text="Done")],
        )
        provider = self._make_provider(response)

        result = asyncio.run(provider.generate("m", 100, 0.1, "", [user_message("hi")], []))

        self.assertEqual("Done", result.text)
        self.assertEqual([], result.tool_calls)
        sent = provider._client.messages.kwargs
        self.assertNotIn("system", sent)
        self.assertNotIn("tools", sent)


class ClientWrappingTests(unittest.TestCase):
    def test_traced_client_is_wrapped_by_braintrust(self) -> None:
        wrapped = object()
        with mock.patch(
            "traced_chatbot.providers.anthropic_provider.braintrust.wrap_anthropic", return_value=wrapped
        ) as wrap:
            provider = AnthropicProvider("sk-ant-test", trace_calls=True)

        self.assertIs(wrapped, provider._client)
        wrap.assert_called_once()
        self.assertIsInstance(wrap.call_args.args[0], anthropic.AsyncAnthropic)

    def test_untraced_client_left_alone(self) -> None:
        with mock.patch("traced_chatbot.providers.anthropic_provider.braintrust.wrap_anthropic") as wrap:
            provider = AnthropicProvider("sk-ant-test")

        wrap.assert_not_called()
        self.assertIsInstance(provider._client, anthropic.AsyncAnthropic)


if __name__ == "__main__":
    unittest.main()
