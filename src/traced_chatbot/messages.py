from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

USER = "user"
ASSISTANT = "assistant"
TOOL = "tool"

ROLES = (USER, ASSISTANT, TOOL)


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": "tool-call", "id": self.id, "name": self.name, "input": dict(self.input)}


@dataclass(frozen=True)
class ToolResult:
    tool_call_id: str
    tool_name: str
    output: str
    is_error: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": "tool-result",
            "tool_call_id": self.tool_call_id,
            "tool_name": self.tool_name,
            "output": self.output,
        }
        if self.is_error:
            data["is_error"] = True
        return data


Content = str | tuple[ToolCall, ...] | tuple[ToolResult, ...]


@dataclass(frozen=True)
class Message:
    """One entry of a conversation history.

    Content is a tagged union checked at construction:

    - ``user``: text
    - ``assistant``: text, or a non-empty sequence of ToolCall
    - ``tool``: a non-empty sequence of ToolResult
    """

    role: str
    content: Content

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")

        content = self.content
        if isinstance(content, list):
            content = tuple(content)
            object.__setattr__(self, "content", content)

        if isinstance(content, str):
            if self.role == TOOL:
                raise ValueError("Tool messages must carry tool results, not text")
            return

        if not isinstance(content, tuple) or not content:
            raise ValueError(f"{self.role} message content must be text or a non-empty sequence")

        if self.role == ASSISTANT:
            if not all(isinstance(c, ToolCall) for c in content):
                raise ValueError("Assistant structured content must be ToolCall items")
        elif self.role == TOOL:
            if not all(isinstance(c, ToolResult) for c in content):
                raise ValueError("Tool message content must be ToolResult items")
        else:
            raise ValueError("User messages must carry text")

    @property
    def kind(self) -> str:
        if isinstance(self.content, str):
            return "text"
        if self.role == ASSISTANT:
            return "tool_calls"
        return "tool_results"

    @property
    def text(self) -> str | None:
        return self.content if isinstance(self.content, str) else None

    @property
    def tool_calls(self) -> tuple[ToolCall, ...]:
        return self.content if self.kind == "tool_calls" else ()  # type: ignore[return-value]

    @property
    def tool_results(self) -> tuple[ToolResult, ...]:
        return self.content if self.kind == "tool_results" else ()  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        if isinstance(self.content, str):
            return {"role": self.role, "content": self.content}
        return {"role": self.role, "content": [c.to_dict() for c in self.content]}


def user_message(text: str) -> Message:
    return Message(USER, text)


def assistant_message(text: str) -> Message:
    return Message(ASSISTANT, text)


def tool_call_message(calls: list[ToolCall] | tuple[ToolCall, ...]) -> Message:
    return Message(ASSISTANT, tuple(calls))


def tool_result_message(results: list[ToolResult] | tuple[ToolResult, ...]) -> Message:
    return Message(TOOL, tuple(results))
