from __future__ import annotations


class ChatbotError(Exception):
    """Base class for errors raised while executing a conversation turn."""


class ValidationError(ChatbotError):
    def __init__(self, tool_name: str, fields: list[str], detail: str = ""):
        self.tool_name = tool_name
        self.fields = list(fields)
        self.detail = detail
        message = f'Invalid input for tool "{tool_name}": {", ".join(self.fields) or "<root>"}'
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class ToolNotFoundError(ChatbotError):
    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f'Unknown tool "{tool_name}"')


class ToolExecutionError(ChatbotError):
    def __init__(self, tool_name: str, cause: BaseException | None = None):
        self.tool_name = tool_name
        self.cause = cause
        reason = f"{type(cause).__name__}: {cause}" if cause is not None else "unknown failure"
        super().__init__(f'Error executing tool "{tool_name}": {reason}')


class GenerationError(ChatbotError):
    """The model provider call failed (network, rate limit, bad response)."""


class TraceEmissionError(ChatbotError):
    """A turn trace could not be written. Never surfaced to the user."""
