from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from uuid import uuid4

from traced_chatbot.messages import Message


class Session:
    """A single conversation: an id plus an append-only message history."""

    def __init__(self, session_id: str | None = None):
        self._id = session_id or str(uuid4())
        self._messages: list[Message] = []

    @property
    def id(self) -> str:
        return self._id

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, message: Message) -> None:
        if not isinstance(message, Message):
            raise TypeError(f"Expected Message, got {type(message).__name__}")
        self._messages.append(message)

    def extend(self, messages: Iterable[Message]) -> None:
        staged = list(messages)
        for message in staged:
            if not isinstance(message, Message):
                raise TypeError(f"Expected Message, got {type(message).__name__}")
        self._messages.extend(staged)

    def snapshot(self) -> list[dict[str, Any]]:
        return [m.to_dict() for m in self._messages]
