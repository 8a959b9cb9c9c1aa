from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


def utc_now() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds")


@dataclass(frozen=True)
class TraceRecord:
    session_id: str
    turn_name: str
    before: list[dict[str, Any]]
    after: list[dict[str, Any]]
    turn_kind: str = "task"
    timestamp: str = field(default_factory=utc_now)
    error: str | None = None

    @property
    def metadata(self) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            "conversation_id": self.session_id,
            "turn_name": self.turn_name,
            "timestamp": self.timestamp,
        }
        if self.error is not None:
            metadata["error"] = self.error
        return metadata

    def logged_fields(self) -> dict[str, Any]:
        return {"input": self.before, "output": self.after, "metadata": self.metadata}
