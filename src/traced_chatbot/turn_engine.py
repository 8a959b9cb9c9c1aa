from __future__ import annotations

from typing import Any, Protocol

from loguru import logger

from traced_chatbot.exceptions import ChatbotError
from traced_chatbot.generation import TextGenerator
from traced_chatbot.messages import Message, assistant_message, tool_call_message, tool_result_message, user_message
from traced_chatbot.session import Session


class TurnTracer(Protocol):
    def record_turn(
        self,
        session_id: str,
        before: list[dict[str, Any]],
        after: list[dict[str, Any]],
        turn_name: str,
        *,
        error: str | None = None,
    ) -> None: ...


class TurnEngine:
    """Turns one user utterance into an updated session history and a reply.

    The user message is appended first and always survives. Everything the
    model produced is staged and committed in a single extend, so a failed
    turn leaves no partial assistant or tool messages behind.
    """

    def __init__(
        self,
        *,
        generator: TextGenerator,
        tracer: TurnTracer | None = None,
        turn_name: str = "chat-turn",
    ) -> None:
        self._generator = generator
        self._tracer = tracer
        self._turn_name = turn_name

    async def execute_turn(self, session: Session, user_text: str) -> str:
        session.append(user_message(user_text))
        before = session.snapshot()

        try:
            result = await self._generator.generate(session.messages)
        except ChatbotError as ex:
            logger.error(f"Turn failed for session {session.id}: {ex}")
            self._trace(session, before, error=f"{type(ex).__name__}: {ex}")
            raise

        staged: list[Message] = []
        if result.tool_calls:
            staged.append(tool_call_message(result.tool_calls))
            staged.append(tool_result_message(result.tool_results))
        staged.append(assistant_message(result.text))
        session.extend(staged)

        logger.info(
            f"Turn complete: session={session.id}, steps={result.steps}, "
            f"tool_calls={len(result.tool_calls)}, truncated={result.truncated}, history={len(session)}"
        )
        self._trace(session, before)
        return result.text

    def _trace(self, session: Session, before: list[dict[str, Any]], *, error: str | None = None) -> None:
        if self._tracer is None:
            return
        try:
            self._tracer.record_turn(session.id, before, session.snapshot(), self._turn_name, error=error)
        except Exception as ex:
            logger.warning(f"Trace emission failed: {ex}")
