from __future__ import annotations

import asyncio
import threading
from collections.abc import Awaitable, Callable

from loguru import logger

from traced_chatbot.exceptions import ChatbotError
from traced_chatbot.session import Session
from traced_chatbot.turn_engine import TurnEngine

EXIT_TOKEN = "exit"
USER_PROMPT = "You: "
ASSISTANT_PREFIX = "Assistant: "


def _resolve(future: asyncio.Future, line: str | None, error: BaseException | None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(line)


async def _read_stdin(prompt: str) -> str:
    """Read one line without tying up the default executor.

    The reader is a daemon thread so an interrupted prompt can't hold up
    interpreter shutdown.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[str] = loop.create_future()

    def worker() -> None:
        try:
            line = input(prompt)
        except BaseException as ex:
            loop.call_soon_threadsafe(_resolve, future, None, ex)
        else:
            loop.call_soon_threadsafe(_resolve, future, line, None)

    threading.Thread(target=worker, name="stdin-reader", daemon=True).start()
    return await future


def is_exit(line: str) -> bool:
    return line.strip().lower() == EXIT_TOKEN


class SessionLoop:
    def __init__(
        self,
        engine: TurnEngine,
        session: Session,
        *,
        read_line: Callable[[str], Awaitable[str]] = _read_stdin,
        write: Callable[[str], None] = print,
        log_descriptions: list[str] | None = None,
    ) -> None:
        self._engine = engine
        self._session = session
        self._read_line = read_line
        self._write = write
        self._log_descriptions = log_descriptions or []
        self.turns = 0

    def print_banner(self) -> None:
        self._write(f"Chatbot ready! Conversation ID: {self._session.id}")
        if self._log_descriptions:
            self._write(f"Logging: {', '.join(self._log_descriptions)}")
        self._write(f'Type your message (or "{EXIT_TOKEN}" to quit):\n')

    async def run(self) -> int:
        """Read-eval-print until the exit token, end of input or Ctrl-C. Returns the number of turns run."""
        with logger.contextualize(session_id=self._session.id):
            while True:
                try:
                    line = await self._read_line(USER_PROMPT)
                except (EOFError, KeyboardInterrupt):
                    break
                except asyncio.CancelledError:
                    # Under asyncio.run, Ctrl-C arrives as cancellation of the main task
                    task = asyncio.current_task()
                    if task is not None and task.uncancel() > 0:
                        raise
                    self._write("")
                    break

                if is_exit(line):
                    break
                if not line.strip():
                    continue

                self.turns += 1
                try:
                    reply = await self._engine.execute_turn(self._session, line)
                except ChatbotError as ex:
                    self._write(f"[error] {ex}\n")
                    continue
                except Exception as ex:
                    logger.exception(f"Unhandled error: {ex}")
                    self._write(f"[error] {type(ex).__name__}: {ex}\n")
                    continue
                self._write(f"{ASSISTANT_PREFIX}{reply}\n")

            logger.info(f"Session ended after {self.turns} turn(s)")
        return self.turns
