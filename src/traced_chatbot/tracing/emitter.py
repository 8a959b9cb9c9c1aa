from __future__ import annotations

import asyncio
from typing import Any, Protocol, runtime_checkable

from loguru import logger

from traced_chatbot.exceptions import TraceEmissionError
from traced_chatbot.tracing.records import TraceRecord


@runtime_checkable
class TraceSink(Protocol):
    def write(self, record: TraceRecord) -> None: ...

    def flush(self) -> None: ...


class TraceEmitter:
    """Fire-and-forget turn tracing.

    ``record_turn`` only enqueues; a background task hands records to the sink.
    Failures at any stage are logged and dropped, never raised to the caller.
    """

    def __init__(self, sink: TraceSink, *, turn_kind: str = "task"):
        self._sink = sink
        self._turn_kind = turn_kind
        self._queue: asyncio.Queue[TraceRecord | None] = asyncio.Queue()
        self._task: asyncio.Task | None = None
        self._closed = False
        self.emitted = 0
        self.failed = 0

    async def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run())

    def record_turn(
        self,
        session_id: str,
        before: list[dict[str, Any]],
        after: list[dict[str, Any]],
        turn_name: str,
        *,
        error: str | None = None,
    ) -> None:
        if self._closed:
            return
        try:
            record = TraceRecord(
                session_id=session_id,
                turn_name=turn_name,
                before=list(before),
                after=list(after),
                turn_kind=self._turn_kind,
                error=error,
            )
            self._queue.put_nowait(record)
        except Exception as ex:
            self._report(TraceEmissionError(f"could not enqueue trace for {turn_name}: {ex}"))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._task is not None:
            self._queue.put_nowait(None)
            await self._task
            self._task = None
        else:
            while not self._queue.empty():
                record = self._queue.get_nowait()
                if record is not None:
                    await self._write(record)
        try:
            await asyncio.to_thread(self._sink.flush)
        except Exception as ex:
            self._report(TraceEmissionError(f"flush failed: {ex}"))

    async def _run(self) -> None:
        while True:
            record = await self._queue.get()
            if record is None:
                return
            await self._write(record)

    async def _write(self, record: TraceRecord) -> None:
        try:
            await asyncio.to_thread(self._sink.write, record)
            self.emitted += 1
        except Exception as ex:
            self._report(TraceEmissionError(f"{record.turn_name} ({record.session_id}): {ex}"))

    def _report(self, error: TraceEmissionError) -> None:
        self.failed += 1
        logger.warning(f"Trace emission failed: {error}")
