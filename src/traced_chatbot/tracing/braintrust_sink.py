from __future__ import annotations

import braintrust
from loguru import logger

from traced_chatbot.tracing.records import TraceRecord


class BraintrustTraceSink:
    """Writes each turn as one span on a Braintrust project logger."""

    def __init__(self, project_name: str, api_key: str):
        self._project_name = project_name
        self._api_key = api_key
        self._logger = None

    def connect(self):
        return self._get_logger()

    def _get_logger(self):
        if self._logger is None:
            self._logger = braintrust.init_logger(project=self._project_name, api_key=self._api_key)
            logger.debug(f"Braintrust logger initialised for project {self._project_name!r}")
        return self._logger

    def write(self, record: TraceRecord) -> None:
        bt_logger = self._get_logger()
        span = bt_logger.start_span(name=record.turn_name, type=record.turn_kind)
        try:
            span.log(**record.logged_fields())
        finally:
            span.end()

    def flush(self) -> None:
        if self._logger is not None:
            self._logger.flush()
