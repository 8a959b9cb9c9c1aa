from traced_chatbot.tracing.emitter import TraceEmitter, TraceSink
from traced_chatbot.tracing.records import TraceRecord

__all__ = [
    "TraceEmitter",
    "TraceRecord",
    "TraceSink",
]
