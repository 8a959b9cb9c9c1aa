from __future__ import annotations

from dataclasses import dataclass

from traced_chatbot.app_config import AppConfig, RuntimeEnv
from traced_chatbot.generation import TextGenerator
from traced_chatbot.logging_config import setup_logging
from traced_chatbot.provider import create_provider
from traced_chatbot.session import Session
from traced_chatbot.session_loop import SessionLoop
from traced_chatbot.system_prompt import get_system_prompt
from traced_chatbot.tool_registry import ToolRegistry, build_default_registry
from traced_chatbot.tracing import TraceEmitter
from traced_chatbot.tracing.braintrust_sink import BraintrustTraceSink
from traced_chatbot.turn_engine import TurnEngine


@dataclass
class AppRuntime:
    session: Session
    registry: ToolRegistry
    engine: TurnEngine
    emitter: TraceEmitter
    loop: SessionLoop


async def bootstrap_runtime(app: AppConfig, env: RuntimeEnv) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    sink = BraintrustTraceSink(app.project_name, env.braintrust_api_key)
    trace_calls = app.trace_model_calls and bool(env.braintrust_api_key)
    if trace_calls:
        # Model-call spans from the wrapped client need the project logger up first
        sink.connect()

    registry = build_default_registry()
    provider = create_provider(
        app.provider_name,
        env.provider_api_key,
        timeout_seconds=app.request_timeout_seconds,
        trace_calls=trace_calls,
    )
    generator = TextGenerator(
        provider=provider,
        registry=registry,
        model=app.model,
        max_tokens=app.max_tokens,
        temperature=app.temperature,
        system_prompt=get_system_prompt(),
        max_steps=app.max_steps,
        tool_timeout_seconds=app.tool_timeout_seconds,
    )

    emitter = TraceEmitter(sink)
    await emitter.start()

    session = Session()
    engine = TurnEngine(generator=generator, tracer=emitter, turn_name=app.turn_name)

    return AppRuntime(
        session=session,
        registry=registry,
        engine=engine,
        emitter=emitter,
        loop=SessionLoop(engine, session, log_descriptions=log_descriptions),
    )
