from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class RuntimeEnv:
    provider_api_key: str
    provider_env_var: str
    braintrust_api_key: str

    def missing(self) -> list[str]:
        missing: list[str] = []
        if not self.provider_api_key:
            missing.append(self.provider_env_var)
        if not self.braintrust_api_key:
            missing.append("BRAINTRUST_API_KEY")
        return missing


@dataclass
class AppConfig:
    provider_name: str
    model: str
    max_tokens: int
    temperature: float
    max_steps: int
    tool_timeout_seconds: float
    request_timeout_seconds: float
    project_name: str
    turn_name: str
    trace_model_calls: bool
    log_level: str
    log_consumers: list | None


_DEFAULT_MODELS = {
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
}


def load_json_config(path: Path | None = None) -> dict:
    config_path = path or Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _to_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return bool(value)


def parse_app_config(config: dict) -> AppConfig:
    provider_name = str(config.get("Provider", "openai")).strip().lower()
    return AppConfig(
        provider_name=provider_name,
        model=config.get("Model") or _DEFAULT_MODELS.get(provider_name, "gpt-4o-mini"),
        max_tokens=int(config.get("MaxTokens", 1024)),
        temperature=float(config.get("Temperature", 1.0)),
        max_steps=int(config.get("MaxSteps", 5)),
        tool_timeout_seconds=float(config.get("ToolTimeoutSeconds", 10)),
        request_timeout_seconds=float(config.get("RequestTimeoutSeconds", 60)),
        project_name=str(config.get("ProjectName", "ai-sdk-example")),
        turn_name=str(config.get("TurnName", "chat-turn")),
        trace_model_calls=_to_bool(config.get("TraceModelCalls"), default=True),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env(provider_name: str) -> RuntimeEnv:
    if provider_name == "anthropic":
        provider_env_var = "ANTHROPIC_API_KEY"
    else:
        provider_env_var = "OPENAI_API_KEY"

    return RuntimeEnv(
        provider_api_key=os.environ.get(provider_env_var, ""),
        provider_env_var=provider_env_var,
        braintrust_api_key=os.environ.get("BRAINTRUST_API_KEY", ""),
    )
