from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

import pydantic
from loguru import logger
from pydantic import BaseModel

from traced_chatbot.exceptions import ToolExecutionError, ToolNotFoundError, ValidationError
from traced_chatbot.tool import Tool

Executor = Callable[[BaseModel], "str | Awaitable[str]"]


class FunctionTool:
    """Adapts a plain (sync or async) callable to the Tool protocol."""

    def __init__(self, name: str, description: str, input_model: type[BaseModel], executor: Executor):
        self._name = name
        self._description = description
        self._input_model = input_model
        self._executor = executor

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def input_model(self) -> type[BaseModel]:
        return self._input_model

    @property
    def input_schema(self) -> dict[str, Any]:
        return self._input_model.model_json_schema()

    async def execute(self, tool_input: BaseModel) -> str:
        if inspect.iscoroutinefunction(self._executor):
            result = await self._executor(tool_input)
        else:
            # Sync executors run on a worker thread so wait_for can time them out
            result = await asyncio.to_thread(self._executor, tool_input)
        if inspect.isawaitable(result):
            result = await result
        return result


def _field_names(ex: pydantic.ValidationError) -> list[str]:
    names: list[str] = []
    for error in ex.errors():
        loc = ".".join(str(part) for part in error.get("loc", ()))
        if loc and loc not in names:
            names.append(loc)
    return names


class ToolRegistry:
    def __init__(self, tools: list[Tool] | None = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(
        self,
        tool_or_name: Tool | str,
        description: str | None = None,
        input_model: type[BaseModel] | None = None,
        executor: Executor | None = None,
    ) -> Tool:
        if isinstance(tool_or_name, str):
            if description is None or input_model is None or executor is None:
                raise ValueError("description, input_model and executor are required when registering by name")
            tool: Tool = FunctionTool(tool_or_name, description, input_model, executor)
        else:
            tool = tool_or_name

        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name!r}")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool {tool.name}")
        return tool

    def lookup(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def tools(self) -> list[Tool]:
        return list(self._tools.values())

    def definitions(self) -> dict[str, dict[str, Any]]:
        return {
            t.name: {"description": t.description, "input_schema": t.input_schema}
            for t in self._tools.values()
        }

    def validate(self, name: str, raw_input: Any) -> BaseModel:
        tool = self.lookup(name)
        try:
            return tool.input_model.model_validate(raw_input if raw_input is not None else {})
        except pydantic.ValidationError as ex:
            fields = _field_names(ex)
            raise ValidationError(name, fields, detail=f"{ex.error_count()} validation error(s)") from ex

    async def execute(self, name: str, raw_input: Any, *, timeout_seconds: float | None = None) -> str:
        """Look up, validate and run a tool. The executor never sees invalid input."""
        tool = self.lookup(name)
        validated = self.validate(name, raw_input)
        try:
            if timeout_seconds is not None and timeout_seconds > 0:
                result = await asyncio.wait_for(tool.execute(validated), timeout=timeout_seconds)
            else:
                result = await tool.execute(validated)
        except asyncio.TimeoutError as ex:
            raise ToolExecutionError(name, TimeoutError(f"timed out after {timeout_seconds}s")) from ex
        except Exception as ex:
            raise ToolExecutionError(name, ex) from ex
        return result if isinstance(result, str) else str(result)


def build_default_registry(rng=None) -> ToolRegistry:
    from traced_chatbot.tools.weather_tool import GetWeatherTool

    return ToolRegistry([GetWeatherTool(rng=rng)])
