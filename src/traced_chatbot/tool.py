from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel


@runtime_checkable
class Tool(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def input_model(self) -> type[BaseModel]: ...

    @property
    def input_schema(self) -> dict[str, Any]: ...

    async def execute(self, tool_input: BaseModel) -> str: ...
