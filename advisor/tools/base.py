"""Base types and definitions for tools."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from advisor.models.llm import ToolDescriptor

ToolHandler = Callable[[BaseModel], Awaitable[dict[str, Any]]]
ToolCallable = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


class EmptyInput(BaseModel):
    """Input schema for tools that don't take parameters."""


@dataclass
class ToolDefinition:
    """Definition of a tool available to the AI advisor."""

    name: str
    description: str
    input_schema_class: type[BaseModel]
    handler: ToolHandler

    def get_json_schema(self) -> dict[str, Any]:
        """Get JSON schema for this tool's input."""
        return self.input_schema_class.model_json_schema()

    def parse_input(self, raw_input: dict[str, Any]) -> BaseModel:
        """Parse and validate tool input."""
        return self.input_schema_class.model_validate(raw_input)

    def describe(self) -> ToolDescriptor:
        return ToolDescriptor(name=self.name, description=self.description, parameter_schema=self.get_json_schema())

    async def __call__(self, raw_input: dict[str, Any]) -> dict[str, Any]:
        """Validate raw arguments and run the handler."""
        return await self.handler(self.parse_input(raw_input or {}))
