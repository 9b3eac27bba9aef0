"""Base tool classes with Pydantic parameter validation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


@dataclass
class ToolResult:
    """Base result from a tool execution."""

    output: str = ""
    brief: str = ""  # Short description for UI display
    is_error: bool = False


@dataclass
class ToolOk(ToolResult):
    """Successful tool result."""

    is_error: bool = False


@dataclass
class ToolError(ToolResult):
    """Failed tool result."""

    is_error: bool = True


class BaseTool(ABC, Generic[T]):
    """Base class for the registry's caller-facing tools.

    Each tool declares its request shape as a Pydantic model (the type
    parameter T) and returns JSON text.

    Usage:
        class ShowParams(BaseModel):
            id: str

        class ShowTool(BaseTool[ShowParams]):
            name = "show"
            description = "Show one subagent"
            param_model = ShowParams

            async def execute(self, params: ShowParams) -> ToolResult:
                return ToolOk(output="{}")
    """

    name: ClassVar[str]
    description: ClassVar[str]
    param_model: ClassVar[type[BaseModel]]

    async def __call__(self, arguments: dict[str, Any]) -> tuple[str, bool]:
        """Validate arguments and execute.

        Returns:
            (content, is_error) tuple suitable for tool result messages.
        """
        try:
            params = self.param_model.model_validate(arguments)
        except ValidationError as e:
            return f"Invalid parameters: {e}", True

        try:
            result = await self.execute(params)  # type: ignore[arg-type]
        except Exception as e:
            logger.error("Tool %s execution error: %s", self.name, e, exc_info=True)
            return f"Error executing {self.name}: {e}", True

        return result.output, result.is_error

    @abstractmethod
    async def execute(self, params: T) -> ToolResult:
        """Execute the tool with validated parameters."""
        ...

    def to_openai_spec(self) -> dict[str, Any]:
        """Convert to OpenAI function tool specification."""
        schema = self.param_model.model_json_schema()
        schema.pop("title", None)

        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": schema,
            },
        }
