"""Tool registry — register and dispatch the discovery tools."""

from __future__ import annotations

import logging
from typing import Any

from subreg.tool.base import BaseTool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry of caller-facing tools, dispatched by name."""

    def __init__(self) -> None:
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool instance."""
        if tool.name in self._tools:
            logger.warning("Tool %s already registered, overwriting", tool.name)
        self._tools[tool.name] = tool

    def register_many(self, tools: list[BaseTool]) -> None:
        for tool in tools:
            self.register(tool)

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def get_specs(self) -> list[dict[str, Any]]:
        """OpenAI function specs for every registered tool."""
        return [t.to_openai_spec() for t in self._tools.values()]

    def names(self) -> list[str]:
        return list(self._tools.keys())

    async def dispatch(self, name: str, arguments: dict[str, Any]) -> tuple[str, bool]:
        """Dispatch a call to the named tool.

        Returns:
            (content, is_error) tuple.
        """
        tool = self._tools.get(name)
        if tool is None:
            return (
                f"Unknown tool: {name}. Available tools: {', '.join(self.names())}",
                True,
            )

        return await tool(arguments)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
