"""Tool system — the discovery tools and their registry."""

from subreg.tool.base import BaseTool, ToolError, ToolOk, ToolResult
from subreg.tool.discovery import (
    GetManifestTool,
    InvokeSubagentTool,
    ListSubagentsTool,
    SearchSubagentsTool,
    create_discovery_tools,
)
from subreg.tool.registry import ToolRegistry

__all__ = [
    "BaseTool",
    "ToolResult",
    "ToolOk",
    "ToolError",
    "ToolRegistry",
    "SearchSubagentsTool",
    "GetManifestTool",
    "ListSubagentsTool",
    "InvokeSubagentTool",
    "create_discovery_tools",
]
