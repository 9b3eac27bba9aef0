"""Discovery tools — the registry's caller-facing query surface.

Four tools mirror the registry facade: search returns capsules, the
manifest tool discloses one full specification, list pages through
capsules, and invoke runs a subagent through an execution engine.
"""

from __future__ import annotations

import json
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field

from subreg.errors import SubagentNotFoundError
from subreg.registry import SubagentRegistry
from subreg.registry.models import HostCapabilities, SearchRequest
from subreg.runner.engine import DEFAULT_CONTEXT_TOKENS, ExecutionEngine, run_subagent
from subreg.tool.base import BaseTool, ToolError, ToolOk, ToolResult


def _dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2)


# ---------------------------------------------------------------------------
# search_subagents
# ---------------------------------------------------------------------------


class HostCapsParams(BaseModel):
    scm: list[Literal["github", "gitlab", "azure", "bitbucket"]] = Field(default_factory=list)
    os: str | None = None
    has_gui: bool = False


class SearchParams(BaseModel):
    query: str = Field(
        description="Natural language description of the task or capability needed."
    )
    k: int | None = Field(
        default=None,
        description="Maximum number of results to return (default: 5).",
    )
    tags: list[str] = Field(
        default_factory=list,
        description='Filter by specific tags (e.g., ["security", "testing"]).',
    )
    latency_class: Literal["inner", "outer", "both"] | None = Field(
        default=None,
        description="Filter by latency class: inner (fast), outer (thorough), or both.",
    )
    host_caps: HostCapsParams | None = Field(
        default=None,
        description="Capabilities of the calling host; incompatible subagents are excluded.",
    )


class SearchSubagentsTool(BaseTool[SearchParams]):
    name: ClassVar[str] = "search_subagents"
    description: ClassVar[str] = (
        "Search for relevant subagents using natural language. "
        "Returns small capsules (1-2 line summaries) of matching subagents. "
        "After getting results, use get_subagent_manifest to load the full "
        "details of the selected subagent."
    )
    param_model: ClassVar[type[BaseModel]] = SearchParams

    def __init__(self, registry: SubagentRegistry) -> None:
        self._registry = registry

    async def execute(self, params: SearchParams) -> ToolResult:
        host = params.host_caps
        response = self._registry.search(
            SearchRequest(
                query=params.query,
                limit=params.k,
                tags=params.tags,
                latency_class=params.latency_class,
                host_caps=HostCapabilities(**host.model_dump()) if host else None,
            )
        )
        return ToolOk(
            output=_dumps(response.to_dict()),
            brief=f"{len(response.capsules)}/{response.total} subagents",
        )


# ---------------------------------------------------------------------------
# get_subagent_manifest
# ---------------------------------------------------------------------------


class ManifestParams(BaseModel):
    id: str = Field(description="Subagent ID or alias (from search_subagents results).")


class GetManifestTool(BaseTool[ManifestParams]):
    name: ClassVar[str] = "get_subagent_manifest"
    description: ClassVar[str] = (
        "Get the full manifest for a specific subagent by ID or alias, including "
        "system prompt, permissions, tool requirements and configuration. "
        "Only call this for subagents you plan to invoke."
    )
    param_model: ClassVar[type[BaseModel]] = ManifestParams

    def __init__(self, registry: SubagentRegistry) -> None:
        self._registry = registry

    async def execute(self, params: ManifestParams) -> ToolResult:
        spec = self._registry.get_manifest(params.id)
        if spec is None:
            return ToolError(output=_dumps({"error": f"Subagent not found: {params.id}"}))
        return ToolOk(output=_dumps(spec.to_dict()), brief=f"manifest:{spec.id}")


# ---------------------------------------------------------------------------
# list_subagents
# ---------------------------------------------------------------------------


class ListParams(BaseModel):
    tags: list[str] = Field(default_factory=list, description="Filter by tags.")
    page_size: int = Field(default=50, description="Number of results per page.")
    offset: int = Field(default=0, description="Offset for pagination.")


class ListSubagentsTool(BaseTool[ListParams]):
    name: ClassVar[str] = "list_subagents"
    description: ClassVar[str] = (
        "List all available subagents with pagination. Returns capsules "
        "without full manifests."
    )
    param_model: ClassVar[type[BaseModel]] = ListParams

    def __init__(self, registry: SubagentRegistry) -> None:
        self._registry = registry

    async def execute(self, params: ListParams) -> ToolResult:
        response = self._registry.list(
            tags=params.tags, page_size=params.page_size, offset=params.offset
        )
        return ToolOk(output=_dumps(response.to_dict()))


# ---------------------------------------------------------------------------
# invoke_subagent
# ---------------------------------------------------------------------------


class InvokeParams(BaseModel):
    id: str = Field(description="Subagent ID or alias to invoke.")
    goal: str = Field(description="Task description for the subagent to accomplish.")
    context: str | None = Field(
        default=None,
        description="Optional context from the conversation to pass to the subagent.",
    )
    cwd: str | None = Field(
        default=None, description="Working directory (defaults to current directory)."
    )
    timeout_ms: int | None = Field(default=None, description="Timeout in milliseconds.")


class InvokeSubagentTool(BaseTool[InvokeParams]):
    name: ClassVar[str] = "invoke_subagent"
    description: ClassVar[str] = (
        "Invoke a subagent to perform a specialized task. Use this after you have "
        "identified the right subagent. Returns a structured result with summary, "
        "transcript, and file changes."
    )
    param_model: ClassVar[type[BaseModel]] = InvokeParams

    def __init__(
        self,
        registry: SubagentRegistry,
        engine: ExecutionEngine,
        default_context_tokens: int = DEFAULT_CONTEXT_TOKENS,
    ) -> None:
        self._registry = registry
        self._engine = engine
        self._default_context_tokens = default_context_tokens

    async def execute(self, params: InvokeParams) -> ToolResult:
        try:
            result = await run_subagent(
                self._registry,
                params.id,
                params.goal,
                self._engine,
                context=params.context,
                cwd=params.cwd,
                timeout_s=params.timeout_ms / 1000 if params.timeout_ms else None,
                default_context_tokens=self._default_context_tokens,
            )
        except SubagentNotFoundError:
            return ToolError(output=_dumps({"error": f"Subagent not found: {params.id}"}))
        except Exception as e:
            return ToolError(
                output=_dumps({"error": str(e) or type(e).__name__, "subagent_id": params.id}),
                brief=f"subagent:{params.id} failed",
            )

        return ToolOk(
            output=_dumps(result.to_dict()),
            brief=f"subagent:{result.subagent_id} completed",
        )


def create_discovery_tools(
    registry: SubagentRegistry,
    engine: ExecutionEngine | None = None,
    default_context_tokens: int = DEFAULT_CONTEXT_TOKENS,
) -> list[BaseTool]:
    """The discovery tool set; ``invoke_subagent`` only when an engine is given."""
    tools: list[BaseTool] = [
        SearchSubagentsTool(registry),
        GetManifestTool(registry),
        ListSubagentsTool(registry),
    ]
    if engine is not None:
        tools.append(InvokeSubagentTool(registry, engine, default_context_tokens))
    return tools
