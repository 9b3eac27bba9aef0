"""Tests for the discovery tool surface (subreg.tool)."""

from __future__ import annotations

import json

from subreg.registry import Specification, SubagentRegistry
from subreg.registry.models import HostCompatibility
from subreg.runner import EngineOutput
from subreg.tool import ToolRegistry, create_discovery_tools


class FakeEngine:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    async def run(self, prompt: str, spec: Specification, cwd: str) -> EngineOutput:
        if self.error is not None:
            raise self.error
        return EngineOutput(
            summary=f"{spec.id} finished", transcript=["step"], files_changed=["README.md"]
        )


def _tools(engine: FakeEngine | None = None) -> ToolRegistry:
    registry = SubagentRegistry(
        [
            Specification(
                id="security-auditor",
                aliases=["sec"],
                tags=["security"],
                summary="scans for vulnerabilities",
                host_compatibility=HostCompatibility(needs_gui=True),
            ),
            Specification(id="test-runner", tags=["testing"], summary="runs tests"),
        ]
    )
    tools = ToolRegistry()
    tools.register_many(create_discovery_tools(registry, engine))
    return tools


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestToolRegistry:
    def test_invoke_only_with_engine(self) -> None:
        assert _tools().names() == [
            "search_subagents",
            "get_subagent_manifest",
            "list_subagents",
        ]
        assert "invoke_subagent" in _tools(FakeEngine())

    def test_specs(self) -> None:
        specs = _tools(FakeEngine()).get_specs()
        assert len(specs) == 4
        search = specs[0]
        assert search["type"] == "function"
        assert search["function"]["name"] == "search_subagents"
        params = search["function"]["parameters"]
        assert "title" not in params
        assert params["required"] == ["query"]
        assert set(params["properties"]) == {"query", "k", "tags", "latency_class", "host_caps"}

    async def test_unknown_tool(self) -> None:
        content, is_error = await _tools().dispatch("delete_subagent", {})
        assert is_error
        assert "Unknown tool: delete_subagent" in content
        assert "search_subagents" in content

    async def test_invalid_params(self) -> None:
        content, is_error = await _tools().dispatch("search_subagents", {"k": 3})
        assert is_error
        assert content.startswith("Invalid parameters")

    async def test_invalid_latency(self) -> None:
        content, is_error = await _tools().dispatch(
            "search_subagents", {"query": "x", "latency_class": "medium"}
        )
        assert is_error
        assert content.startswith("Invalid parameters")


# ---------------------------------------------------------------------------
# Discovery tools
# ---------------------------------------------------------------------------


class TestSearchTool:
    async def test_search(self) -> None:
        content, is_error = await _tools().dispatch(
            "search_subagents", {"query": "security audit", "k": 5}
        )
        assert not is_error
        data = json.loads(content)
        assert [c["id"] for c in data["capsules"]] == ["security-auditor"]
        assert data["total"] == 1
        assert data["diagnostics"]["method"] == "keyword"

    async def test_host_caps_filter(self) -> None:
        content, _ = await _tools().dispatch(
            "search_subagents",
            {"query": "security audit", "host_caps": {"scm": ["github"], "has_gui": False}},
        )
        assert json.loads(content)["capsules"] == []


class TestManifestTool:
    async def test_by_alias(self) -> None:
        content, is_error = await _tools().dispatch("get_subagent_manifest", {"id": "SEC"})
        assert not is_error
        data = json.loads(content)
        assert data["id"] == "security-auditor"
        assert data["host_compatibility"]["needs_gui"] is True
        assert data["telemetry"] is None

    async def test_not_found(self) -> None:
        content, is_error = await _tools().dispatch("get_subagent_manifest", {"id": "ghost"})
        assert is_error
        assert json.loads(content) == {"error": "Subagent not found: ghost"}


class TestListTool:
    async def test_pagination(self) -> None:
        content, is_error = await _tools().dispatch(
            "list_subagents", {"page_size": 1, "offset": 1}
        )
        assert not is_error
        data = json.loads(content)
        assert [c["id"] for c in data["capsules"]] == ["test-runner"]
        assert data["total"] == 2
        assert data["has_more"] is False

    async def test_defaults(self) -> None:
        content, _ = await _tools().dispatch("list_subagents", {})
        assert json.loads(content)["total"] == 2


class TestInvokeTool:
    async def test_success(self) -> None:
        content, is_error = await _tools(FakeEngine()).dispatch(
            "invoke_subagent", {"id": "test-runner", "goal": "run tests"}
        )
        assert not is_error
        data = json.loads(content)
        assert data["summary"] == "test-runner finished"
        assert data["files_changed"] == ["README.md"]
        assert data["metadata"]["subagent_id"] == "test-runner"

    async def test_not_found(self) -> None:
        content, is_error = await _tools(FakeEngine()).dispatch(
            "invoke_subagent", {"id": "ghost", "goal": "g"}
        )
        assert is_error
        assert json.loads(content) == {"error": "Subagent not found: ghost"}

    async def test_engine_failure(self) -> None:
        content, is_error = await _tools(FakeEngine(RuntimeError("boom"))).dispatch(
            "invoke_subagent", {"id": "sec", "goal": "g"}
        )
        assert is_error
        assert json.loads(content) == {"error": "boom", "subagent_id": "sec"}
