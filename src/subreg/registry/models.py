"""Registry data models — capsules, specifications, requests and responses."""

from __future__ import annotations

import copy
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

LatencyClass = Literal["inner", "outer", "both"]
LATENCY_CLASSES: tuple[str, ...] = ("inner", "outer", "both")

ScmSystem = Literal["github", "gitlab", "azure", "bitbucket"]
OperatingSystem = Literal["linux", "darwin", "windows"]


@dataclass(frozen=True)
class Capsule:
    """Minimal discovery unit, small enough to hand to a model in bulk.

    Capsules are projections of a :class:`Specification` and are immutable,
    so the store can hand out the same instance to every caller.
    """

    id: str
    summary: str
    tags: tuple[str, ...] = ()
    latency_class: LatencyClass = "both"
    aliases: tuple[str, ...] = ()
    capabilities: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "aliases": list(self.aliases),
            "summary": self.summary,
            "tags": list(self.tags),
            "latency_class": self.latency_class,
            "capabilities": list(self.capabilities),
        }


@dataclass
class HostCompatibility:
    """Host environment an agent can run in. Empty lists mean "any"."""

    scm: list[ScmSystem] = field(default_factory=list)
    os: list[OperatingSystem] = field(default_factory=list)
    needs_gui: bool = False


@dataclass
class CLIToolSpec:
    """An external command-line tool the agent expects on PATH."""

    name: str
    version: str | None = None
    install_hint: str | None = None


@dataclass
class ServiceRequirement:
    """An external sub-service (e.g. an MCP server) the agent talks to."""

    id: str
    capabilities: list[str] = field(default_factory=list)
    optional: bool = False


@dataclass
class ToolRequirements:
    cli_allowlist: list[CLIToolSpec] = field(default_factory=list)
    services: list[ServiceRequirement] = field(default_factory=list)


@dataclass
class SafetyPolicy:
    destructive_cmd_policy: Literal["deny", "ask", "allow"] | None = None
    confirmation_required: bool = False
    custom_rules: list[str] = field(default_factory=list)


@dataclass
class ContextBudget:
    max_system_tokens: int | None = None
    max_history_messages: int | None = None
    max_total_tokens: int | None = None


@dataclass
class Telemetry:
    """Running performance statistics for one agent."""

    success_score: float = 0.0  # 0.0 - 1.0, EMA of outcomes
    typical_latency_ms: float = 0.0  # EMA of observed latency
    invocation_count: int = 0
    last_invoked: str = ""  # ISO 8601


@dataclass
class Specification:
    """Full agent descriptor, loaded only once an agent is selected.

    ``system_prompt``, ``permissions`` and ``service_config`` are opaque to
    the registry: they are passed through untouched to the execution engine.
    """

    # Identity
    id: str
    summary: str = ""
    description: str = ""
    aliases: list[str] = field(default_factory=list)
    owner: str = ""
    version: str = ""

    # Classification
    tags: list[str] = field(default_factory=list)
    latency_class: LatencyClass = "both"
    capabilities: list[str] = field(default_factory=list)

    # Execution
    system_prompt: str = ""
    tool_requirements: ToolRequirements | None = None
    service_config: dict[str, Any] | None = None
    permissions: list[dict[str, Any]] = field(default_factory=list)

    # Constraints
    context_budget: ContextBudget | None = None
    safety: SafetyPolicy | None = None
    host_compatibility: HostCompatibility | None = None

    # Mutated only by the telemetry tracker
    telemetry: Telemetry | None = None

    def to_capsule(self) -> Capsule:
        """Project this specification onto its discovery capsule."""
        return Capsule(
            id=self.id,
            summary=self.summary,
            tags=tuple(self.tags),
            latency_class=self.latency_class,
            aliases=tuple(self.aliases),
            capabilities=tuple(self.capabilities),
        )

    def copy(self) -> Specification:
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view used by the tool surface and CLI."""
        return asdict(self)


@dataclass
class HostCapabilities:
    """What the calling host can offer; used as a hard search filter."""

    scm: list[str] = field(default_factory=list)
    os: str | None = None
    has_gui: bool = False


@dataclass
class SearchRequest:
    query: str
    limit: int | None = None
    tags: list[str] = field(default_factory=list)
    latency_class: LatencyClass | None = None
    host_caps: HostCapabilities | None = None


@dataclass
class SearchDiagnostics:
    method: str = "keyword"
    duration_ms: float = 0.0
    cache_hit: bool = False


@dataclass
class SearchResponse:
    capsules: list[Capsule] = field(default_factory=list)
    total: int = 0
    diagnostics: SearchDiagnostics = field(default_factory=SearchDiagnostics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "capsules": [c.to_dict() for c in self.capsules],
            "total": self.total,
            "diagnostics": {
                "method": self.diagnostics.method,
                "duration_ms": self.diagnostics.duration_ms,
                "cache_hit": self.diagnostics.cache_hit,
            },
        }


@dataclass
class ListResponse:
    capsules: list[Capsule] = field(default_factory=list)
    total: int = 0
    has_more: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "capsules": [c.to_dict() for c in self.capsules],
            "total": self.total,
            "has_more": self.has_more,
        }
