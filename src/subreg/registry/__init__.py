"""Registry — store, ranker, caches, telemetry and the facade over them."""

from subreg.registry.cache import TTLCache
from subreg.registry.facade import SubagentRegistry
from subreg.registry.models import (
    Capsule,
    CLIToolSpec,
    ContextBudget,
    HostCapabilities,
    HostCompatibility,
    ListResponse,
    SafetyPolicy,
    SearchDiagnostics,
    SearchRequest,
    SearchResponse,
    ServiceRequirement,
    Specification,
    Telemetry,
    ToolRequirements,
)
from subreg.registry.ranker import RelevanceRanker
from subreg.registry.store import DescriptorStore
from subreg.registry.telemetry import TelemetryTracker

__all__ = [
    "TTLCache",
    "SubagentRegistry",
    "Capsule",
    "CLIToolSpec",
    "ContextBudget",
    "HostCapabilities",
    "HostCompatibility",
    "ListResponse",
    "SafetyPolicy",
    "SearchDiagnostics",
    "SearchRequest",
    "SearchResponse",
    "ServiceRequirement",
    "Specification",
    "Telemetry",
    "ToolRequirements",
    "RelevanceRanker",
    "DescriptorStore",
    "TelemetryTracker",
]
