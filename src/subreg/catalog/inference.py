"""Normalization of legacy agent descriptors into full specifications.

Legacy descriptors carry only a name, a system prompt and permission rules.
The helpers here infer the discovery metadata (tags, latency class,
capabilities, summary, CLI allowlist) from that free text. This runs once,
when the catalog is loaded, so searches only ever see fully populated
specifications.
"""

from __future__ import annotations

import json
import re
from typing import Any

from subreg.registry.models import (
    CLIToolSpec,
    LatencyClass,
    Specification,
    ToolRequirements,
)

SUMMARY_MAX_CHARS = 200

# Substrings of the name or system prompt that mark a fast, focused agent
_INNER_NAME_HINTS = ("search", "quick", "find")
_INNER_SYSTEM_HINTS = ("search", "quick fix")

# ... and a slow, thorough one
_OUTER_NAME_HINTS = ("planner", "architect", "auditor", "reviewer", "reflector")
_OUTER_SYSTEM_HINTS = ("plan", "analyze", "audit", "review")

TAG_PATTERNS: dict[str, tuple[str, ...]] = {
    "testing": ("test", "spec", "pytest", "jest", "vitest"),
    "security": ("security", "audit", "vulnerability", "xss", "sql injection"),
    "documentation": ("doc", "readme", "comment"),
    "refactoring": ("refactor", "clean", "quality"),
    "migration": ("migrate", "upgrade", "convert"),
    "code-search": ("search", "find code", "locate"),
    "architecture": ("architect", "design", "pattern"),
    "debugging": ("debug", "fix", "diagnose"),
    "devops": ("deploy", "ci", "cd", "pipeline"),
    "database": ("database", "sql", "query"),
    "learning": ("reflect", "insight", "pattern", "learn"),
    "execution": ("execute", "run", "perform"),
}

# (keyword in name/system, capability)
CAPABILITY_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("read",), "read-files"),
    (("write", "modify"), "write-files"),
    (("test",), "run-tests"),
    (("build",), "build"),
    (("search",), "code-search"),
    (("analyze",), "analysis"),
    (("plan",), "planning"),
    (("audit",), "audit"),
)

_CMD_PATTERN = re.compile(r'"cmd":\s*"([^"]+)"')
_ROLE_PREFIX = re.compile(r"^You are (the |a )?")


def infer_latency_class(name: str, system: str) -> LatencyClass:
    lower_name = name.lower()
    lower_system = system.lower()

    if any(h in lower_name for h in _INNER_NAME_HINTS) or any(
        h in lower_system for h in _INNER_SYSTEM_HINTS
    ):
        return "inner"

    if any(h in lower_name for h in _OUTER_NAME_HINTS) or any(
        h in lower_system for h in _OUTER_SYSTEM_HINTS
    ):
        return "outer"

    return "both"


def infer_tags(name: str, system: str) -> list[str]:
    """Tags whose patterns occur in the name or system prompt.

    Falls back to ``["general"]`` so every agent has at least one tag.
    """
    combined = f"{name} {system}".lower()
    tags = [
        tag
        for tag, patterns in TAG_PATTERNS.items()
        if any(p in combined for p in patterns)
    ]
    return tags or ["general"]


def extract_summary(system: str) -> str:
    """First non-blank line of a system prompt, minus the "You are" prefix."""
    lines = [line for line in system.split("\n") if line.strip()]
    if not lines:
        return ""

    first = _ROLE_PREFIX.sub("", lines[0]).strip()
    if len(first) <= SUMMARY_MAX_CHARS:
        return first
    return first[: SUMMARY_MAX_CHARS - 3] + "..."


def infer_capabilities(
    name: str, system: str, permissions: list[dict[str, Any]]
) -> list[str]:
    combined = f"{name} {system}".lower()
    caps = [
        cap
        for keywords, cap in CAPABILITY_RULES
        if any(k in combined for k in keywords)
    ]

    # Permission rules are opaque; only their serialized text is inspected
    serialized = [json.dumps(p) for p in permissions]
    if any("git" in s for s in serialized):
        caps.append("git")
    if any("Bash" in s for s in serialized):
        caps.append("shell-commands")

    return caps


def extract_cli_allowlist(permissions: list[dict[str, Any]]) -> list[str]:
    """Command names allowed by ``cmd`` patterns, in first-seen order."""
    tools: dict[str, None] = {}
    for perm in permissions:
        match = _CMD_PATTERN.search(json.dumps(perm))
        if not match:
            continue
        tool = re.split(r"[\s*]", match.group(1))[0]
        if tool:
            tools[tool] = None
    return list(tools)


def normalize_legacy(
    name: str,
    system: str,
    description: str = "",
    permissions: list[dict[str, Any]] | None = None,
    service_config: dict[str, Any] | None = None,
) -> Specification:
    """Build a fully populated specification from a legacy descriptor."""
    permissions = permissions or []
    cli_allowlist = extract_cli_allowlist(permissions)

    return Specification(
        id=name,
        aliases=[name],
        summary=description or extract_summary(system),
        description=description or system,
        tags=infer_tags(name, system),
        latency_class=infer_latency_class(name, system),
        capabilities=infer_capabilities(name, system, permissions),
        system_prompt=system,
        permissions=permissions,
        service_config=service_config,
        tool_requirements=(
            ToolRequirements(cli_allowlist=[CLIToolSpec(name=t) for t in cli_allowlist])
            if cli_allowlist
            else None
        ),
    )
