"""Catalog loading — built-ins, mappings and markdown agent definitions.

Agent definitions can live in markdown files with YAML frontmatter:

    ---
    id: code-reviewer
    aliases: [reviewer, cr]
    summary: Reviews diffs for bugs and style problems
    tags: [review, quality]
    latency_class: outer
    tool_requirements:
      cli_allowlist:
        - name: git
    host_compatibility:
      scm: [github, gitlab]
    ---

    You are the Code Reviewer subagent...

The body becomes the system prompt. Discovery metadata left out of the
frontmatter is inferred from the body, the same way built-ins are
normalized.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from typing import Any

import yaml

from subreg.catalog.builtin import LEGACY_SUBAGENTS
from subreg.catalog.inference import (
    extract_cli_allowlist,
    extract_summary,
    infer_capabilities,
    infer_latency_class,
    infer_tags,
    normalize_legacy,
)
from subreg.errors import CatalogError
from subreg.registry.models import (
    LATENCY_CLASSES,
    CLIToolSpec,
    ContextBudget,
    HostCompatibility,
    SafetyPolicy,
    ServiceRequirement,
    Specification,
    ToolRequirements,
)

logger = logging.getLogger(__name__)

_FRONTMATTER = re.compile(r"^---\s*\n(.*?)\n---\s*\n(.*)", re.DOTALL)


def load_builtin_specs() -> list[Specification]:
    """Normalize the built-in legacy subagents into specifications."""
    return [
        normalize_legacy(
            name,
            agent.system,
            description=agent.description,
            permissions=agent.permissions,
            service_config=agent.service_config,
        )
        for name, agent in LEGACY_SUBAGENTS.items()
    ]


def _str_list(data: Mapping[str, Any], key: str) -> list[str] | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise CatalogError(f"'{key}' must be a list, got {type(value).__name__}")
    return [str(v) for v in value]


def _tool_requirements(data: Any) -> ToolRequirements | None:
    if not data:
        return None
    cli = [
        CLIToolSpec(name=t) if isinstance(t, str) else CLIToolSpec(**t)
        for t in data.get("cli_allowlist", [])
    ]
    services = [
        ServiceRequirement(id=s) if isinstance(s, str) else ServiceRequirement(**s)
        for s in data.get("services", [])
    ]
    return ToolRequirements(cli_allowlist=cli, services=services)


def spec_from_dict(data: Mapping[str, Any], system_prompt: str | None = None) -> Specification:
    """Build a specification from a catalog entry mapping.

    ``name`` is accepted as a synonym for ``id``. Tags, latency class,
    capabilities and summary are inferred from the system prompt when the
    entry does not declare them.

    Raises:
        CatalogError: if the entry has no id or carries malformed fields.
    """
    identifier = data.get("id") or data.get("name")
    if not identifier or not isinstance(identifier, str):
        raise CatalogError("Catalog entry has no 'id'")

    system = system_prompt if system_prompt is not None else data.get("system_prompt", "")
    system = system or ""

    latency_class = data.get("latency_class") or infer_latency_class(identifier, system)
    if latency_class not in LATENCY_CLASSES:
        raise CatalogError(
            f"{identifier}: invalid latency_class {latency_class!r} "
            f"(expected one of {', '.join(LATENCY_CLASSES)})"
        )

    permissions = data.get("permissions") or []
    if not isinstance(permissions, list):
        raise CatalogError(f"{identifier}: 'permissions' must be a list")

    tags = _str_list(data, "tags")
    capabilities = _str_list(data, "capabilities")
    description = data.get("description", "") or ""

    try:
        tool_requirements = _tool_requirements(data.get("tool_requirements"))
        if tool_requirements is None:
            allowlist = extract_cli_allowlist(permissions)
            if allowlist:
                tool_requirements = ToolRequirements(
                    cli_allowlist=[CLIToolSpec(name=t) for t in allowlist]
                )
        budget = data.get("context_budget")
        safety = data.get("safety")
        host = data.get("host_compatibility")

        return Specification(
            id=identifier,
            aliases=_str_list(data, "aliases") or [],
            owner=data.get("owner", "") or "",
            version=str(data.get("version", "") or ""),
            summary=data.get("summary") or description or extract_summary(system),
            description=description or system,
            tags=tags if tags is not None else infer_tags(identifier, system),
            latency_class=latency_class,
            capabilities=(
                capabilities
                if capabilities is not None
                else infer_capabilities(identifier, system, permissions)
            ),
            system_prompt=system,
            tool_requirements=tool_requirements,
            service_config=data.get("service_config"),
            permissions=permissions,
            context_budget=ContextBudget(**budget) if budget else None,
            safety=SafetyPolicy(**safety) if safety else None,
            host_compatibility=HostCompatibility(**host) if host else None,
        )
    except (TypeError, AttributeError) as e:
        raise CatalogError(f"{identifier}: malformed catalog entry: {e}") from e


def spec_from_markdown(path: str) -> Specification:
    """Load a specification from a markdown file with YAML frontmatter."""
    with open(path, "r") as f:
        content = f.read()

    match = _FRONTMATTER.match(content)
    if not match:
        raise CatalogError(f"{path}: missing YAML frontmatter")

    try:
        frontmatter = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        raise CatalogError(f"{path}: invalid frontmatter: {e}") from e
    if not isinstance(frontmatter, dict):
        raise CatalogError(f"{path}: frontmatter must be a mapping")

    return spec_from_dict(frontmatter, system_prompt=match.group(2).strip())


def discover_specs(search_dirs: list[str]) -> list[Specification]:
    """Load every ``*.md`` agent definition in the given directories.

    Files are read in sorted order. Malformed files are logged and skipped.
    """
    specs = []
    for dir_path in search_dirs:
        if not os.path.isdir(dir_path):
            logger.warning("Agents directory not found: %s", dir_path)
            continue
        for fname in sorted(os.listdir(dir_path)):
            if not fname.endswith(".md"):
                continue
            full_path = os.path.join(dir_path, fname)
            try:
                spec = spec_from_markdown(full_path)
            except (CatalogError, OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping agent definition %s: %s", full_path, e)
                continue
            specs.append(spec)
            logger.debug("Discovered subagent %s in %s", spec.id, full_path)
    logger.info("Discovered %d subagents in %s", len(specs), ", ".join(search_dirs))
    return specs
