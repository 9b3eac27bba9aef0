"""Catalog — the static and discovered sources of subagent specifications."""

from __future__ import annotations

import logging
import os

from subreg.catalog.builtin import LEGACY_SUBAGENTS, permission
from subreg.catalog.inference import normalize_legacy
from subreg.catalog.loader import (
    discover_specs,
    load_builtin_specs,
    spec_from_dict,
    spec_from_markdown,
)
from subreg.config import SubregConfig
from subreg.registry import SubagentRegistry
from subreg.registry.models import Specification

logger = logging.getLogger(__name__)

__all__ = [
    "LEGACY_SUBAGENTS",
    "permission",
    "normalize_legacy",
    "discover_specs",
    "load_builtin_specs",
    "spec_from_dict",
    "spec_from_markdown",
    "load_catalog",
    "build_registry",
]


def load_catalog(config: SubregConfig) -> list[Specification]:
    """Built-ins first, then markdown definitions from ``agents_dir``.

    A discovered definition with the same id as a built-in replaces it.
    """
    specs: list[Specification] = []
    if config.include_builtin:
        specs.extend(load_builtin_specs())
    if config.agents_dir:
        specs.extend(discover_specs([os.path.abspath(config.agents_dir)]))
    return specs


def build_registry(config: SubregConfig | None = None) -> SubagentRegistry:
    """Create a registry populated from the configured catalog."""
    config = config or SubregConfig()
    registry = SubagentRegistry.from_config(config, load_catalog(config))
    logger.info("Registry ready with %d subagents", len(registry))
    return registry
