"""Configuration — Pydantic models for subreg settings."""

from __future__ import annotations

import json
import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class CacheConfig(BaseModel):
    """Bounds for the search-result and specification caches."""

    search_capacity: int = Field(default=20, ge=1)
    manifest_capacity: int = Field(default=5, ge=1)
    ttl_seconds: float = Field(default=300.0, gt=0)


class SearchConfig(BaseModel):
    default_limit: int = Field(default=5, ge=1)
    default_page_size: int = Field(default=50, ge=1)


class EngineConfig(BaseModel):
    """Execution engine configuration.

    Model names use litellm's provider-prefix format:
        "anthropic/claude-sonnet-4-5-20250929"
        "openai/gpt-4o"

    API keys are read from env vars automatically by litellm.
    """

    model: str = Field(default="anthropic/claude-sonnet-4-5-20250929")
    temperature: float | None = Field(default=None)
    max_tokens: int | None = Field(default=None)
    default_timeout_s: float | None = Field(
        default=None, description="Per-invocation timeout; None waits forever"
    )
    default_context_tokens: int = Field(
        default=2000,
        description="Context budget used when a specification declares none",
    )


class SubregConfig(BaseModel):
    """Top-level subreg configuration."""

    cache: CacheConfig = Field(default_factory=CacheConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    include_builtin: bool = Field(
        default=True, description="Register the built-in subagent catalog"
    )
    agents_dir: str | None = Field(
        default=None, description="Directory of markdown agent definitions"
    )

    @classmethod
    def load(cls, config_path: str | None = None) -> SubregConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            SUBREG_MODEL                 - Execution engine model (litellm format)
            SUBREG_CACHE_TTL             - Cache TTL in seconds
            SUBREG_SEARCH_CACHE_SIZE     - Search-result cache capacity
            SUBREG_MANIFEST_CACHE_SIZE   - Specification cache capacity
            SUBREG_AGENTS_DIR            - Directory of markdown agent definitions
        """
        load_dotenv(override=True)

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        cache = config_data.get("cache", {})
        engine = config_data.get("engine", {})

        env_model = os.environ.get("SUBREG_MODEL")
        if env_model:
            engine["model"] = env_model

        env_ttl = os.environ.get("SUBREG_CACHE_TTL")
        if env_ttl:
            cache["ttl_seconds"] = float(env_ttl)

        env_search_size = os.environ.get("SUBREG_SEARCH_CACHE_SIZE")
        if env_search_size:
            cache["search_capacity"] = int(env_search_size)

        env_manifest_size = os.environ.get("SUBREG_MANIFEST_CACHE_SIZE")
        if env_manifest_size:
            cache["manifest_capacity"] = int(env_manifest_size)

        env_agents_dir = os.environ.get("SUBREG_AGENTS_DIR")
        if env_agents_dir:
            config_data["agents_dir"] = env_agents_dir

        if cache:
            config_data["cache"] = cache
        if engine:
            config_data["engine"] = engine

        return cls.model_validate(config_data)
