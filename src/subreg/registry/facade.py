"""Registry facade — the single entry point for discovery.

Composes the descriptor store, ranker, caches and telemetry tracker into
four operations: search, get_manifest, list and update_telemetry.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Callable

from subreg.registry.cache import TTLCache
from subreg.registry.models import (
    Capsule,
    ListResponse,
    SearchDiagnostics,
    SearchRequest,
    SearchResponse,
    Specification,
)
from subreg.registry.ranker import DEFAULT_LIMIT, RelevanceRanker
from subreg.registry.store import DescriptorStore
from subreg.registry.telemetry import TelemetryTracker

if TYPE_CHECKING:
    from subreg.config import SubregConfig

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
SEARCH_CACHE_SIZE = 20
MANIFEST_CACHE_SIZE = 5
CACHE_TTL_SECONDS = 5 * 60


@dataclass
class _CachedSearch:
    capsules: list[Capsule]
    total: int


def _search_cache_key(request: SearchRequest, limit: int) -> str:
    return json.dumps(
        {
            "query": request.query,
            "limit": limit,
            "tags": request.tags or None,
            "latency_class": request.latency_class,
            "host_caps": asdict(request.host_caps) if request.host_caps else None,
        },
        sort_keys=True,
    )


class SubagentRegistry:
    """In-memory registry of subagent specifications.

    Usage:
        registry = SubagentRegistry(load_builtin_specs())
        hits = registry.search(SearchRequest(query="security audit"))
        spec = registry.get_manifest(hits.capsules[0].id)
        ...
        registry.update_telemetry(spec.id, success=True, latency_ms=1830)

    Capsules are cheap and returned freely; full specifications are only
    produced by ``get_manifest``. Both caches are bounded and expire after
    ``cache_ttl`` seconds.
    """

    def __init__(
        self,
        specs: Iterable[Specification] = (),
        *,
        search_cache_size: int = SEARCH_CACHE_SIZE,
        manifest_cache_size: int = MANIFEST_CACHE_SIZE,
        cache_ttl: float = CACHE_TTL_SECONDS,
        default_limit: int = DEFAULT_LIMIT,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = DescriptorStore()
        self._ranker = RelevanceRanker(self._store)
        self._telemetry = TelemetryTracker(self._store)
        self._search_cache: TTLCache[_CachedSearch] = TTLCache(
            search_cache_size, cache_ttl, clock
        )
        self._manifest_cache: TTLCache[Specification] = TTLCache(
            manifest_cache_size, cache_ttl, clock
        )
        self.default_limit = default_limit
        self.default_page_size = default_page_size

        for spec in specs:
            self.register(spec)

    @classmethod
    def from_config(
        cls, config: SubregConfig, specs: Iterable[Specification] = ()
    ) -> SubagentRegistry:
        return cls(
            specs,
            search_cache_size=config.cache.search_capacity,
            manifest_cache_size=config.cache.manifest_capacity,
            cache_ttl=config.cache.ttl_seconds,
            default_limit=config.search.default_limit,
            default_page_size=config.search.default_page_size,
        )

    # -- registration -------------------------------------------------------

    def register(self, spec: Specification) -> None:
        """Register or replace a specification.

        Both caches are cleared: an id can take an alias away from another
        agent, which changes that agent's manifest as well.
        """
        self._store.register(spec)
        self._search_cache.clear()
        self._manifest_cache.clear()

    def resolve_alias(self, id_or_alias: str) -> str | None:
        return self._store.resolve_alias(id_or_alias)

    # -- discovery ----------------------------------------------------------

    def search(self, request: SearchRequest) -> SearchResponse:
        """Rank capsules against a free-text query and structural filters."""
        start = time.perf_counter()
        limit = request.limit if request.limit and request.limit > 0 else self.default_limit

        key = _search_cache_key(request, limit)
        cached = self._search_cache.get(key)
        if cached is not None:
            return SearchResponse(
                capsules=list(cached.capsules),
                total=cached.total,
                diagnostics=SearchDiagnostics(
                    duration_ms=(time.perf_counter() - start) * 1000,
                    cache_hit=True,
                ),
            )

        capsules, total = self._ranker.search(
            request.query,
            limit=limit,
            tags=request.tags,
            latency_class=request.latency_class,
            host_caps=request.host_caps,
        )
        self._search_cache.put(key, _CachedSearch(capsules=list(capsules), total=total))

        return SearchResponse(
            capsules=capsules,
            total=total,
            diagnostics=SearchDiagnostics(
                duration_ms=(time.perf_counter() - start) * 1000,
                cache_hit=False,
            ),
        )

    def get_manifest(self, id_or_alias: str) -> Specification | None:
        """Full specification by id or alias, or None if unknown."""
        identifier = self._store.resolve_alias(id_or_alias)
        if identifier is None:
            return None

        cached = self._manifest_cache.get(identifier)
        if cached is not None:
            return cached.copy()

        spec = self._store.get_specification(identifier)
        if spec is not None:
            self._manifest_cache.put(identifier, spec.copy())
        return spec

    def list(
        self,
        tags: list[str] | None = None,
        page_size: int | None = None,
        offset: int = 0,
    ) -> ListResponse:
        """Page through capsules in registration order, optionally by tag."""
        if page_size is None or page_size < 1:
            page_size = self.default_page_size
        offset = max(0, offset)

        capsules = self._store.all_capsules()
        if tags:
            capsules = [c for c in capsules if any(t in c.tags for t in tags)]

        total = len(capsules)
        return ListResponse(
            capsules=capsules[offset : offset + page_size],
            total=total,
            has_more=offset + page_size < total,
        )

    def update_telemetry(self, identifier: str, success: bool, latency_ms: float) -> None:
        """Feed one task outcome back into ranking."""
        self._telemetry.record_outcome(identifier, success, latency_ms)

    # -- admin --------------------------------------------------------------

    def all_capsules(self) -> list[Capsule]:
        return self._store.all_capsules()

    def all_manifests(self) -> list[Specification]:
        return self._store.all_specifications()

    def names(self) -> list[str]:
        return self._store.ids()

    def clear_cache(self) -> None:
        self._search_cache.clear()
        self._manifest_cache.clear()

    @property
    def search_cache(self) -> TTLCache[_CachedSearch]:
        return self._search_cache

    @property
    def manifest_cache(self) -> TTLCache[Specification]:
        return self._manifest_cache

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, id_or_alias: str) -> bool:
        return self._store.resolve_alias(id_or_alias) is not None
