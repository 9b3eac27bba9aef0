"""Relevance ranker — deterministic keyword and tag scoring.

Scoring is deliberately transparent so every ranking can be audited by
hand. For each capsule that survives the hard filters:

    +100  query equals the id or an alias (whole string, case-insensitive)
     +20  per tag contained in the query
      +5  per (tag, query word) pair where the word occurs in the tag
     +10  per query word found in the summary
     +15  per capability keyword contained in the query

The sum is then scaled by ``0.8 + 0.2 * success_score`` when the agent has
telemetry. Capsules scoring zero are dropped; the rest are ordered by
score, ties by registration order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from subreg.registry.models import Capsule, HostCapabilities, HostCompatibility
from subreg.registry.store import DescriptorStore, StoreEntry

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
MIN_WORD_LENGTH = 3

EXACT_MATCH_SCORE = 100.0
TAG_IN_QUERY_SCORE = 20.0
WORD_IN_TAG_SCORE = 5.0
WORD_IN_SUMMARY_SCORE = 10.0
CAPABILITY_IN_QUERY_SCORE = 15.0


@dataclass
class ScoredCapsule:
    capsule: Capsule
    score: float
    sequence: int


def query_words(query: str) -> list[str]:
    """Lowercase, split on whitespace, drop words of two characters or fewer."""
    return [w for w in query.lower().split() if len(w) >= MIN_WORD_LENGTH]


def host_compatible(
    compat: HostCompatibility | None, host: HostCapabilities | None
) -> bool:
    """Whether an agent's declared host constraints are met by ``host``."""
    if host is None or compat is None:
        return True
    if host.scm and compat.scm:
        if not any(scm in compat.scm for scm in host.scm):
            return False
    if host.os and compat.os:
        if host.os not in compat.os:
            return False
    if compat.needs_gui and not host.has_gui:
        return False
    return True


def passes_filters(
    entry: StoreEntry,
    tags: list[str] | None = None,
    latency_class: str | None = None,
    host_caps: HostCapabilities | None = None,
) -> bool:
    capsule = entry.capsule
    if (
        latency_class
        and capsule.latency_class != "both"
        and capsule.latency_class != latency_class
    ):
        return False
    if tags and not any(tag in capsule.tags for tag in tags):
        return False
    return host_compatible(entry.host_compatibility, host_caps)


def score_capsule(
    capsule: Capsule,
    query: str,
    words: list[str],
    success_score: float | None = None,
) -> float:
    """Score one capsule against a lowercased query and its words."""
    score = 0.0

    if capsule.id.lower() == query or any(a.lower() == query for a in capsule.aliases):
        score += EXACT_MATCH_SCORE

    for tag in capsule.tags:
        tag_lower = tag.lower()
        if tag_lower in query:
            score += TAG_IN_QUERY_SCORE
        for word in words:
            if word in tag_lower:
                score += WORD_IN_TAG_SCORE

    summary_lower = capsule.summary.lower()
    for word in words:
        if word in summary_lower:
            score += WORD_IN_SUMMARY_SCORE

    for cap in capsule.capabilities:
        if cap.lower() in query:
            score += CAPABILITY_IN_QUERY_SCORE

    if success_score is not None:
        score *= 0.8 + 0.2 * success_score

    return score


class RelevanceRanker:
    """Ranks the capsules of a :class:`DescriptorStore` against a query."""

    def __init__(self, store: DescriptorStore) -> None:
        self._store = store

    def rank(
        self,
        query: str,
        tags: list[str] | None = None,
        latency_class: str | None = None,
        host_caps: HostCapabilities | None = None,
    ) -> list[ScoredCapsule]:
        """All matching capsules with a positive score, best first."""
        normalized = query.lower()
        words = query_words(query)

        scored: list[ScoredCapsule] = []
        for entry in self._store.entries():
            if not passes_filters(entry, tags, latency_class, host_caps):
                continue
            score = score_capsule(entry.capsule, normalized, words, entry.success_score)
            if score > 0:
                scored.append(ScoredCapsule(entry.capsule, score, entry.sequence))

        scored.sort(key=lambda s: (-s.score, s.sequence))
        return scored

    def search(
        self,
        query: str,
        limit: int = DEFAULT_LIMIT,
        tags: list[str] | None = None,
        latency_class: str | None = None,
        host_caps: HostCapabilities | None = None,
    ) -> tuple[list[Capsule], int]:
        """Top ``limit`` capsules and the number of capsules that scored."""
        scored = self.rank(query, tags, latency_class, host_caps)
        logger.debug(
            "Ranked %d/%d subagents for query %r", len(scored), len(self._store), query
        )
        return [s.capsule for s in scored[:limit]], len(scored)
