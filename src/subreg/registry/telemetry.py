"""Telemetry tracker — exponential moving averages per agent."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from subreg.registry.models import Telemetry
from subreg.registry.store import DescriptorStore

logger = logging.getLogger(__name__)

SMOOTHING = 0.1


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def next_telemetry(
    current: Telemetry | None,
    success: bool,
    latency_ms: float,
    now: str,
) -> Telemetry:
    """Fold one outcome into a telemetry block.

    The first outcome seeds the averages directly; later ones are blended
    in with weight ``SMOOTHING``.
    """
    outcome = 1.0 if success else 0.0
    if current is None:
        return Telemetry(
            success_score=outcome,
            typical_latency_ms=float(latency_ms),
            invocation_count=1,
            last_invoked=now,
        )
    return Telemetry(
        success_score=current.success_score * (1 - SMOOTHING) + outcome * SMOOTHING,
        typical_latency_ms=(
            current.typical_latency_ms * (1 - SMOOTHING) + latency_ms * SMOOTHING
        ),
        invocation_count=current.invocation_count + 1,
        last_invoked=now,
    )


class TelemetryTracker:
    """Records task outcomes into the store's telemetry blocks."""

    def __init__(
        self,
        store: DescriptorStore,
        clock: Callable[[], str] = _utc_now,
    ) -> None:
        self._store = store
        self._clock = clock

    def record_outcome(self, identifier: str, success: bool, latency_ms: float) -> bool:
        """Apply one outcome. Unknown ids are ignored and return False."""
        now = self._clock()
        updated = self._store.update_telemetry(
            identifier,
            lambda current: next_telemetry(current, success, latency_ms, now),
        )
        if not updated:
            logger.debug("Ignoring telemetry for unknown subagent %s", identifier)
        return updated
