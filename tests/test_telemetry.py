"""Tests for subreg.registry.telemetry."""

from __future__ import annotations

import pytest

from subreg.registry.models import Specification, Telemetry
from subreg.registry.store import DescriptorStore
from subreg.registry.telemetry import TelemetryTracker, next_telemetry


def _tracker() -> tuple[DescriptorStore, TelemetryTracker]:
    store = DescriptorStore()
    store.register(Specification(id="agent", summary="does things"))
    return store, TelemetryTracker(store, clock=lambda: "2025-01-01T00:00:00+00:00")


class TestNextTelemetry:
    def test_first_success(self) -> None:
        t = next_telemetry(None, True, 250, "now")
        assert t == Telemetry(
            success_score=1.0, typical_latency_ms=250.0, invocation_count=1, last_invoked="now"
        )

    def test_first_failure(self) -> None:
        t = next_telemetry(None, False, 40, "now")
        assert t.success_score == 0.0
        assert t.invocation_count == 1

    def test_smoothing(self) -> None:
        current = Telemetry(success_score=1.0, typical_latency_ms=100.0, invocation_count=1)
        t = next_telemetry(current, False, 200, "later")
        assert t.success_score == pytest.approx(0.9)
        assert t.typical_latency_ms == pytest.approx(110.0)
        assert t.invocation_count == 2
        assert t.last_invoked == "later"

    def test_does_not_mutate_current(self) -> None:
        current = Telemetry(success_score=1.0, typical_latency_ms=100.0, invocation_count=1)
        next_telemetry(current, False, 200, "later")
        assert current.success_score == 1.0
        assert current.invocation_count == 1


class TestTelemetryTracker:
    def test_record_fresh(self) -> None:
        store, tracker = _tracker()
        assert tracker.record_outcome("agent", True, 1830)
        t = store.get_specification("agent").telemetry
        assert t.success_score == 1.0
        assert t.typical_latency_ms == 1830.0
        assert t.invocation_count == 1
        assert t.last_invoked == "2025-01-01T00:00:00+00:00"

    def test_converges_geometrically(self) -> None:
        store, tracker = _tracker()
        tracker.record_outcome("agent", False, 100)
        for n in range(1, 11):
            tracker.record_outcome("agent", True, 100)
            score = store.get_specification("agent").telemetry.success_score
            assert score == pytest.approx(1 - 0.9**n)
        assert store.get_specification("agent").telemetry.invocation_count == 11

    def test_unknown_id_is_noop(self) -> None:
        store, tracker = _tracker()
        assert tracker.record_outcome("ghost", True, 10) is False
        assert len(store) == 1
        assert store.get_specification("agent").telemetry is None

    def test_default_clock_is_iso(self) -> None:
        store = DescriptorStore()
        store.register(Specification(id="agent"))
        TelemetryTracker(store).record_outcome("agent", True, 1)
        stamp = store.get_specification("agent").telemetry.last_invoked
        assert "T" in stamp
        assert stamp.endswith("+00:00")
