"""Tests for folding verdicts into a drain decision."""

from __future__ import annotations

from drain_policy.aggregator import aggregate
from drain_policy.errors import AggregateDrainError
from drain_policy.models import PodDescriptor, Verdict


def _pod(name: str) -> PodDescriptor:
    return PodDescriptor(name=name)


def test_evict_list_keeps_input_order() -> None:
    verdicts = [
        Verdict.evict(_pod("c")),
        Verdict.skip(_pod("ds"), "managed by a daemon set"),
        Verdict.evict(_pod("a")),
        Verdict.evict(_pod("b")),
    ]
    decision = aggregate(verdicts, grace_period_seconds=15)
    assert decision.ok
    assert [p.name for p in decision.pods] == ["c", "a", "b"]
    assert [p.name for p in decision.skipped] == ["ds"]
    assert decision.grace_period_seconds == 15
    assert len(decision.verdicts) == 4


def test_only_skipped_pods_is_success() -> None:
    decision = aggregate([Verdict.skip(_pod("ds"), "managed by a daemon set")])
    assert decision.ok
    assert decision.pods == []


def test_no_pods_is_success() -> None:
    decision = aggregate([])
    assert decision.ok
    assert decision.pods == []


def test_any_violation_empties_evict_list() -> None:
    verdicts = [
        Verdict.evict(_pod("a")),
        Verdict.violation(_pod("naked"), ["no controller"]),
    ]
    decision = aggregate(verdicts)
    assert not decision.ok
    assert decision.pods == []
    assert isinstance(decision.error, AggregateDrainError)


def test_error_reports_every_violation() -> None:
    verdicts = [
        Verdict.violation(_pod("one"), ["no controller"]),
        Verdict.evict(_pod("fine")),
        Verdict.violation(_pod("two"), ["uses node-local storage"]),
        Verdict.violation(_pod("three"), ["referenced controller not found"]),
    ]
    decision = aggregate(verdicts)
    assert decision.error is not None
    assert [v.pod.name for v in decision.error.violations] == ["one", "two", "three"]
    message = str(decision.error)
    for reason in ("no controller", "uses node-local storage", "referenced controller not found"):
        assert reason in message
