"""Fold per-pod verdicts into a single drain decision."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from drain_policy.errors import AggregateDrainError
from drain_policy.models import DrainDecision, VerdictKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from drain_policy.models import Verdict

logger = logging.getLogger(__name__)


def aggregate(verdicts: Iterable[Verdict], grace_period_seconds: int = 0) -> DrainDecision:
    """Build the evict list, or one error naming every violating pod.

    Verdicts must be given in input pod order; the evict list keeps it.
    """
    verdicts = list(verdicts)
    violations = [v for v in verdicts if v.kind == VerdictKind.VIOLATION]

    if violations:
        logger.info(
            "Drain blocked by %d of %d pod(s)", len(violations), len(verdicts)
        )
        return DrainDecision(
            pods=[],
            verdicts=verdicts,
            error=AggregateDrainError(violations),
            grace_period_seconds=grace_period_seconds,
        )

    pods = [v.pod for v in verdicts if v.kind == VerdictKind.EVICT]
    logger.info(
        "Drain allowed: %d pod(s) to evict, %d skipped",
        len(pods),
        len(verdicts) - len(pods),
    )
    return DrainDecision(
        pods=pods,
        verdicts=verdicts,
        grace_period_seconds=grace_period_seconds,
    )
