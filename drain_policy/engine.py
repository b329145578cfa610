"""Drain eligibility engine.

Resolves and classifies every pod on a node, concurrently and without
failing fast, then folds the verdicts into one DrainDecision.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from drain_policy.aggregator import aggregate
from drain_policy.classifier import classify
from drain_policy.models import DrainPolicy, OwnerReference
from drain_policy.resolver import DEFAULT_LOOKUP_TIMEOUT, OwnerResolver

if TYPE_CHECKING:
    from collections.abc import Sequence

    from drain_policy.client import ControlPlaneClient
    from drain_policy.config import DrainSettings
    from drain_policy.decoder import ReferenceDecoder
    from drain_policy.models import DrainDecision, PodDescriptor, Verdict

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8


class DrainEngine:
    """Decides which pods a node drain may evict."""

    def __init__(
        self,
        client: ControlPlaneClient,
        decoder: ReferenceDecoder | None = None,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._resolver = OwnerResolver(client, decoder, lookup_timeout=lookup_timeout)
        self._max_concurrency = max_concurrency

    @classmethod
    def from_settings(
        cls,
        settings: DrainSettings,
        client: ControlPlaneClient,
        decoder: ReferenceDecoder | None = None,
    ) -> DrainEngine:
        return cls(
            client,
            decoder,
            max_concurrency=settings.max_concurrency,
            lookup_timeout=settings.lookup_timeout_seconds,
        )

    async def classify_pod(self, pod: PodDescriptor, policy: DrainPolicy) -> Verdict:
        """Resolve the pod's owner and classify it."""
        if pod.is_mirror:
            # kubelet-owned; nothing to look up
            owner = OwnerReference.absent()
        else:
            owner = await self._resolver.resolve(pod, policy)
        return classify(pod, owner, policy)

    async def evaluate(
        self,
        pods: Sequence[PodDescriptor],
        policy: DrainPolicy | None = None,
    ) -> DrainDecision:
        """Classify all pods and aggregate the result.

        Every pod is evaluated even after a violation is found, so the
        returned error lists all blocking pods at once.
        """
        policy = policy or DrainPolicy()
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _bounded(pod: PodDescriptor) -> Verdict:
            async with semaphore:
                return await self.classify_pod(pod, policy)

        logger.info(
            "Evaluating %d pod(s) for drain (concurrency=%d)",
            len(pods),
            self._max_concurrency,
        )
        # gather keeps input order
        verdicts = await asyncio.gather(*(_bounded(pod) for pod in pods))
        return aggregate(verdicts, grace_period_seconds=policy.grace_period_seconds)


async def get_pods_for_deletion(
    pods: Sequence[PodDescriptor],
    decoder: ReferenceDecoder | None,
    policy: DrainPolicy,
    client: ControlPlaneClient,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT,
) -> list[PodDescriptor]:
    """Return the pods a drain may evict, in input order.

    Raises AggregateDrainError naming every violating pod if any pod
    blocks the drain.
    """
    engine = DrainEngine(
        client, decoder, max_concurrency=max_concurrency, lookup_timeout=lookup_timeout
    )
    decision = await engine.evaluate(pods, policy)
    decision.raise_for_violations()
    return decision.pods
