"""Eligibility classifier: apply the drain policy to one pod.

Precedence, first match wins for the ownership outcome:

1. daemon-set pods are skipped; their controller recreates them elsewhere
2. naked pods are violations unless unmanaged pods are allowed
3. live replication controller / replica set owners, and jobs, allow eviction
4. replication controller / replica set owners that did not resolve are violations

Local storage (and the kube-system guard) are checked independently of
ownership and their reasons are added to the same verdict.
"""

from __future__ import annotations

import logging
from typing import assert_never

from drain_policy.models import (
    SYSTEM_NAMESPACE,
    DrainPolicy,
    LookupStatus,
    OwnerKind,
    OwnerReference,
    PodDescriptor,
    Verdict,
)

logger = logging.getLogger(__name__)

NO_CONTROLLER = "pod has no controller; draining would permanently destroy its sole replica"
CONTROLLER_NOT_FOUND = "referenced controller not found"
LOCAL_STORAGE = "pod uses node-local storage; eviction would lose data"
SYSTEM_POD = "pod runs in the kube-system namespace and is not managed by a daemon set"


def _ownership_reasons(owner: OwnerReference, policy: DrainPolicy) -> list[str]:
    match owner.kind:
        case OwnerKind.ABSENT:
            return [] if policy.allow_unmanaged_pods else [NO_CONTROLLER]
        case OwnerKind.UNRECOGNIZED:
            if policy.allow_unmanaged_pods:
                return []
            return [
                f"pod is owned by unrecognized kind {owner.raw_kind!r}; "
                "nothing known will recreate it"
            ]
        case OwnerKind.JOB:
            # Jobs run to completion; a missing job object does not block eviction.
            return []
        case OwnerKind.REPLICATION_CONTROLLER | OwnerKind.REPLICA_SET:
            if not owner.verified:
                detail = owner.lookup_error or "lookup failed"
                return [
                    f"{CONTROLLER_NOT_FOUND}: "
                    f"{owner.kind} {owner.namespace}/{owner.name} ({detail})"
                ]
            if owner.replicas is not None and owner.replicas < policy.min_replicas:
                return [
                    f"{owner.kind} {owner.namespace}/{owner.name} has too few replicas "
                    f"(spec: {owner.replicas}, min: {policy.min_replicas})"
                ]
            return []
        case OwnerKind.DAEMON_SET:
            return []
        case _:
            assert_never(owner.kind)


def classify(pod: PodDescriptor, owner: OwnerReference, policy: DrainPolicy) -> Verdict:
    """Decide whether a pod may be evicted, must be skipped, or blocks the drain."""
    if pod.is_mirror:
        return Verdict.skip(pod, "mirror pod is managed by the kubelet", owner)

    if owner.decode_error is not None:
        return Verdict.violation(pod, [f"malformed owner reference: {owner.decode_error}"], owner)

    if owner.kind is OwnerKind.DAEMON_SET:
        if owner.lookup == LookupStatus.FAILED:
            logger.warning(
                "Daemon set %s/%s of pod %s did not resolve (%s); skipping the pod anyway",
                owner.namespace,
                owner.name,
                pod.key,
                owner.lookup_error,
            )
        return Verdict.skip(pod, "managed by a daemon set", owner)

    reasons = _ownership_reasons(owner, policy)

    if pod.namespace == SYSTEM_NAMESPACE and not policy.allow_system_pods:
        reasons.append(SYSTEM_POD)

    if pod.has_local_storage and not policy.allow_local_storage:
        reasons.append(LOCAL_STORAGE)

    if reasons:
        logger.debug("Pod %s blocks the drain: %s", pod.key, reasons)
        return Verdict.violation(pod, reasons, owner)

    logger.debug("Pod %s can be evicted (owner kind %s)", pod.key, owner.kind)
    return Verdict.evict(pod, owner)
