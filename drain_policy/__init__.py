"""Drain Policy: decides which pods a node drain may safely evict."""

from drain_policy.aggregator import aggregate
from drain_policy.classifier import classify
from drain_policy.client import ControlPlaneClient, InMemoryControlPlane, KubeApiClient
from drain_policy.config import DrainSettings
from drain_policy.decoder import (
    CREATED_BY_ANNOTATION,
    ReferenceDecoder,
    SerializedReferenceDecoder,
)
from drain_policy.engine import DrainEngine, get_pods_for_deletion
from drain_policy.errors import (
    AggregateDrainError,
    DrainError,
    OwnerLookupError,
    OwnerNotFoundError,
    ReferenceDecodeError,
)
from drain_policy.models import (
    DrainDecision,
    DrainPolicy,
    LookupStatus,
    ObjectReference,
    OwnerKind,
    OwnerReference,
    PodDescriptor,
    Verdict,
    VerdictKind,
    Volume,
)
from drain_policy.resolver import OwnerResolver

__all__ = [
    "CREATED_BY_ANNOTATION",
    "AggregateDrainError",
    "ControlPlaneClient",
    "DrainDecision",
    "DrainEngine",
    "DrainError",
    "DrainPolicy",
    "DrainSettings",
    "InMemoryControlPlane",
    "KubeApiClient",
    "LookupStatus",
    "ObjectReference",
    "OwnerKind",
    "OwnerLookupError",
    "OwnerNotFoundError",
    "OwnerReference",
    "OwnerResolver",
    "PodDescriptor",
    "ReferenceDecodeError",
    "ReferenceDecoder",
    "SerializedReferenceDecoder",
    "Verdict",
    "VerdictKind",
    "Volume",
    "aggregate",
    "classify",
    "get_pods_for_deletion",
]
