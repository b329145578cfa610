"""Drain eligibility data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from drain_policy.errors import AggregateDrainError

MIRROR_POD_ANNOTATION = "kubernetes.io/config.mirror"
SYSTEM_NAMESPACE = "kube-system"


class OwnerKind(StrEnum):
    """Closed set of controller kinds a pod can be owned by."""

    ABSENT = "absent"
    REPLICATION_CONTROLLER = "ReplicationController"
    REPLICA_SET = "ReplicaSet"
    DAEMON_SET = "DaemonSet"
    JOB = "Job"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def from_kind(cls, kind: str | None) -> OwnerKind:
        """Map a Kubernetes kind string onto the closed set."""
        if not kind:
            return cls.ABSENT
        try:
            kind_value = cls(kind)
        except ValueError:
            return cls.UNRECOGNIZED
        # "absent" and "unrecognized" are not real Kubernetes kinds
        if kind_value in (cls.ABSENT, cls.UNRECOGNIZED):
            return cls.UNRECOGNIZED
        return kind_value

    @property
    def requires_live_owner(self) -> bool:
        """Whether eviction requires a successful lookup of the owner."""
        return self in (OwnerKind.REPLICATION_CONTROLLER, OwnerKind.REPLICA_SET)

    @property
    def is_lookup_kind(self) -> bool:
        """Whether the control plane is queried for this kind."""
        return self in (
            OwnerKind.REPLICATION_CONTROLLER,
            OwnerKind.REPLICA_SET,
            OwnerKind.DAEMON_SET,
            OwnerKind.JOB,
        )


class LookupStatus(StrEnum):
    """Outcome of fetching an owning controller from the control plane."""

    NOT_REQUIRED = "not_required"
    FOUND = "found"
    FAILED = "failed"
    SKIPPED = "skipped"


class ObjectReference(BaseModel):
    """A decoded, not yet verified, reference to a Kubernetes object."""

    kind: str
    name: str
    namespace: str = ""
    api_version: str | None = Field(default=None, alias="apiVersion")
    uid: str | None = None

    model_config = {"populate_by_name": True, "frozen": True}


class OwnerReference(BaseModel):
    """Resolved identity of the controller that owns a pod."""

    kind: OwnerKind
    name: str = ""
    namespace: str = ""
    raw_kind: str = ""
    lookup: LookupStatus = LookupStatus.NOT_REQUIRED
    lookup_error: str | None = None
    replicas: int | None = None
    decode_error: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def absent(cls) -> OwnerReference:
        """Reference for a naked pod with no controller."""
        return cls(kind=OwnerKind.ABSENT)

    @property
    def verified(self) -> bool:
        """True when the owner was fetched, or fetching was disabled by policy."""
        return self.lookup in (LookupStatus.FOUND, LookupStatus.SKIPPED)


class Volume(BaseModel):
    """A pod volume, reduced to its name and source type."""

    name: str
    source: str = ""  # manifest key, e.g. "emptyDir", "hostPath", "persistentVolumeClaim"

    model_config = {"frozen": True}

    @property
    def is_node_local(self) -> bool:
        """Scratch volumes live on the node's disk and vanish with the pod."""
        return self.source == "emptyDir"

    @classmethod
    def from_manifest(cls, data: dict[str, Any]) -> Volume:
        sources = [k for k in data if k != "name"]
        return cls(name=data.get("name", ""), source=sources[0] if sources else "")


class PodDescriptor(BaseModel):
    """The subset of a pod that drain eligibility depends on."""

    name: str
    namespace: str = "default"
    annotations: dict[str, str] = {}
    owner_references: list[dict[str, Any]] = []
    volumes: list[Volume] = []
    node_name: str = ""

    model_config = {"frozen": True}

    @classmethod
    def from_manifest(cls, manifest: dict[str, Any]) -> PodDescriptor:
        """Build a descriptor from a Kubernetes Pod manifest."""
        metadata = manifest.get("metadata", {})
        spec = manifest.get("spec", {})
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace") or "default",
            annotations=metadata.get("annotations") or {},
            owner_references=metadata.get("ownerReferences") or [],
            volumes=[Volume.from_manifest(v) for v in spec.get("volumes") or []],
            node_name=spec.get("nodeName", ""),
        )

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    @property
    def is_mirror(self) -> bool:
        return MIRROR_POD_ANNOTATION in self.annotations

    @property
    def has_local_storage(self) -> bool:
        return any(v.is_node_local for v in self.volumes)


class DrainPolicy(BaseModel):
    """Overrides applied to the default drain safety policy.

    Every flag is independent. ``grace_period_seconds`` is not interpreted
    here; it is carried through to whatever performs the eviction.
    """

    allow_unmanaged_pods: bool = False
    allow_local_storage: bool = False
    allow_system_pods: bool = True
    check_references: bool = True
    min_replicas: int = Field(default=0, ge=0)
    grace_period_seconds: int = Field(default=30, ge=0)

    model_config = {"frozen": True}


class VerdictKind(StrEnum):
    """Per-pod drain outcome."""

    EVICT = "evict"
    SKIP = "skip"
    VIOLATION = "violation"


class Verdict(BaseModel):
    """Classification of a single pod."""

    pod: PodDescriptor
    kind: VerdictKind
    reasons: list[str] = []
    owner: OwnerReference | None = None

    @classmethod
    def evict(cls, pod: PodDescriptor, owner: OwnerReference | None = None) -> Verdict:
        return cls(pod=pod, kind=VerdictKind.EVICT, owner=owner)

    @classmethod
    def skip(
        cls, pod: PodDescriptor, reason: str, owner: OwnerReference | None = None
    ) -> Verdict:
        return cls(pod=pod, kind=VerdictKind.SKIP, reasons=[reason], owner=owner)

    @classmethod
    def violation(
        cls, pod: PodDescriptor, reasons: list[str], owner: OwnerReference | None = None
    ) -> Verdict:
        if not reasons:
            raise ValueError("a violation needs at least one reason")
        return cls(pod=pod, kind=VerdictKind.VIOLATION, reasons=reasons, owner=owner)


@dataclass
class DrainDecision:
    """Aggregate result of one drain evaluation."""

    pods: list[PodDescriptor] = field(default_factory=list)
    verdicts: list[Verdict] = field(default_factory=list)
    error: AggregateDrainError | None = None
    grace_period_seconds: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def skipped(self) -> list[PodDescriptor]:
        return [v.pod for v in self.verdicts if v.kind == VerdictKind.SKIP]

    def raise_for_violations(self) -> None:
        """Raise the aggregated error if any pod blocked the drain."""
        if self.error is not None:
            raise self.error
