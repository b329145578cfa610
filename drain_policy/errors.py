"""Exceptions raised while deciding which pods a drain may evict."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from drain_policy.models import Verdict


class DrainError(Exception):
    """Base class for drain eligibility errors."""


class ReferenceDecodeError(DrainError):
    """A pod's serialized owner reference could not be parsed."""


class OwnerLookupError(DrainError):
    """The control plane could not be asked about an owning controller."""

    def __init__(self, kind: str, namespace: str, name: str, detail: str) -> None:
        self.kind = kind
        self.namespace = namespace
        self.name = name
        self.detail = detail
        super().__init__(f"{kind} {namespace}/{name}: {detail}")


class OwnerNotFoundError(OwnerLookupError):
    """The control plane reports that the owning controller does not exist."""

    def __init__(self, kind: str, namespace: str, name: str) -> None:
        super().__init__(kind, namespace, name, "not found")


class AggregateDrainError(DrainError):
    """Every policy violation found in a single drain evaluation."""

    def __init__(self, violations: list[Verdict]) -> None:
        self.violations = list(violations)
        lines = [f"{v.pod.key}: {'; '.join(v.reasons)}" for v in self.violations]
        super().__init__(
            f"{len(self.violations)} pod(s) block the drain:\n  " + "\n  ".join(lines)
        )

    @property
    def reasons(self) -> dict[str, list[str]]:
        """Violation reasons keyed by ``namespace/name``."""
        out: dict[str, list[str]] = {}
        for v in self.violations:
            out.setdefault(v.pod.key, []).extend(v.reasons)
        return out
