"""Owner resolution: find and verify the controller responsible for a pod."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from drain_policy.decoder import (
    CREATED_BY_ANNOTATION,
    ReferenceDecoder,
    SerializedReferenceDecoder,
    controller_reference,
)
from drain_policy.errors import OwnerLookupError, ReferenceDecodeError
from drain_policy.models import LookupStatus, ObjectReference, OwnerKind, OwnerReference

if TYPE_CHECKING:
    from drain_policy.client import ControlPlaneClient
    from drain_policy.models import DrainPolicy, PodDescriptor

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_TIMEOUT = 10.0


class OwnerResolver:
    """Resolves pod owner references against the control plane.

    Nothing is cached: every call reflects the control plane as it is now.
    """

    def __init__(
        self,
        client: ControlPlaneClient,
        decoder: ReferenceDecoder | None = None,
        *,
        lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT,
    ) -> None:
        self._client = client
        self._decoder = decoder or SerializedReferenceDecoder()
        self._lookup_timeout = lookup_timeout

    def decode(self, pod: PodDescriptor) -> ObjectReference | None:
        """Extract the pod's owner reference without contacting the control plane.

        The created-by annotation takes precedence over ``ownerReferences``.
        Raises ReferenceDecodeError on malformed metadata.
        """
        raw = pod.annotations.get(CREATED_BY_ANNOTATION)
        if raw is not None:
            ref = self._decoder.decode(raw)
            if not ref.namespace:
                ref = ref.model_copy(update={"namespace": pod.namespace})
            return ref
        return controller_reference(pod.owner_references, pod.namespace)

    async def resolve(self, pod: PodDescriptor, policy: DrainPolicy) -> OwnerReference:
        try:
            ref = self.decode(pod)
        except ReferenceDecodeError as exc:
            logger.warning("Pod %s has a malformed owner reference: %s", pod.key, exc)
            return OwnerReference(kind=OwnerKind.UNRECOGNIZED, decode_error=str(exc))

        if ref is None:
            return OwnerReference.absent()

        kind = OwnerKind.from_kind(ref.kind)
        owner = OwnerReference(
            kind=kind, name=ref.name, namespace=ref.namespace, raw_kind=ref.kind
        )
        if not kind.is_lookup_kind:
            return owner
        if not policy.check_references:
            return owner.model_copy(update={"lookup": LookupStatus.SKIPPED})

        try:
            obj = await self._fetch(kind, ref.name, ref.namespace)
        except OwnerLookupError as exc:
            logger.warning("Owner of pod %s did not resolve: %s", pod.key, exc)
            return owner.model_copy(
                update={"lookup": LookupStatus.FAILED, "lookup_error": exc.detail}
            )
        except Exception as exc:
            # injected clients may raise anything; CancelledError still propagates
            logger.warning(
                "Owner lookup for pod %s raised %s: %s", pod.key, type(exc).__name__, exc
            )
            return owner.model_copy(
                update={
                    "lookup": LookupStatus.FAILED,
                    "lookup_error": f"{type(exc).__name__}: {exc}",
                }
            )

        if not isinstance(obj, dict):
            logger.warning("Owner lookup for pod %s returned %s", pod.key, type(obj).__name__)
            return owner.model_copy(
                update={"lookup": LookupStatus.FAILED, "lookup_error": "invalid response body"}
            )

        return owner.model_copy(
            update={"lookup": LookupStatus.FOUND, "replicas": _desired_replicas(obj)}
        )

    async def _fetch(self, kind: OwnerKind, name: str, namespace: str) -> dict[str, Any]:
        try:
            async with asyncio.timeout(self._lookup_timeout):
                return await self._client.get(kind, name, namespace)
        except TimeoutError as exc:
            raise OwnerLookupError(
                kind, namespace, name, f"lookup timed out after {self._lookup_timeout}s"
            ) from exc


def _desired_replicas(obj: dict[str, Any]) -> int | None:
    spec = obj.get("spec")
    if not isinstance(spec, dict):
        return None
    replicas = spec.get("replicas")
    return replicas if isinstance(replicas, int) else None
