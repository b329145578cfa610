"""Decoding of serialized owner references carried in pod metadata."""

from __future__ import annotations

import re
from typing import Any, Protocol

from pydantic import BaseModel, ValidationError

from drain_policy.errors import ReferenceDecodeError
from drain_policy.models import ObjectReference

CREATED_BY_ANNOTATION = "kubernetes.io/created-by"
_ENVELOPE_KIND = "SerializedReference"

# DNS-1123 subdomain (object names) and label (namespaces)
_DNS_SUBDOMAIN = re.compile(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*")
_DNS_LABEL = re.compile(r"[a-z0-9]([-a-z0-9]*[a-z0-9])?")


class ReferenceDecoder(Protocol):
    """Anything that turns raw annotation text into an ObjectReference."""

    def decode(self, raw: str) -> ObjectReference: ...


class _SerializedReference(BaseModel):
    kind: str = _ENVELOPE_KIND
    reference: ObjectReference


def _require_identity(ref: ObjectReference) -> ObjectReference:
    if not ref.kind or not ref.name:
        raise ReferenceDecodeError("owner reference is missing kind or name")
    if len(ref.name) > 253 or not _DNS_SUBDOMAIN.fullmatch(ref.name):
        raise ReferenceDecodeError(f"owner reference has an invalid name: {ref.name!r}")
    if ref.namespace and (len(ref.namespace) > 63 or not _DNS_LABEL.fullmatch(ref.namespace)):
        raise ReferenceDecodeError(
            f"owner reference has an invalid namespace: {ref.namespace!r}"
        )
    return ref


class SerializedReferenceDecoder:
    """Decoder for the JSON ``SerializedReference`` envelope.

    A bare reference object (no envelope) is accepted as well.
    """

    def decode(self, raw: str) -> ObjectReference:
        try:
            envelope = _SerializedReference.model_validate_json(raw)
        except ValidationError as exc:
            try:
                return _require_identity(ObjectReference.model_validate_json(raw))
            except ValidationError:
                raise ReferenceDecodeError(
                    f"invalid owner reference: {exc.errors()[0]['msg']}"
                ) from exc

        if envelope.kind != _ENVELOPE_KIND:
            raise ReferenceDecodeError(f"expected {_ENVELOPE_KIND}, got {envelope.kind!r}")
        return _require_identity(envelope.reference)


def controller_reference(
    owner_references: list[dict[str, Any]], namespace: str
) -> ObjectReference | None:
    """Pick the managing controller out of ``metadata.ownerReferences``.

    Owner references are namespace-local, so the pod's namespace is used.
    The entry flagged ``controller: true`` wins; otherwise the first one.
    """
    if not owner_references:
        return None
    chosen = next(
        (ref for ref in owner_references if ref.get("controller")),
        owner_references[0],
    )
    try:
        ref = ObjectReference(
            kind=chosen.get("kind", ""),
            name=chosen.get("name", ""),
            namespace=namespace,
            api_version=chosen.get("apiVersion"),
            uid=chosen.get("uid"),
        )
    except ValidationError as exc:
        raise ReferenceDecodeError(f"invalid ownerReferences entry: {exc}") from exc
    return _require_identity(ref)
