"""Tests for owner reference decoding."""

from __future__ import annotations

import json

import pytest
from drain_policy.decoder import SerializedReferenceDecoder, controller_reference
from drain_policy.errors import ReferenceDecodeError

from tests.test_classifier import created_by


@pytest.fixture
def decoder() -> SerializedReferenceDecoder:
    return SerializedReferenceDecoder()


def test_decode_serialized_reference(decoder: SerializedReferenceDecoder) -> None:
    ref = decoder.decode(created_by("ReplicationController", "rc", "default"))
    assert ref.kind == "ReplicationController"
    assert ref.name == "rc"
    assert ref.namespace == "default"
    assert ref.api_version == "v1"


def test_decode_bare_reference(decoder: SerializedReferenceDecoder) -> None:
    ref = decoder.decode(json.dumps({"kind": "Job", "name": "batch", "namespace": "etl"}))
    assert ref.kind == "Job"
    assert ref.namespace == "etl"


def test_decode_invalid_json(decoder: SerializedReferenceDecoder) -> None:
    with pytest.raises(ReferenceDecodeError, match="invalid owner reference"):
        decoder.decode("{not json")


def test_decode_wrong_envelope_kind(decoder: SerializedReferenceDecoder) -> None:
    raw = json.dumps({"kind": "Pod", "reference": {"kind": "Job", "name": "x"}})
    with pytest.raises(ReferenceDecodeError, match="expected SerializedReference"):
        decoder.decode(raw)


def test_decode_missing_name(decoder: SerializedReferenceDecoder) -> None:
    raw = json.dumps({"kind": "SerializedReference", "reference": {"kind": "Job", "name": ""}})
    with pytest.raises(ReferenceDecodeError, match="missing kind or name"):
        decoder.decode(raw)


def test_controller_reference_prefers_controller_flag() -> None:
    refs = [
        {"kind": "ConfigMap", "name": "cfg"},
        {"kind": "ReplicaSet", "name": "web", "controller": True, "apiVersion": "apps/v1"},
    ]
    ref = controller_reference(refs, "shop")
    assert ref is not None
    assert ref.kind == "ReplicaSet"
    assert ref.namespace == "shop"
    assert ref.api_version == "apps/v1"


def test_controller_reference_falls_back_to_first() -> None:
    ref = controller_reference([{"kind": "Job", "name": "once"}], "default")
    assert ref is not None
    assert ref.name == "once"


def test_controller_reference_empty() -> None:
    assert controller_reference([], "default") is None


def test_controller_reference_malformed_entry() -> None:
    with pytest.raises(ReferenceDecodeError):
        controller_reference([{"kind": "ReplicaSet"}], "default")


@pytest.mark.parametrize(
    "name",
    [
        "x/../../../../api/v1/namespaces/kube-system/secrets/admin",
        "Upper",
        "trailing-",
        "a" * 254,
    ],
)
def test_decode_rejects_invalid_names(decoder: SerializedReferenceDecoder, name: str) -> None:
    with pytest.raises(ReferenceDecodeError, match="invalid name"):
        decoder.decode(created_by("ReplicaSet", name))


def test_decode_rejects_invalid_namespace(decoder: SerializedReferenceDecoder) -> None:
    with pytest.raises(ReferenceDecodeError, match="invalid namespace"):
        decoder.decode(created_by("ReplicaSet", "web", "../kube-system"))


def test_decode_accepts_dotted_name(decoder: SerializedReferenceDecoder) -> None:
    assert decoder.decode(created_by("Job", "nightly.backup-1")).name == "nightly.backup-1"


def test_controller_reference_rejects_traversal() -> None:
    with pytest.raises(ReferenceDecodeError, match="invalid name"):
        controller_reference([{"kind": "ReplicaSet", "name": "a/../b"}], "default")
