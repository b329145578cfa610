"""Control-plane clients used to verify that a pod's owner still exists.

The engine only needs a point lookup by kind, name and namespace. Any
implementation must be safe to call concurrently from multiple pod
evaluations.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from urllib.parse import quote
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from drain_policy.errors import OwnerLookupError, OwnerNotFoundError
from drain_policy.models import OwnerKind

if TYPE_CHECKING:
    from types import TracebackType

    from drain_policy.config import DrainSettings

logger = logging.getLogger(__name__)

_RESOURCE_PATHS: dict[OwnerKind, str] = {
    OwnerKind.REPLICATION_CONTROLLER: (
        "/api/v1/namespaces/{namespace}/replicationcontrollers/{name}"
    ),
    OwnerKind.REPLICA_SET: "/apis/apps/v1/namespaces/{namespace}/replicasets/{name}",
    OwnerKind.DAEMON_SET: "/apis/apps/v1/namespaces/{namespace}/daemonsets/{name}",
    OwnerKind.JOB: "/apis/batch/v1/namespaces/{namespace}/jobs/{name}",
}


class ControlPlaneClient(Protocol):
    """Read-only point lookups against the cluster control plane."""

    async def get(self, kind: OwnerKind, name: str, namespace: str) -> dict[str, Any]:
        """Return the object as a manifest dict.

        Raises OwnerNotFoundError when the object does not exist and
        OwnerLookupError for any other failure.
        """
        ...


class KubeApiClient:
    """Async client for the Kubernetes REST API."""

    def __init__(
        self,
        api_server_url: str,
        *,
        token: str | None = None,
        verify: bool | str = True,
        timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = api_server_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            verify=verify,
            timeout=timeout,
        )

    @classmethod
    def from_settings(cls, settings: DrainSettings) -> KubeApiClient:
        """Build a client from settings, reading the token file if needed."""
        token = settings.api_token
        if token is None and settings.api_token_file:
            token_path = Path(settings.api_token_file)
            if token_path.is_file():
                token = token_path.read_text().strip()
            else:
                logger.debug("Token file %s not present, using anonymous access", token_path)
        verify: bool | str = settings.ca_cert_path or settings.verify_tls
        return cls(
            settings.api_server_url,
            token=token,
            verify=verify,
            timeout=settings.lookup_timeout_seconds,
        )

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> KubeApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def get(self, kind: OwnerKind, name: str, namespace: str) -> dict[str, Any]:
        path = _RESOURCE_PATHS.get(kind)
        if path is None:
            raise OwnerLookupError(kind, namespace, name, "kind cannot be looked up")

        url = path.format(namespace=quote(namespace, safe=""), name=quote(name, safe=""))
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as exc:
            logger.warning(
                "Control plane request for %s %s/%s failed: %s", kind, namespace, name, exc
            )
            detail = str(exc) or type(exc).__name__
            raise OwnerLookupError(kind, namespace, name, detail) from exc

        if resp.status_code == 404:
            raise OwnerNotFoundError(kind, namespace, name)
        if resp.status_code >= 400:
            logger.error("Control plane returned %s for %s", resp.status_code, url)
            raise OwnerLookupError(kind, namespace, name, f"HTTP {resp.status_code}")
        try:
            body = resp.json()
        except ValueError as exc:
            logger.error("Control plane returned a non-JSON body for %s", url)
            raise OwnerLookupError(kind, namespace, name, "invalid response body") from exc
        if not isinstance(body, dict):
            logger.error("Control plane returned a non-object body for %s", url)
            raise OwnerLookupError(kind, namespace, name, "invalid response body")
        return body


class InMemoryControlPlane:
    """Control-plane substitute backed by a dict, for tests and dry runs."""

    def __init__(self, delay: float = 0.0) -> None:
        self._objects: dict[tuple[OwnerKind, str, str], dict[str, Any]] = {}
        self._failures: dict[tuple[OwnerKind, str, str], str] = {}
        self._delay = delay
        self.calls: list[tuple[OwnerKind, str, str]] = []

    def add(
        self,
        kind: OwnerKind,
        name: str,
        namespace: str = "default",
        replicas: int | None = None,
    ) -> dict[str, Any]:
        """Register an object and return its manifest."""
        obj: dict[str, Any] = {
            "kind": kind.value,
            "metadata": {"name": name, "namespace": namespace},
            "spec": {},
        }
        if replicas is not None:
            obj["spec"]["replicas"] = replicas
        self._objects[(kind, namespace, name)] = obj
        return obj

    def fail(
        self,
        kind: OwnerKind,
        name: str,
        namespace: str = "default",
        detail: str = "unreachable",
    ) -> None:
        """Make lookups of this object fail with a transport-style error."""
        self._failures[(kind, namespace, name)] = detail

    async def get(self, kind: OwnerKind, name: str, namespace: str) -> dict[str, Any]:
        key = (kind, namespace, name)
        self.calls.append(key)
        if self._delay:
            await asyncio.sleep(self._delay)
        if key in self._failures:
            raise OwnerLookupError(kind, namespace, name, self._failures[key])
        try:
            return self._objects[key]
        except KeyError:
            raise OwnerNotFoundError(kind, namespace, name) from None
