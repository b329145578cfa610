"""Drain engine settings loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from drain_policy.models import DrainPolicy

IN_CLUSTER_TOKEN_FILE = "/var/run/secrets/kubernetes.io/serviceaccount/token"


class DrainSettings(BaseSettings):
    """Drain engine configuration.

    All settings can be overridden via environment variables prefixed
    with ``DRAIN_`` (e.g., DRAIN_ALLOW_LOCAL_STORAGE, DRAIN_API_SERVER_URL).
    """

    # Policy overrides
    allow_unmanaged_pods: bool = False
    allow_local_storage: bool = False
    allow_system_pods: bool = True
    check_references: bool = True
    min_replicas: int = Field(default=0, ge=0)
    grace_period_seconds: int = Field(default=30, ge=0)

    # Evaluation
    max_concurrency: int = Field(default=8, ge=1)
    lookup_timeout_seconds: float = Field(default=10.0, gt=0)

    # Control plane
    api_server_url: str = "https://kubernetes.default.svc"
    api_token: str | None = None
    api_token_file: str | None = IN_CLUSTER_TOKEN_FILE
    verify_tls: bool = True
    ca_cert_path: str | None = None

    model_config = {"env_prefix": "DRAIN_", "case_sensitive": False}

    def to_policy(self) -> DrainPolicy:
        return DrainPolicy(
            allow_unmanaged_pods=self.allow_unmanaged_pods,
            allow_local_storage=self.allow_local_storage,
            allow_system_pods=self.allow_system_pods,
            check_references=self.check_references,
            min_replicas=self.min_replicas,
            grace_period_seconds=self.grace_period_seconds,
        )
