"""Core data models for tenant-artifacts.

Defines the schemas for:
- Tenant specification (pools, TLS, log settings)
- Scrape configuration document (desired and observed)
- Credential tokens (signed bearer tokens for the scraper)
- Derived manifests (ConfigMap, Secret, Deployment)
- Drift reports (detector output)
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

API_VERSION = "minio.min.io/v1"
TENANT_KIND = "Tenant"

LOG_SEARCH_API_INSTANCE_LABEL = "v1.min.io/log-search-api"

# --- Enums ---


class ImagePullPolicy(enum.StrEnum):
    ALWAYS = "Always"
    IF_NOT_PRESENT = "IfNotPresent"
    NEVER = "Never"


class DriftReason(enum.StrEnum):
    UNCHANGED = "unchanged"
    CORRUPT = "corrupt"
    TOKEN_INVALID = "token_invalid"
    CONTENT_CHANGED = "content_changed"


# --- Tenant Schema ---


class Pool(BaseModel):
    """A named group of homogeneous server replicas."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    servers: int = Field(..., gt=0)


class OwnerReference(BaseModel):
    """Binds a derived object's lifetime to the tenant that produced it."""

    model_config = ConfigDict(frozen=True)

    api_version: str = API_VERSION
    kind: str = TENANT_KIND
    name: str
    uid: str
    controller: bool = True
    block_owner_deletion: bool = True

    def to_manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "name": self.name,
            "uid": self.uid,
            "controller": self.controller,
            "blockOwnerDeletion": self.block_owner_deletion,
        }


class TenantSpec(BaseModel):
    """Desired state of a tenant. Immutable for the length of a pass.

    Loaded from tenant YAML files. All derived object names are computed
    from ``name`` so they can be recomputed from the tenant alone.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., pattern=r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
    namespace: str = Field(..., min_length=1)
    uid: str = ""
    pools: list[Pool] = Field(min_length=1)
    tls_enabled: bool = False
    image_pull_policy: ImagePullPolicy = ImagePullPolicy.ALWAYS
    image_pull_secret: str | None = None
    service_account_name: str = ""
    log_retention_period: int | None = Field(default=None, ge=0)
    log_search_api_image: str = "minio/log-search-api"

    def pool_statefulset_name(self, pool: Pool) -> str:
        return f"{self.name}-{pool.name}"

    @property
    def headless_service_name(self) -> str:
        return f"{self.name}-hl"

    @property
    def prometheus_config_map_name(self) -> str:
        return f"{self.name}-prometheus-config-map"

    @property
    def log_secret_name(self) -> str:
        return f"{self.name}-log-secret"

    @property
    def log_headless_service_name(self) -> str:
        return f"{self.name}-log-hl-svc"

    @property
    def log_search_api_deployment_name(self) -> str:
        return f"{self.name}-log-search-api"

    def log_search_api_pod_labels(self) -> dict[str, str]:
        return {LOG_SEARCH_API_INSTANCE_LABEL: self.log_search_api_deployment_name}

    def owner_references(self) -> list[OwnerReference]:
        return [OwnerReference(name=self.name, uid=self.uid)]


# --- Scrape Configuration Document ---
#
# Field names follow the on-disk prometheus.yml keys. Unknown keys are
# rejected so that foreign edits to the live document fail to parse.


class GlobalConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    scrape_interval: str
    evaluation_interval: str


class TLSConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    ca_file: str


class StaticConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    targets: list[str] = Field(default_factory=list)


class ScrapeConfig(BaseModel):
    """One scrape target group for a monitored workload type."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    job_name: str
    bearer_token: str = ""
    metrics_path: str
    scheme: str
    tls_config: TLSConfig | None = None
    static_configs: list[StaticConfig] = Field(default_factory=list)


class PrometheusConfig(BaseModel):
    """The scrape configuration document written to ``prometheus.yml``."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    global_: GlobalConfig = Field(..., alias="global")
    scrape_configs: list[ScrapeConfig] = Field(min_length=1)


# --- Credential Tokens ---


class CredentialToken(BaseModel):
    """A signed bearer token asserting an access key to the scraper."""

    token: str
    subject: str
    issuer: str
    issued_at: datetime
    expires_at: datetime


class TokenVerificationResult(BaseModel):
    """Result of verifying a bearer token against the current secret key."""

    valid: bool
    reason: str
    subject: str | None = None


# --- Derived Manifests ---


class ConfigMapManifest(BaseModel):
    name: str
    namespace: str
    owner_references: list[OwnerReference] = Field(default_factory=list)
    data: dict[str, str] = Field(default_factory=dict)

    def to_manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "ownerReferences": [o.to_manifest() for o in self.owner_references],
            },
            "data": dict(self.data),
        }


class SecretManifest(BaseModel):
    """An opaque key-value secret. Replaced whole, never patched."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str
    owner_references: list[OwnerReference] = Field(default_factory=list)
    type: str = "Opaque"
    string_data: dict[str, str] = Field(default_factory=dict)

    def to_manifest(self) -> dict[str, Any]:
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "type": self.type,
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "ownerReferences": [o.to_manifest() for o in self.owner_references],
            },
            "stringData": dict(self.string_data),
        }


class SecretKeyRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    key: str


class EnvVar(BaseModel):
    """A container environment variable: a plain value or a secret reference."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: str | None = None
    secret_key_ref: SecretKeyRef | None = None

    def to_manifest(self) -> dict[str, Any]:
        if self.secret_key_ref is not None:
            return {
                "name": self.name,
                "valueFrom": {
                    "secretKeyRef": {
                        "name": self.secret_key_ref.name,
                        "key": self.secret_key_ref.key,
                    },
                },
            }
        return {"name": self.name, "value": self.value or ""}


class DeploymentDescriptor(BaseModel):
    """Workload spec for a tenant sub-resource.

    Secret values are only ever referenced through ``SecretKeyRef``.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str
    owner_references: list[OwnerReference] = Field(default_factory=list)
    replicas: int = Field(default=1, ge=0)
    labels: dict[str, str] = Field(default_factory=dict)
    service_account_name: str = ""
    container_name: str
    image: str
    image_pull_policy: ImagePullPolicy = ImagePullPolicy.ALWAYS
    image_pull_secret: str | None = None
    container_port: int
    env: list[EnvVar] = Field(default_factory=list)
    restart_policy: str = "Always"

    def to_manifest(self) -> dict[str, Any]:
        pod_spec: dict[str, Any] = {
            "serviceAccountName": self.service_account_name,
            "containers": [
                {
                    "name": self.container_name,
                    "image": self.image,
                    "imagePullPolicy": str(self.image_pull_policy),
                    "ports": [{"containerPort": self.container_port}],
                    "env": [e.to_manifest() for e in self.env],
                },
            ],
            "restartPolicy": self.restart_policy,
        }
        if self.image_pull_secret:
            pod_spec["imagePullSecrets"] = [{"name": self.image_pull_secret}]

        return {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "ownerReferences": [o.to_manifest() for o in self.owner_references],
            },
            "spec": {
                "replicas": self.replicas,
                "selector": {"matchLabels": dict(self.labels)},
                "template": {
                    "metadata": {"labels": dict(self.labels)},
                    "spec": pod_spec,
                },
            },
        }


# --- Drift Detection ---


class DriftReport(BaseModel):
    """Outcome of comparing a desired document with the live one.

    ``desired`` is None exactly when no write is needed.
    """

    reason: DriftReason
    detail: str = ""
    changed_fields: list[str] = Field(default_factory=list)
    desired: PrometheusConfig | None = None

    @property
    def needs_update(self) -> bool:
        return self.desired is not None
