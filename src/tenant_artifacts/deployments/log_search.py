"""Deployment descriptor for a tenant's log-search API server.

The descriptor references the log secret by name and key only.  Secret
values never appear in it, so rotating them does not change the
descriptor and does not restart the workload.
"""

from __future__ import annotations

from tenant_artifacts.config import SynthesisPolicy
from tenant_artifacts.credentials.materializer import (
    LOG_AUDIT_TOKEN_KEY,
    LOG_PG_CONNSTR_KEY,
)
from tenant_artifacts.models import (
    DeploymentDescriptor,
    EnvVar,
    SecretKeyRef,
    TenantSpec,
)

LOG_SEARCH_API_CONTAINER_NAME = "log-search-api"
LOG_RETENTION_PERIOD_KEY = "LOG_RETENTION_PERIOD"


def log_search_api_env(tenant: TenantSpec) -> list[EnvVar]:
    retention = tenant.log_retention_period or 0
    secret_name = tenant.log_secret_name
    return [
        EnvVar(name=LOG_RETENTION_PERIOD_KEY, value=str(retention)),
        EnvVar(
            name=LOG_PG_CONNSTR_KEY,
            secret_key_ref=SecretKeyRef(name=secret_name, key=LOG_PG_CONNSTR_KEY),
        ),
        EnvVar(
            name=LOG_AUDIT_TOKEN_KEY,
            secret_key_ref=SecretKeyRef(name=secret_name, key=LOG_AUDIT_TOKEN_KEY),
        ),
    ]


def build_log_search_api_deployment(
    tenant: TenantSpec,
    policy: SynthesisPolicy | None = None,
) -> DeploymentDescriptor:
    """Assemble the log-search API deployment for *tenant*."""
    policy = policy or SynthesisPolicy()
    return DeploymentDescriptor(
        name=tenant.log_search_api_deployment_name,
        namespace=tenant.namespace,
        owner_references=tenant.owner_references(),
        replicas=1,
        labels=tenant.log_search_api_pod_labels(),
        service_account_name=tenant.service_account_name,
        container_name=LOG_SEARCH_API_CONTAINER_NAME,
        image=tenant.log_search_api_image,
        image_pull_policy=tenant.image_pull_policy,
        image_pull_secret=tenant.image_pull_secret,
        container_port=policy.log_search_api_port,
        env=log_search_api_env(tenant),
    )
