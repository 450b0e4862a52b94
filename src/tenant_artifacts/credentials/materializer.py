"""Credential secret for a tenant's audit-log stack.

The secret is created once per tenant and then treated as immutable.
Rotating it means replacing it whole, which invalidates every bearer token
minted from the old material; the drift detector picks that up on the
next pass.

Password and audit token are drawn from ``secrets`` (a CSPRNG).  Neither
is ever logged.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass

from tenant_artifacts.config import SynthesisPolicy
from tenant_artifacts.models import SecretManifest, TenantSpec

logger = logging.getLogger(__name__)

LOG_PG_PASSWORD_KEY = "POSTGRES_PASSWORD"
LOG_AUDIT_TOKEN_KEY = "LOG_AUDIT_TOKEN"
LOG_PG_CONNSTR_KEY = "LOG_PG_CONNSTR"

# token_urlsafe output needs no escaping inside a connection URL.
_PASSWORD_BYTES = 32
_AUDIT_TOKEN_BYTES = 32


def log_db_address(tenant: TenantSpec, policy: SynthesisPolicy) -> str:
    return (
        f"{tenant.log_headless_service_name}.{tenant.namespace}"
        f".svc.{policy.cluster_domain}:{policy.log_db_port}"
    )


def log_search_api_address(tenant: TenantSpec, policy: SynthesisPolicy) -> str:
    return (
        f"http://{tenant.log_search_api_deployment_name}.{tenant.namespace}"
        f".svc.{policy.cluster_domain}:{policy.log_search_api_port}"
    )


def log_db_connection_string(
    tenant: TenantSpec,
    password: str,
    policy: SynthesisPolicy | None = None,
    database: str | None = None,
) -> str:
    """Postgres URL for the log database.

    Pass ``database=""`` for the server-level URL used to create the
    audit database itself.
    """
    policy = policy or SynthesisPolicy()
    db = policy.log_audit_db if database is None else database
    path = f"/{db}" if db else ""
    return (
        f"postgres://{policy.log_db_user}:{password}"
        f"@{log_db_address(tenant, policy)}{path}?sslmode=disable"
    )


def materialize_log_secret(
    tenant: TenantSpec,
    policy: SynthesisPolicy | None = None,
) -> SecretManifest:
    """Generate the tenant's log secret with fresh random material."""
    policy = policy or SynthesisPolicy()
    password = secrets.token_urlsafe(_PASSWORD_BYTES)
    audit_token = secrets.token_urlsafe(_AUDIT_TOKEN_BYTES)

    secret = SecretManifest(
        name=tenant.log_secret_name,
        namespace=tenant.namespace,
        owner_references=tenant.owner_references(),
        string_data={
            LOG_PG_PASSWORD_KEY: password,
            LOG_AUDIT_TOKEN_KEY: audit_token,
            LOG_PG_CONNSTR_KEY: log_db_connection_string(tenant, password, policy),
        },
    )
    logger.info("Generated log secret %s/%s", secret.namespace, secret.name)
    return secret


@dataclass(frozen=True)
class AuditWebhookConfig:
    """Audit webhook target for the tenant's storage servers."""

    target: str
    args: str


def audit_webhook_config(
    tenant: TenantSpec,
    secret: SecretManifest,
    policy: SynthesisPolicy | None = None,
) -> AuditWebhookConfig:
    """Point the servers' audit webhook at the log-search API.

    Raises:
        KeyError: If *secret* has no audit token.
    """
    policy = policy or SynthesisPolicy()
    audit_token = secret.string_data[LOG_AUDIT_TOKEN_KEY]
    target = f"audit_webhook:{tenant.log_search_api_deployment_name}"
    args = (
        f'{target} auth_token="{audit_token}" '
        f'endpoint="{log_search_api_address(tenant, policy)}"'
    )
    return AuditWebhookConfig(target=target, args=args)
