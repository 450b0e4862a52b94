"""Builds the desired scrape configuration for a tenant.

The document is a function of the tenant spec, the access/secret key pair
and the synthesis policy.  Everything except the bearer token's signature
is byte-for-byte reproducible; the token is re-signed on every call.
"""

from __future__ import annotations

import logging

from tenant_artifacts.artifacts.codec import (
    format_duration,
    render_config_file,
)
from tenant_artifacts.config import SynthesisPolicy
from tenant_artifacts.credentials.minter import CredentialMinter
from tenant_artifacts.models import (
    ConfigMapManifest,
    GlobalConfig,
    PrometheusConfig,
    ScrapeConfig,
    StaticConfig,
    TenantSpec,
    TLSConfig,
)
from tenant_artifacts.topology.resolver import tenant_endpoints

logger = logging.getLogger(__name__)

PROMETHEUS_CONFIG_KEY = "prometheus.yml"


def synthesize(
    tenant: TenantSpec,
    access_key: str,
    secret_key: str,
    policy: SynthesisPolicy | None = None,
) -> PrometheusConfig:
    """Compose the desired ``prometheus.yml`` document for *tenant*.

    Raises:
        CredentialMinterError: If the bearer token cannot be signed.  No
            partial document is returned.
    """
    policy = policy or SynthesisPolicy()

    minter = CredentialMinter(
        secret_key, issuer=policy.token_issuer, horizon=policy.token_horizon,
    )
    token = minter.issue(access_key)
    targets = tenant_endpoints(tenant, policy)

    scheme = "https" if tenant.tls_enabled else "http"
    tls_config = TLSConfig(ca_file=policy.ca_file) if tenant.tls_enabled else None

    config = PrometheusConfig(
        global_=GlobalConfig(
            scrape_interval=format_duration(policy.scrape_interval),
            evaluation_interval=format_duration(policy.evaluation_interval),
        ),
        scrape_configs=[
            ScrapeConfig(
                job_name=policy.job_name,
                bearer_token=token.token,
                metrics_path=policy.metrics_path,
                scheme=scheme,
                tls_config=tls_config,
                static_configs=[StaticConfig(targets=targets)],
            ),
        ],
    )
    logger.debug(
        "Synthesized scrape config for %s/%s (%d targets, scheme=%s)",
        tenant.namespace, tenant.name, len(targets), scheme,
    )
    return config


def prometheus_config_map(
    tenant: TenantSpec,
    config: PrometheusConfig,
) -> ConfigMapManifest:
    """Wrap *config* in the tenant's ConfigMap."""
    return ConfigMapManifest(
        name=tenant.prometheus_config_map_name,
        namespace=tenant.namespace,
        owner_references=tenant.owner_references(),
        data={PROMETHEUS_CONFIG_KEY: render_config_file(config)},
    )


def build_prometheus_config_map(
    tenant: TenantSpec,
    access_key: str,
    secret_key: str,
    policy: SynthesisPolicy | None = None,
) -> ConfigMapManifest:
    """Synthesize the scrape configuration and wrap it in a ConfigMap."""
    return prometheus_config_map(
        tenant, synthesize(tenant, access_key, secret_key, policy),
    )
