"""tenant-artifacts: derived configuration and drift detection for storage tenants."""

__version__ = "0.4.0"

from tenant_artifacts.artifacts.builder import (
    build_prometheus_config_map,
    prometheus_config_map,
    synthesize,
)
from tenant_artifacts.artifacts.codec import ArtifactParseError, decode_config, encode_config
from tenant_artifacts.config import (
    SynthesisPolicy,
    find_config,
    generate_secret_key,
    load_config,
)
from tenant_artifacts.credentials.materializer import (
    AuditWebhookConfig,
    audit_webhook_config,
    materialize_log_secret,
)
from tenant_artifacts.credentials.minter import CredentialMinter, CredentialMinterError
from tenant_artifacts.deployments.log_search import build_log_search_api_deployment
from tenant_artifacts.drift import detect_drift, needs_update, update_prometheus_config_map
from tenant_artifacts.models import (
    ConfigMapManifest,
    CredentialToken,
    DeploymentDescriptor,
    DriftReason,
    DriftReport,
    Pool,
    PrometheusConfig,
    SecretManifest,
    TenantSpec,
    TokenVerificationResult,
)
from tenant_artifacts.tenants.loader import TenantError, load_tenant
from tenant_artifacts.topology.resolver import resolve_endpoints, tenant_endpoints

__all__ = [
    "ArtifactParseError",
    "AuditWebhookConfig",
    "audit_webhook_config",
    "build_log_search_api_deployment",
    "build_prometheus_config_map",
    "ConfigMapManifest",
    "CredentialMinter",
    "CredentialMinterError",
    "CredentialToken",
    "decode_config",
    "DeploymentDescriptor",
    "detect_drift",
    "DriftReason",
    "DriftReport",
    "encode_config",
    "find_config",
    "generate_secret_key",
    "load_config",
    "load_tenant",
    "materialize_log_secret",
    "needs_update",
    "Pool",
    "prometheus_config_map",
    "PrometheusConfig",
    "resolve_endpoints",
    "SecretManifest",
    "synthesize",
    "SynthesisPolicy",
    "tenant_endpoints",
    "TenantError",
    "TenantSpec",
    "TokenVerificationResult",
    "update_prometheus_config_map",
    "__version__",
]
