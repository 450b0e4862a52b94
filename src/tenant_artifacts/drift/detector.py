"""Decides whether the live scrape configuration must be replaced.

Two-tier policy:

1. A live document that does not parse is always replaced.
2. Every live bearer token is verified against the current secret key.
   If any fails (key rotated, forged, expired, wrong subject), the
   document is replaced without further comparison.
3. Only when all tokens verify are the tokens masked on both sides and
   the rest of the document compared field by field.

Masking without verification would let a token from a rotated key slip
through; comparison without masking would report drift on every pass,
since each synthesis re-signs the token.
"""

from __future__ import annotations

import logging
from typing import Any

from tenant_artifacts.artifacts.builder import (
    PROMETHEUS_CONFIG_KEY,
    prometheus_config_map,
    synthesize,
)
from tenant_artifacts.artifacts.codec import ArtifactParseError, decode_config
from tenant_artifacts.config import SynthesisPolicy
from tenant_artifacts.credentials.minter import DEFAULT_ISSUER, CredentialMinter
from tenant_artifacts.drift.differ import changed_fields, mask_bearer_tokens
from tenant_artifacts.models import (
    ConfigMapManifest,
    DriftReason,
    DriftReport,
    PrometheusConfig,
    TenantSpec,
)

logger = logging.getLogger(__name__)


def detect_drift(
    desired: PrometheusConfig,
    observed_raw: str | bytes | None,
    secret_key: str,
    access_key: str | None = None,
    issuer: str = DEFAULT_ISSUER,
) -> DriftReport:
    """Compare *desired* against the live document text *observed_raw*.

    When *access_key* is given, a live token minted for a different access
    key also counts as invalid.
    """
    if observed_raw is None:
        return DriftReport(
            reason=DriftReason.CORRUPT,
            detail="Live document is missing",
            desired=desired,
        )

    try:
        observed = decode_config(observed_raw)
    except ArtifactParseError as e:
        logger.info("Live scrape config is unreadable, replacing: %s", e)
        return DriftReport(reason=DriftReason.CORRUPT, detail=str(e), desired=desired)

    minter = CredentialMinter(secret_key, issuer=issuer)
    for sc in observed.scrape_configs:
        result = minter.verify(sc.bearer_token, expected_subject=access_key)
        if not result.valid:
            logger.info(
                "Bearer token for job %r no longer verifies, replacing: %s",
                sc.job_name, result.reason,
            )
            return DriftReport(
                reason=DriftReason.TOKEN_INVALID,
                detail=f"job {sc.job_name}: {result.reason}",
                desired=desired,
            )

    changed = changed_fields(mask_bearer_tokens(observed), mask_bearer_tokens(desired))
    if changed:
        logger.info("Scrape config drifted in %d field(s): %s", len(changed), ", ".join(changed))
        return DriftReport(
            reason=DriftReason.CONTENT_CHANGED,
            detail=f"{len(changed)} field(s) differ",
            changed_fields=changed,
            desired=desired,
        )

    logger.debug("Scrape config is up to date")
    return DriftReport(reason=DriftReason.UNCHANGED)


def needs_update(
    desired: PrometheusConfig,
    observed_raw: str | bytes | None,
    secret_key: str,
    access_key: str | None = None,
    issuer: str = DEFAULT_ISSUER,
) -> PrometheusConfig | None:
    """Return *desired* if the live document must be replaced, else None."""
    return detect_drift(desired, observed_raw, secret_key, access_key, issuer).desired


def _existing_config_text(existing: ConfigMapManifest | dict[str, Any]) -> str | None:
    if isinstance(existing, ConfigMapManifest):
        return existing.data.get(PROMETHEUS_CONFIG_KEY)
    data = existing.get("data")
    if not isinstance(data, dict):
        return None
    value = data.get(PROMETHEUS_CONFIG_KEY)
    return value if isinstance(value, str) else None


def update_prometheus_config_map(
    tenant: TenantSpec,
    access_key: str,
    secret_key: str,
    existing: ConfigMapManifest | dict[str, Any],
    policy: SynthesisPolicy | None = None,
) -> ConfigMapManifest | None:
    """Return the replacement ConfigMap if *existing* has drifted, else None.

    *existing* may be a ``ConfigMapManifest`` or the raw ConfigMap dict as
    read from the API server.
    """
    policy = policy or SynthesisPolicy()
    desired = synthesize(tenant, access_key, secret_key, policy)
    replacement = needs_update(
        desired,
        _existing_config_text(existing),
        secret_key,
        access_key=access_key,
        issuer=policy.token_issuer,
    )
    if replacement is None:
        return None
    return prometheus_config_map(tenant, replacement)
