"""tenant-artifacts CLI: render and check the artifacts derived from a tenant.

Commands:
    endpoints       List the storage server addresses of a tenant
    render          Render the scrape configuration (or its ConfigMap)
    drift           Check whether a live scrape configuration must be replaced
    secret          Generate the tenant's log secret manifest
    deployment      Render the log-search API deployment manifest
    token issue     Mint a scraper bearer token
    token verify    Verify a scraper bearer token
    validate        Validate a tenant file and the config file
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click

from tenant_artifacts import __version__
from tenant_artifacts.artifacts.builder import prometheus_config_map, synthesize
from tenant_artifacts.artifacts.codec import render_config_file
from tenant_artifacts.config import SynthesisPolicy, load_config
from tenant_artifacts.credentials.materializer import materialize_log_secret
from tenant_artifacts.credentials.minter import CredentialMinter, CredentialMinterError
from tenant_artifacts.deployments.log_search import build_log_search_api_deployment
from tenant_artifacts.drift.detector import detect_drift
from tenant_artifacts.models import PrometheusConfig, TenantSpec
from tenant_artifacts.tenants.loader import TenantError, load_tenant
from tenant_artifacts.topology.resolver import tenant_endpoints

SECRET_KEY_ENV = "TENANT_ARTIFACTS_SECRET_KEY"
ACCESS_KEY_ENV = "TENANT_ARTIFACTS_ACCESS_KEY"


def _resolve_policy(config_path: str | None) -> SynthesisPolicy:
    """Load the policy from --config, or auto-discover it."""
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _load_tenant_or_exit(tenant_file: str) -> TenantSpec:
    try:
        return load_tenant(tenant_file)
    except TenantError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _synthesize_or_exit(
    tenant: TenantSpec, access_key: str, secret_key: str, policy: SynthesisPolicy,
) -> PrometheusConfig:
    try:
        return synthesize(tenant, access_key, secret_key, policy)
    except CredentialMinterError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _minter_or_exit(secret_key: str, policy: SynthesisPolicy) -> CredentialMinter:
    try:
        return CredentialMinter(
            secret_key, issuer=policy.token_issuer, horizon=policy.token_horizon,
        )
    except CredentialMinterError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2))


_config_option = click.option(
    "--config", "config_path", default=None,
    help="Path to tenant-artifacts.yaml (auto-discovered if omitted)",
)
_access_key_option = click.option(
    "--access-key", required=True, envvar=ACCESS_KEY_ENV,
    help=f"Tenant access key (or ${ACCESS_KEY_ENV})",
)
_secret_key_option = click.option(
    "--secret-key", required=True, envvar=SECRET_KEY_ENV,
    help=f"Tenant secret key used to sign bearer tokens (or ${SECRET_KEY_ENV})",
)


# --- Root group ---


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """tenant-artifacts: derived configuration for storage tenants."""


# --- endpoints command ---


@cli.command()
@click.argument("tenant_file")
@_config_option
@click.option("--json-output", is_flag=True, help="Output as JSON")
def endpoints(tenant_file: str, config_path: str | None, json_output: bool) -> None:
    """List the storage server addresses of a tenant."""
    policy = _resolve_policy(config_path)
    tenant = _load_tenant_or_exit(tenant_file)
    addrs = tenant_endpoints(tenant, policy)

    if json_output:
        _echo_json(addrs)
        return
    for addr in addrs:
        click.echo(addr)


# --- render command ---


@cli.command()
@click.argument("tenant_file")
@_access_key_option
@_secret_key_option
@_config_option
@click.option("--configmap", is_flag=True, help="Wrap the config in a ConfigMap manifest (JSON)")
def render(
    tenant_file: str,
    access_key: str,
    secret_key: str,
    config_path: str | None,
    configmap: bool,
) -> None:
    """Render the scrape configuration for a tenant."""
    policy = _resolve_policy(config_path)
    tenant = _load_tenant_or_exit(tenant_file)
    config = _synthesize_or_exit(tenant, access_key, secret_key, policy)

    if configmap:
        _echo_json(prometheus_config_map(tenant, config).to_manifest())
    else:
        click.echo(render_config_file(config), nl=False)


# --- drift command ---


@cli.command()
@click.argument("tenant_file")
@click.argument("observed_file")
@_access_key_option
@_secret_key_option
@_config_option
@click.option("--json-output", is_flag=True, help="Output as JSON")
def drift(
    tenant_file: str,
    observed_file: str,
    access_key: str,
    secret_key: str,
    config_path: str | None,
    json_output: bool,
) -> None:
    """Check whether the live prometheus.yml must be replaced.

    Exits 0 when the live document is current, 1 when it must be replaced.
    """
    policy = _resolve_policy(config_path)
    tenant = _load_tenant_or_exit(tenant_file)

    observed_path = Path(observed_file)
    if not observed_path.is_file():
        click.echo(f"Error: observed file not found: {observed_file}", err=True)
        sys.exit(1)

    desired = _synthesize_or_exit(tenant, access_key, secret_key, policy)
    report = detect_drift(
        desired,
        observed_path.read_bytes(),
        secret_key,
        access_key=access_key,
        issuer=policy.token_issuer,
    )

    if json_output:
        _echo_json({
            "needs_update": report.needs_update,
            "reason": str(report.reason),
            "detail": report.detail,
            "changed_fields": report.changed_fields,
        })
    elif report.needs_update:
        click.echo(
            click.style("NEEDS UPDATE", fg="yellow", bold=True)
            + f": {report.reason}: {report.detail}"
        )
        for field_path in report.changed_fields:
            click.echo(f"  ~ {field_path}")
    else:
        click.echo(click.style("UP TO DATE", fg="green", bold=True))

    if report.needs_update:
        sys.exit(1)


# --- secret command ---


@cli.command()
@click.argument("tenant_file")
@_config_option
def secret(tenant_file: str, config_path: str | None) -> None:
    """Generate the tenant's log secret manifest (JSON).

    Every run draws fresh random values.
    """
    policy = _resolve_policy(config_path)
    tenant = _load_tenant_or_exit(tenant_file)
    _echo_json(materialize_log_secret(tenant, policy).to_manifest())


# --- deployment command ---


@cli.command()
@click.argument("tenant_file")
@_config_option
def deployment(tenant_file: str, config_path: str | None) -> None:
    """Render the log-search API deployment manifest (JSON)."""
    policy = _resolve_policy(config_path)
    tenant = _load_tenant_or_exit(tenant_file)
    _echo_json(build_log_search_api_deployment(tenant, policy).to_manifest())


# --- token group ---


@cli.group()
def token() -> None:
    """Scraper bearer token commands."""


@token.command("issue")
@_access_key_option
@_secret_key_option
@_config_option
def token_issue(access_key: str, secret_key: str, config_path: str | None) -> None:
    """Mint a bearer token for an access key."""
    policy = _resolve_policy(config_path)
    minter = _minter_or_exit(secret_key, policy)
    try:
        issued = minter.issue(access_key)
    except CredentialMinterError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(issued.token)


@token.command("verify")
@click.argument("bearer_token")
@_secret_key_option
@click.option("--access-key", default=None, help="Expected token subject (optional)")
@_config_option
@click.option("--json-output", is_flag=True, help="Output as JSON")
def token_verify(
    bearer_token: str,
    secret_key: str,
    access_key: str | None,
    config_path: str | None,
    json_output: bool,
) -> None:
    """Verify a bearer token against the current secret key."""
    policy = _resolve_policy(config_path)
    minter = _minter_or_exit(secret_key, policy)
    result = minter.verify(bearer_token, expected_subject=access_key)

    if json_output:
        _echo_json(result.model_dump(mode="json"))
    elif result.valid:
        click.echo(
            click.style("VALID", fg="green", bold=True)
            + f": {result.reason}"
        )
        click.echo(f"  subject: {result.subject}")
    else:
        click.echo(
            click.style("INVALID", fg="red", bold=True)
            + f": {result.reason}"
        )

    if not result.valid:
        sys.exit(1)


# --- validate command ---


@cli.command()
@click.argument("tenant_file")
@_config_option
def validate(tenant_file: str, config_path: str | None) -> None:
    """Validate a tenant file and the config file."""
    errors: list[str] = []

    try:
        policy = load_config(config_path)
        source = policy.config_path or "defaults"
        click.echo(click.style("OK", fg="green") + f"  config: {source}")
    except (FileNotFoundError, ValueError) as e:
        errors.append(f"config: {e}")
        click.echo(click.style("FAIL", fg="red") + f"  config: {e}")

    try:
        tenant = load_tenant(tenant_file)
        replicas = sum(p.servers for p in tenant.pools)
        click.echo(
            click.style("OK", fg="green")
            + f"  tenant: {tenant.namespace}/{tenant.name}, "
            f"{len(tenant.pools)} pool(s), {replicas} server(s)"
        )
    except TenantError as e:
        errors.append(f"tenant: {e}")
        click.echo(click.style("FAIL", fg="red") + f"  tenant: {e}")

    if errors:
        click.echo(f"\n{len(errors)} error(s) found.")
        sys.exit(1)
    click.echo("\nAll files valid.")
