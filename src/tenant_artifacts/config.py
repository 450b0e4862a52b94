"""Policy constants and config file loading for tenant-artifacts.

Searches for ``tenant-artifacts.yaml`` in the current directory and parent
directories and parses it into an immutable ``SynthesisPolicy``.  The
policy is passed explicitly into every builder so that synthesis stays a
function of its arguments.
"""

from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, fields
from datetime import timedelta
from pathlib import Path

import yaml

CONFIG_FILENAME = "tenant-artifacts.yaml"
CLUSTER_DOMAIN_ENV = "CLUSTER_DOMAIN"
DEFAULT_CLUSTER_DOMAIN = "cluster.local"

# Effectively non-expiring; rotation is detected by signature, not expiry.
DEFAULT_TOKEN_HORIZON = timedelta(days=100 * 365)


@dataclass(frozen=True)
class SynthesisPolicy:
    """Fixed policy inputs consumed by the artifact builders."""

    config_path: Path | None = None
    cluster_domain: str = DEFAULT_CLUSTER_DOMAIN
    scrape_interval: timedelta = timedelta(seconds=10)
    evaluation_interval: timedelta = timedelta(seconds=30)
    token_horizon: timedelta = DEFAULT_TOKEN_HORIZON
    token_issuer: str = "prometheus"
    storage_port: int = 9000
    log_search_api_port: int = 8080
    log_db_port: int = 5432
    log_db_user: str = "postgres"
    log_audit_db: str = "minio_logs"
    job_name: str = "minio"
    metrics_path: str = "/minio/prometheus/metrics"
    ca_file: str = "/var/run/secrets/kubernetes.io/serviceaccount/ca.crt"


# Keys accepted in the YAML file, mapped to how their values are parsed.
_SECONDS_KEYS = {
    "scrape_interval_seconds": "scrape_interval",
    "evaluation_interval_seconds": "evaluation_interval",
}
_DAYS_KEYS = {"token_horizon_days": "token_horizon"}
_PLAIN_KEYS: dict[str, type] = {
    f.name: type(f.default)
    for f in fields(SynthesisPolicy)
    if f.name not in {"config_path", "scrape_interval", "evaluation_interval", "token_horizon"}
}


def find_config(start: Path | None = None) -> Path | None:
    """Walk from *start* (default ``cwd()``) up to the filesystem root.

    Returns the first ``tenant-artifacts.yaml`` found, or ``None``.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(
    path: str | Path | None = None,
    *,
    auto_discover: bool = True,
) -> SynthesisPolicy:
    """Load a tenant-artifacts config file.

    Resolution order:

    1. Explicit *path* (error if it doesn't exist).
    2. Auto-discover by walking parent directories.
    3. Return the default ``SynthesisPolicy``.

    When the file does not set ``cluster_domain``, the ``CLUSTER_DOMAIN``
    environment variable is used, then ``cluster.local``.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).resolve()
        if not config_path.is_file():
            msg = f"Config file not found: {config_path}"
            raise FileNotFoundError(msg)
    elif auto_discover:
        config_path = find_config()

    if config_path is None:
        return SynthesisPolicy(cluster_domain=_env_cluster_domain())

    return _parse_config(config_path)


def _env_cluster_domain() -> str:
    return os.environ.get(CLUSTER_DOMAIN_ENV) or DEFAULT_CLUSTER_DOMAIN


def _parse_config(config_path: Path) -> SynthesisPolicy:
    """Read and parse a YAML config file into a policy."""
    text = config_path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        msg = f"Expected a YAML mapping in {config_path}, got {type(data).__name__}"
        raise ValueError(msg)

    known = set(_PLAIN_KEYS) | set(_SECONDS_KEYS) | set(_DAYS_KEYS)
    unknown = sorted(str(key) for key in set(data) - known)
    if unknown:
        msg = f"Unknown config key(s) in {config_path}: {', '.join(unknown)}"
        raise ValueError(msg)

    kwargs: dict[str, object] = {}
    for key, expected in _PLAIN_KEYS.items():
        if key in data:
            kwargs[key] = _typed_value(data[key], key, expected)
    for key, attr in _SECONDS_KEYS.items():
        if key in data:
            kwargs[attr] = timedelta(seconds=_positive_seconds(data[key], key))
    for key, attr in _DAYS_KEYS.items():
        if key in data:
            kwargs[attr] = timedelta(days=_positive_number(data[key], key))

    kwargs.setdefault("cluster_domain", _env_cluster_domain())

    return SynthesisPolicy(config_path=config_path, **kwargs)  # type: ignore[arg-type]


def _typed_value(value: object, key: str, expected: type) -> object:
    if expected is int:
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            msg = f"'{key}' must be a positive integer, got {value!r}"
            raise ValueError(msg)
        return value
    if not isinstance(value, str) or not value:
        msg = f"'{key}' must be a non-empty string, got {value!r}"
        raise ValueError(msg)
    return value


def _positive_number(value: object, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        msg = f"'{key}' must be a positive number, got {value!r}"
        raise ValueError(msg)
    return float(value)


def _positive_seconds(value: object, key: str) -> int:
    # Durations render with whole-second resolution.
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        msg = f"'{key}' must be a positive whole number of seconds, got {value!r}"
        raise ValueError(msg)
    return value


def generate_secret_key() -> str:
    """Generate a 512-bit hex secret key (128 hex characters)."""
    return secrets.token_hex(64)
