"""YAML codec for the ``prometheus.yml`` scrape document.

``encode_config`` is total for well-formed documents; a failure there is a
bug upstream and propagates.  ``decode_config`` is used on live documents
that may have been edited by hand or corrupted, and reports every problem
as ``ArtifactParseError``.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import yaml
from pydantic import ValidationError

from tenant_artifacts.models import PrometheusConfig

CONFIG_FILE_HEADER = (
    "# This file and config-map is generated by tenant-artifacts.\n"
    "# DO NOT EDIT.\n\n"
)


class ArtifactParseError(Exception):
    """Raised when a live document cannot be read as a scrape configuration."""


def format_duration(value: timedelta) -> str:
    """Render a duration the way Prometheus writes it (``10s``, ``1m30s``, ``500ms``)."""
    total_ms = value // timedelta(milliseconds=1)
    if total_ms <= 0:
        return "0s"
    total, millis = divmod(total_ms, 1000)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds:
        parts.append(f"{seconds}s")
    if millis:
        parts.append(f"{millis}ms")
    return "".join(parts)


def config_to_dict(config: PrometheusConfig) -> dict[str, Any]:
    return config.model_dump(mode="json", by_alias=True, exclude_none=True)


def encode_config(config: PrometheusConfig) -> str:
    """Serialize *config* to YAML, keys in declaration order."""
    return yaml.safe_dump(
        config_to_dict(config), default_flow_style=False, sort_keys=False,
    )


def render_config_file(config: PrometheusConfig) -> str:
    """The full ``prometheus.yml`` file content, with the generated header."""
    return CONFIG_FILE_HEADER + encode_config(config)


def decode_config(raw: str | bytes) -> PrometheusConfig:
    """Parse *raw* YAML into a scrape configuration.

    Raises:
        ArtifactParseError: If the text is not YAML, is not a mapping, or
            does not match the document schema (missing or unknown fields,
            no scrape configs).
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ArtifactParseError(f"Document is not valid UTF-8: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ArtifactParseError(f"Invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ArtifactParseError(
            f"Expected a YAML mapping, got {type(data).__name__}"
        )

    try:
        return PrometheusConfig.model_validate(data)
    except ValidationError as e:
        raise ArtifactParseError(f"Document does not match schema: {e}") from e
