"""Tenant spec loader.

Loads and validates a tenant specification from a YAML file.  The file
holds a single mapping; a top-level ``tenant`` key may wrap it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from tenant_artifacts.models import TenantSpec


class TenantError(Exception):
    """Raised when a tenant file is invalid or cannot be loaded."""


def parse_tenant(raw: Any, source: str = "<tenant>") -> TenantSpec:
    """Validate an already-parsed tenant mapping."""
    if isinstance(raw, dict) and "tenant" in raw:
        raw = raw["tenant"]

    if not isinstance(raw, dict):
        raise TenantError(f"Tenant spec must be a mapping: {source}")

    try:
        return TenantSpec(**raw)
    except (ValidationError, TypeError) as e:
        raise TenantError(f"Invalid tenant spec in {source}: {e}") from e


def load_tenant(path: str | Path) -> TenantSpec:
    """Load and validate a tenant spec from a YAML file.

    Raises:
        TenantError: If the file cannot be read, parsed, or validated.
    """
    path = Path(path)
    if not path.exists():
        raise TenantError(f"Tenant file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise TenantError(f"Invalid YAML in {path}: {e}") from e

    return parse_tenant(raw, str(path))
