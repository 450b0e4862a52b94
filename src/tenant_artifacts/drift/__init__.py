"""Drift detection for the live scrape configuration."""

from tenant_artifacts.drift.detector import (
    detect_drift,
    needs_update,
    update_prometheus_config_map,
)
from tenant_artifacts.drift.differ import configs_equal, mask_bearer_tokens

__all__ = [
    "configs_equal",
    "detect_drift",
    "mask_bearer_tokens",
    "needs_update",
    "update_prometheus_config_map",
]
