"""Field-by-field comparison of scrape configuration documents.

Documents are flattened into ``{field path: value}`` maps by walking each
typed field explicitly, then diffed as flat dicts.  Masking is a separate,
explicit step so that the comparison never depends on which fields happen
to exist on the model.
"""

from __future__ import annotations

from typing import Any

from tenant_artifacts.models import PrometheusConfig, ScrapeConfig


def compute_field_diff(
    before: dict[str, Any],
    after: dict[str, Any],
) -> dict[str, Any]:
    """Compute a diff between two flattened documents.

    Returns a dict with keys:
    - added: paths present in after but not before, with their values
    - removed: paths present in before but not after, with their values
    - changed: paths where values differ, with old/new pairs
    - unchanged: list of paths where values are identical
    """
    before_keys = set(before.keys())
    after_keys = set(after.keys())

    added = {k: after[k] for k in sorted(after_keys - before_keys)}
    removed = {k: before[k] for k in sorted(before_keys - after_keys)}
    changed: dict[str, dict[str, Any]] = {}
    unchanged: list[str] = []

    for k in sorted(before_keys & after_keys):
        if before[k] != after[k]:
            changed[k] = {"old": before[k], "new": after[k]}
        else:
            unchanged.append(k)

    return {
        "added": added,
        "removed": removed,
        "changed": changed,
        "unchanged": unchanged,
    }


def mask_bearer_tokens(config: PrometheusConfig) -> PrometheusConfig:
    """Return a copy of *config* with every bearer token blanked."""
    return config.model_copy(
        update={
            "scrape_configs": [
                sc.model_copy(update={"bearer_token": ""})
                for sc in config.scrape_configs
            ],
        },
    )


def flatten_config(config: PrometheusConfig) -> dict[str, Any]:
    """Flatten *config* into ``{path: value}`` pairs."""
    flat: dict[str, Any] = {
        "global.scrape_interval": config.global_.scrape_interval,
        "global.evaluation_interval": config.global_.evaluation_interval,
        "scrape_configs.length": len(config.scrape_configs),
    }
    for i, sc in enumerate(config.scrape_configs):
        flat.update(_flatten_scrape_config(f"scrape_configs[{i}]", sc))
    return flat


def _flatten_scrape_config(prefix: str, sc: ScrapeConfig) -> dict[str, Any]:
    flat: dict[str, Any] = {
        f"{prefix}.job_name": sc.job_name,
        f"{prefix}.bearer_token": sc.bearer_token,
        f"{prefix}.metrics_path": sc.metrics_path,
        f"{prefix}.scheme": sc.scheme,
        f"{prefix}.tls_config.ca_file": (
            sc.tls_config.ca_file if sc.tls_config is not None else None
        ),
        f"{prefix}.static_configs.length": len(sc.static_configs),
    }
    for j, static in enumerate(sc.static_configs):
        # Target order is significant.
        flat[f"{prefix}.static_configs[{j}].targets"] = tuple(static.targets)
    return flat


def changed_fields(a: PrometheusConfig, b: PrometheusConfig) -> list[str]:
    """Sorted paths at which *a* and *b* differ."""
    diff = compute_field_diff(flatten_config(a), flatten_config(b))
    return sorted([*diff["added"], *diff["removed"], *diff["changed"]])


def configs_equal(a: PrometheusConfig, b: PrometheusConfig) -> bool:
    return not changed_fields(a, b)
