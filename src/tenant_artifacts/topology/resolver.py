"""Stable network addresses for every server replica of a tenant.

Each pool is backed by a StatefulSet behind the tenant's headless service,
so replica ``i`` of a pool is reachable at::

    <statefulset>-<i>.<headless-service>.<namespace>.svc.<cluster-domain>:<port>

Order matters: pools as the tenant lists them, then replica index.  Downstream
equality checks compare target lists position by position.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from tenant_artifacts.config import SynthesisPolicy
from tenant_artifacts.models import Pool, TenantSpec


def resolve_endpoints(
    pools: Sequence[Pool],
    *,
    namespace: str,
    headless_service: str,
    cluster_domain: str,
    port: int,
    statefulset_name: Callable[[Pool], str],
) -> list[str]:
    """Return one address per replica, pool order then replica order.

    An empty pool list yields an empty list.
    """
    endpoints: list[str] = []
    for pool in pools:
        sts = statefulset_name(pool)
        for index in range(pool.servers):
            endpoints.append(
                f"{sts}-{index}.{headless_service}.{namespace}"
                f".svc.{cluster_domain}:{port}"
            )
    return endpoints


def tenant_endpoints(tenant: TenantSpec, policy: SynthesisPolicy) -> list[str]:
    """Addresses of all storage servers of *tenant*."""
    return resolve_endpoints(
        tenant.pools,
        namespace=tenant.namespace,
        headless_service=tenant.headless_service_name,
        cluster_domain=policy.cluster_domain,
        port=policy.storage_port,
        statefulset_name=tenant.pool_statefulset_name,
    )
