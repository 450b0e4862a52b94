"""Tests for the log-search API deployment descriptor."""

from __future__ import annotations

import json

from tenant_artifacts.config import SynthesisPolicy
from tenant_artifacts.credentials.materializer import (
    LOG_AUDIT_TOKEN_KEY,
    LOG_PG_CONNSTR_KEY,
    materialize_log_secret,
)
from tenant_artifacts.deployments.log_search import (
    LOG_RETENTION_PERIOD_KEY,
    build_log_search_api_deployment,
)
from tenant_artifacts.models import ImagePullPolicy, Pool, TenantSpec


def _tenant(**overrides) -> TenantSpec:
    data = {
        "name": "storage",
        "namespace": "tenant-ns",
        "uid": "uid-7",
        "pools": [Pool(name="pool-0", servers=4)],
        "service_account_name": "storage-sa",
    }
    data.update(overrides)
    return TenantSpec(**data)


def _env(deployment) -> dict:
    return {e.name: e for e in deployment.env}


class TestLogSearchDeployment:
    def test_metadata(self):
        d = build_log_search_api_deployment(_tenant())
        assert d.name == "storage-log-search-api"
        assert d.namespace == "tenant-ns"
        assert d.replicas == 1
        assert d.owner_references[0].uid == "uid-7"
        assert d.labels == {"v1.min.io/log-search-api": "storage-log-search-api"}
        assert d.service_account_name == "storage-sa"
        assert d.container_port == 8080
        assert d.restart_policy == "Always"

    def test_retention_defaults_to_zero(self):
        env = _env(build_log_search_api_deployment(_tenant()))
        assert env[LOG_RETENTION_PERIOD_KEY].value == "0"
        assert env[LOG_RETENTION_PERIOD_KEY].secret_key_ref is None

    def test_retention_from_tenant(self):
        env = _env(build_log_search_api_deployment(_tenant(log_retention_period=30)))
        assert env[LOG_RETENTION_PERIOD_KEY].value == "30"

    def test_secrets_referenced_by_name_and_key(self):
        env = _env(build_log_search_api_deployment(_tenant()))
        for key in (LOG_PG_CONNSTR_KEY, LOG_AUDIT_TOKEN_KEY):
            assert env[key].value is None
            assert env[key].secret_key_ref is not None
            assert env[key].secret_key_ref.name == "storage-log-secret"
            assert env[key].secret_key_ref.key == key

    def test_no_secret_values_in_manifest(self):
        tenant = _tenant()
        secret = materialize_log_secret(tenant)
        text = json.dumps(build_log_search_api_deployment(tenant).to_manifest())
        for value in secret.string_data.values():
            assert value not in text

    def test_stable_across_secret_rotation(self):
        tenant = _tenant()
        before = build_log_search_api_deployment(tenant)
        materialize_log_secret(tenant)
        after = build_log_search_api_deployment(tenant)
        assert before == after

    def test_image_pull_settings(self):
        tenant = _tenant(
            image_pull_policy=ImagePullPolicy.IF_NOT_PRESENT,
            image_pull_secret="registry-creds",
        )
        manifest = build_log_search_api_deployment(tenant).to_manifest()
        pod = manifest["spec"]["template"]["spec"]
        assert pod["containers"][0]["imagePullPolicy"] == "IfNotPresent"
        assert pod["imagePullSecrets"] == [{"name": "registry-creds"}]

    def test_no_pull_secret_by_default(self):
        manifest = build_log_search_api_deployment(_tenant()).to_manifest()
        assert "imagePullSecrets" not in manifest["spec"]["template"]["spec"]

    def test_manifest_env_shape(self):
        manifest = build_log_search_api_deployment(_tenant()).to_manifest()
        env = manifest["spec"]["template"]["spec"]["containers"][0]["env"]
        assert env[0] == {"name": LOG_RETENTION_PERIOD_KEY, "value": "0"}
        assert env[1] == {
            "name": LOG_PG_CONNSTR_KEY,
            "valueFrom": {
                "secretKeyRef": {"name": "storage-log-secret", "key": LOG_PG_CONNSTR_KEY},
            },
        }
        assert manifest["spec"]["selector"]["matchLabels"] == (
            manifest["spec"]["template"]["metadata"]["labels"]
        )

    def test_policy_port(self):
        d = build_log_search_api_deployment(_tenant(), SynthesisPolicy(log_search_api_port=9090))
        assert d.container_port == 9090
