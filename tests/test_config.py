"""Tests for the tenant-artifacts config loader (tenant-artifacts.yaml)."""

from datetime import timedelta
from pathlib import Path

import pytest

from tenant_artifacts.config import (
    SynthesisPolicy,
    find_config,
    generate_secret_key,
    load_config,
)


@pytest.fixture(autouse=True)
def _no_cluster_domain_env(monkeypatch):
    monkeypatch.delenv("CLUSTER_DOMAIN", raising=False)


# --- generate_secret_key ---


class TestGenerateSecretKey:
    def test_returns_128_hex_chars(self):
        key = generate_secret_key()
        assert len(key) == 128
        assert all(c in "0123456789abcdef" for c in key)

    def test_unique_every_time(self):
        keys = {generate_secret_key() for _ in range(20)}
        assert len(keys) == 20


# --- find_config ---


class TestFindConfig:
    def test_finds_in_start_dir(self, tmp_path: Path):
        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text("cluster_domain: corp.local\n", encoding="utf-8")
        assert find_config(tmp_path) == cfg

    def test_finds_in_parent(self, tmp_path: Path):
        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text("cluster_domain: corp.local\n", encoding="utf-8")
        child = tmp_path / "sub" / "deep"
        child.mkdir(parents=True)
        assert find_config(child) == cfg

    def test_returns_none_when_missing(self, tmp_path: Path):
        assert find_config(tmp_path) is None

    def test_ignores_directories_named_config(self, tmp_path: Path):
        (tmp_path / "tenant-artifacts.yaml").mkdir()
        assert find_config(tmp_path) is None


# --- load_config ---


class TestLoadConfig:
    def test_defaults_when_nothing_found(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        policy = load_config()
        assert policy == SynthesisPolicy()
        assert policy.scrape_interval == timedelta(seconds=10)
        assert policy.evaluation_interval == timedelta(seconds=30)
        assert policy.token_horizon == timedelta(days=36500)
        assert policy.storage_port == 9000

    def test_explicit_missing_path_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_parses_values(self, tmp_path: Path):
        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text(
            "cluster_domain: corp.local\n"
            "scrape_interval_seconds: 15\n"
            "evaluation_interval_seconds: 60\n"
            "token_horizon_days: 30\n"
            "storage_port: 9443\n"
            "job_name: storage\n",
            encoding="utf-8",
        )
        policy = load_config(cfg)
        assert policy.config_path == cfg.resolve()
        assert policy.cluster_domain == "corp.local"
        assert policy.scrape_interval == timedelta(seconds=15)
        assert policy.evaluation_interval == timedelta(minutes=1)
        assert policy.token_horizon == timedelta(days=30)
        assert policy.storage_port == 9443
        assert policy.job_name == "storage"

    def test_auto_discovers(self, tmp_path: Path, monkeypatch):
        (tmp_path / "tenant-artifacts.yaml").write_text(
            "metrics_path: /metrics\n", encoding="utf-8",
        )
        monkeypatch.chdir(tmp_path)
        assert load_config().metrics_path == "/metrics"

    def test_no_auto_discover(self, tmp_path: Path, monkeypatch):
        (tmp_path / "tenant-artifacts.yaml").write_text(
            "metrics_path: /metrics\n", encoding="utf-8",
        )
        monkeypatch.chdir(tmp_path)
        assert load_config(auto_discover=False).metrics_path == "/minio/prometheus/metrics"

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text("", encoding="utf-8")
        assert load_config(cfg).job_name == "minio"

    def test_cluster_domain_from_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("CLUSTER_DOMAIN", "env.local")
        monkeypatch.chdir(tmp_path)
        assert load_config().cluster_domain == "env.local"

        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text("job_name: storage\n", encoding="utf-8")
        assert load_config(cfg).cluster_domain == "env.local"

    def test_file_overrides_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("CLUSTER_DOMAIN", "env.local")
        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text("cluster_domain: file.local\n", encoding="utf-8")
        assert load_config(cfg).cluster_domain == "file.local"

    def test_non_mapping_raises(self, tmp_path: Path):
        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Expected a YAML mapping"):
            load_config(cfg)

    def test_unknown_key_raises(self, tmp_path: Path):
        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text("scrape_interval: 10\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Unknown config key"):
            load_config(cfg)

    @pytest.mark.parametrize("value", ["0", "-5", "ten", "true"])
    def test_bad_interval_raises(self, tmp_path: Path, value: str):
        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text(f"scrape_interval_seconds: {value}\n", encoding="utf-8")
        with pytest.raises(ValueError, match="positive whole number"):
            load_config(cfg)

    @pytest.mark.parametrize("value", ["0.5", "1.5"])
    def test_fractional_interval_raises(self, tmp_path: Path, value: str):
        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text(f"scrape_interval_seconds: {value}\n", encoding="utf-8")
        with pytest.raises(ValueError, match="scrape_interval_seconds"):
            load_config(cfg)

    def test_whole_float_interval_accepted(self, tmp_path: Path):
        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text("evaluation_interval_seconds: 45.0\n", encoding="utf-8")
        assert load_config(cfg).evaluation_interval == timedelta(seconds=45)

    def test_invalid_yaml_raises(self, tmp_path: Path):
        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text("cluster_domain: [unclosed\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(cfg)

    @pytest.mark.parametrize(
        ("line", "key"),
        [
            ("storage_port: abc", "storage_port"),
            ("storage_port: 0", "storage_port"),
            ("log_db_port: true", "log_db_port"),
            ("log_search_api_port: 80.5", "log_search_api_port"),
            ("cluster_domain: 42", "cluster_domain"),
            ("ca_file: null", "ca_file"),
            ("job_name: null", "job_name"),
            ("metrics_path: ''", "metrics_path"),
            ("token_issuer: [a, b]", "token_issuer"),
        ],
    )
    def test_bad_value_type_raises(self, tmp_path: Path, line: str, key: str):
        cfg = tmp_path / "tenant-artifacts.yaml"
        cfg.write_text(f"{line}\n", encoding="utf-8")
        with pytest.raises(ValueError, match=key):
            load_config(cfg)

    def test_policy_is_frozen(self):
        policy = SynthesisPolicy()
        with pytest.raises(AttributeError):
            policy.storage_port = 1  # type: ignore[misc]
