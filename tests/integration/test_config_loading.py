"""Integration tests for configuration loading with layered precedence.

Tests the real load_config() function with actual YAML files, environment
variables, and CLI overrides to verify precedence: defaults < YAML < ENV < CLI.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from kvlink.infrastructure.config.load import load_config

pytestmark = pytest.mark.integration


@pytest.fixture(autouse=True)
def _isolated_environ(monkeypatch: pytest.MonkeyPatch) -> None:
    """Private os.environ copy so .env loading cannot leak into other tests."""
    environ = {k: v for k, v in os.environ.items() if not k.startswith("KVLINK_")}
    monkeypatch.setattr(os, "environ", environ)


@pytest.fixture()
def yaml_config(tmp_path: Path) -> Path:
    """Write a minimal YAML config and return its path."""
    config = {
        "app_name": "kvlink-test",
        "environment": "test",
        "logging": {"level": "DEBUG", "format": "console"},
        "redis": {"host": "cache.internal", "port": 6380, "password": "from-yaml"},
        "cache": {"ttl_seconds": 120},
    }
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(config), encoding="utf-8")
    return path


class TestDefaultsOnly:
    """Load with no YAML, no ENV, no CLI: pure defaults."""

    def test_defaults_produce_valid_config(self) -> None:
        config = load_config()
        assert config.app_name == "kvlink"
        assert config.environment == "dev"
        assert config.log_level == "INFO"
        assert config.log_format == "console"  # dev → console
        assert config.redis.host == "localhost"
        assert config.redis.port == 6379
        assert config.redis.password is None
        assert config.default_ttl_seconds == 0

    def test_defaults_derive_log_format_from_environment(self) -> None:
        config = load_config(cli_overrides={"environment": "prod"})
        assert config.log_format == "json"


class TestYamlOverrides:
    """YAML values override defaults."""

    def test_yaml_overrides_defaults(self, yaml_config: Path) -> None:
        config = load_config(config_path=yaml_config)
        assert config.app_name == "kvlink-test"
        assert config.environment == "test"
        assert config.log_level == "DEBUG"
        assert config.redis.host == "cache.internal"
        assert config.redis.port == 6380
        assert config.redis.password == "from-yaml"
        assert config.default_ttl_seconds == 120

    def test_yaml_file_not_found_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nonexistent.yaml")

    def test_yaml_partial_override_preserves_defaults(
        self, tmp_path: Path
    ) -> None:
        """YAML that only sets redis.port keeps other defaults."""
        path = tmp_path / "partial.yaml"
        path.write_text(yaml.dump({"redis": {"port": 7000}}), encoding="utf-8")

        config = load_config(config_path=path)
        assert config.redis.port == 7000
        assert config.redis.host == "localhost"  # default preserved
        assert config.app_name == "kvlink"  # default preserved

    def test_empty_yaml_is_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path).redis.host == "localhost"

    def test_non_mapping_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="must be a mapping"):
            load_config(config_path=path)


class TestEnvOverrides:
    """Environment variables override YAML and defaults."""

    def test_env_overrides_yaml(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KVLINK_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("KVLINK_REDIS_HOST", "env-host")
        monkeypatch.setenv("KVLINK_REDIS_PORT", "6390")

        config = load_config(config_path=yaml_config)
        assert config.log_level == "WARNING"
        assert config.redis.host == "env-host"
        assert config.redis.port == 6390
        # YAML values not overridden by ENV stay
        assert config.redis.password == "from-yaml"
        assert config.app_name == "kvlink-test"

    def test_env_overrides_defaults(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KVLINK_ENVIRONMENT", "prod")
        monkeypatch.setenv("KVLINK_CACHE_TTL_SECONDS", "30")

        config = load_config()
        assert config.environment == "prod"
        assert config.log_format == "json"  # prod → json
        assert config.default_ttl_seconds == 30

    def test_empty_password_env_means_no_auth(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KVLINK_REDIS_PASSWORD", "")
        config = load_config(config_path=yaml_config)
        assert config.redis.password is None


class TestDotenv:
    def test_dotenv_participates_as_env_layer(self, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("KVLINK_REDIS_HOST=dotenv-host\n", encoding="utf-8")

        config = load_config(dotenv_path=env_file)
        assert config.redis.host == "dotenv-host"

    def test_real_env_beats_dotenv(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("KVLINK_REDIS_HOST=dotenv-host\n", encoding="utf-8")
        monkeypatch.setenv("KVLINK_REDIS_HOST", "real-env-host")

        config = load_config(dotenv_path=env_file)
        assert config.redis.host == "real-env-host"

    def test_missing_dotenv_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(dotenv_path=tmp_path / "missing.env")


class TestCliOverrides:
    """CLI overrides beat everything (highest precedence)."""

    def test_cli_overrides_yaml_and_env(
        self, yaml_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KVLINK_REDIS_HOST", "env-host")

        config = load_config(
            config_path=yaml_config,
            cli_overrides={"redis_host": "cli-host", "redis_port": 1234},
        )
        assert config.redis.host == "cli-host"
        assert config.redis.port == 1234

    def test_sectioned_cli_override(self) -> None:
        config = load_config(cli_overrides={"logging": {"level": "ERROR"}})
        assert config.log_level == "ERROR"

    def test_flat_cache_ttl_override(self, yaml_config: Path) -> None:
        config = load_config(
            config_path=yaml_config, cli_overrides={"cache_ttl_seconds": 5}
        )
        assert config.default_ttl_seconds == 5

    def test_unknown_keys_are_ignored(self) -> None:
        config = load_config(cli_overrides={"redis_db": 3, "verbose": True})
        assert config.redis.host == "localhost"


class TestValidation:
    @pytest.mark.parametrize("port", [0, 65536])
    def test_port_out_of_range(self, port: int) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"redis_port": port})

    def test_empty_host(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"redis_host": "  "})

    def test_negative_ttl(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"cache_ttl_seconds": -1})

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_overrides={"log_level": "TRACE"})


class TestSectionedDump:
    def test_password_is_masked(self, yaml_config: Path) -> None:
        dumped = load_config(config_path=yaml_config).to_sectioned_dict()
        assert dumped["redis"] == {
            "host": "cache.internal",
            "port": 6380,
            "password": "***",
        }
        assert dumped["cache"] == {"ttl_seconds": 120}
        assert dumped["logging"] == {"level": "DEBUG", "format": "console"}
