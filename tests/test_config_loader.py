"""Tests for config file loading and the secrets section schema."""

from __future__ import annotations

import json
import os

import pytest

from agent_secrets.config.loader import load_config, read_config_file, resolve_config_path
from agent_secrets.config.schema import (
    EnvProviderConfig,
    FileProviderConfig,
    SecretsConfig,
    parse_secrets_config,
)
from agent_secrets.errors import ConfigurationError


class TestResolveConfigPath:
    def test_explicit_path_wins(self, tmp_path):
        target = tmp_path / "cfg.yaml"
        assert resolve_config_path(str(target), env={"AGENT_SECRETS_CONFIG": "/x.yaml"}) == str(target)

    def test_env_override(self):
        assert resolve_config_path(env={"AGENT_SECRETS_CONFIG": "/etc/agent/cfg.yaml"}) == (
            "/etc/agent/cfg.yaml"
        )

    def test_state_dir_default(self):
        path = resolve_config_path(env={"AGENT_SECRETS_STATE_DIR": "/srv/state"})
        assert path == os.path.join("/srv/state", "config.yaml")


class TestReadConfigFile:
    def test_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("hooks:\n  token: abc\n", encoding="utf-8")
        assert read_config_file(str(path)) == {"hooks": {"token": "abc"}}

    def test_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"talk": {"apiKey": "k"}}), encoding="utf-8")
        assert read_config_file(str(path)) == {"talk": {"apiKey": "k"}}

    def test_empty_yaml_is_empty_config(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("", encoding="utf-8")
        assert read_config_file(str(path)) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="does not exist"):
            read_config_file(str(tmp_path / "nope.yaml"))

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Unsupported"):
            read_config_file(str(path))

    def test_parse_error(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Error reading"):
            read_config_file(str(path))

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="mapping"):
            read_config_file(str(path))


class TestLoadConfig:
    def test_reads_file_when_no_snapshot(self, state_dir):
        (state_dir / "config.yaml").write_text("gateway:\n  auth:\n    token: t\n", encoding="utf-8")
        assert load_config() == {"gateway": {"auth": {"token": "t"}}}

    def test_env_config_path(self, tmp_path, monkeypatch):
        path = tmp_path / "other.json"
        path.write_text("{}", encoding="utf-8")
        monkeypatch.setenv("AGENT_SECRETS_CONFIG", str(path))
        assert load_config() == {}


class TestSecretsSchema:
    def test_missing_section(self):
        cfg = parse_secrets_config({})
        assert cfg == SecretsConfig()
        assert cfg.defaults.provider_for("env") == "default"
        assert cfg.defaults.provider_for("file") == "default"

    def test_providers_discriminated_by_source(self):
        cfg = parse_secrets_config(
            {
                "secrets": {
                    "providers": {
                        "vault": {"source": "file", "path": " /run/secrets.json "},
                        "ci": {"source": "env", "allowlist": ["CI_TOKEN"]},
                    },
                    "defaults": {"file": "vault"},
                }
            }
        )
        assert isinstance(cfg.providers["vault"], FileProviderConfig)
        assert cfg.providers["vault"].path == "/run/secrets.json"
        assert cfg.providers["vault"].mode == "json"
        assert isinstance(cfg.providers["ci"], EnvProviderConfig)
        assert cfg.providers["ci"].allowlist == ["CI_TOKEN"]
        assert cfg.defaults.provider_for("file") == "vault"

    def test_unknown_source_rejected(self):
        with pytest.raises(ConfigurationError, match="validation failed"):
            parse_secrets_config({"secrets": {"providers": {"x": {"source": "exec"}}}})

    def test_bad_file_mode_rejected(self):
        with pytest.raises(ConfigurationError, match="validation failed"):
            parse_secrets_config(
                {"secrets": {"providers": {"x": {"source": "file", "path": "/p", "mode": "yaml"}}}}
            )
