"""Tests for config loader module."""

import dataclasses
from pathlib import Path

import pytest

from azfiles_backup_ng.config.loader import (
    ConfigError,
    find_config_file,
    generate_example_config,
    load_config,
    parse_config,
)


class TestFindConfigFile:
    """Tests for find_config_file function."""

    def test_explicit_path_exists(self, config_file):
        """Test finding explicitly specified config file."""
        result = find_config_file(str(config_file))
        assert result == config_file

    def test_explicit_path_not_exists(self, tmp_path):
        """Test error when explicit path doesn't exist."""
        with pytest.raises(ConfigError, match="not found"):
            find_config_file(str(tmp_path / "nonexistent.toml"))

    def test_env_var(self, config_file, monkeypatch):
        """Test finding config through the environment variable."""
        monkeypatch.setenv("AZFILES_BACKUP_CONFIG", str(config_file))
        assert find_config_file(None) == config_file

    def test_env_var_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AZFILES_BACKUP_CONFIG", str(tmp_path / "nope.toml"))
        with pytest.raises(ConfigError, match="AZFILES_BACKUP_CONFIG"):
            find_config_file(None)

    def test_explicit_beats_env(self, config_file, minimal_config_file, monkeypatch):
        monkeypatch.setenv("AZFILES_BACKUP_CONFIG", str(config_file))
        assert find_config_file(str(minimal_config_file)) == minimal_config_file

    def test_search_paths(self, config_file, monkeypatch, tmp_path):
        """Test falling back to the search paths."""
        from azfiles_backup_ng.config import loader

        monkeypatch.delenv("AZFILES_BACKUP_CONFIG", raising=False)
        monkeypatch.setattr(
            loader, "CONFIG_PATHS", [tmp_path / "missing.toml", config_file]
        )
        assert find_config_file(None) == config_file

    def test_no_config_found(self, monkeypatch, tmp_path):
        from azfiles_backup_ng.config import loader

        monkeypatch.delenv("AZFILES_BACKUP_CONFIG", raising=False)
        monkeypatch.setattr(loader, "CONFIG_PATHS", [tmp_path / "missing.toml"])
        assert find_config_file(None) is None


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_valid_config(self, config_file):
        """Test loading a valid configuration file."""
        config, warnings = load_config(config_file)

        assert config.source.account_name == "stsource"
        assert config.source.share_name == "data"
        assert config.target.subscription_id == "sub-2"
        assert config.target.endpoint_suffix == "core.usgovcloudapi.net"
        assert config.target.share_url == (
            "https://sttarget.file.core.usgovcloudapi.net/data-mirror"
        )
        assert warnings == []

    def test_load_minimal_config_defaults(self, minimal_config_file):
        """Test defaults of a minimal configuration file."""
        config, warnings = load_config(minimal_config_file)

        assert config.retention.ceiling == 200
        assert config.retention.source_buffer == 20
        assert config.retention.target_buffer == 10
        assert config.retention.protection_key == "AzureBackupProtected"
        assert config.retention.protection_policy == "presence"
        assert config.access.expiry_hours == 24
        assert config.access.source_permissions == "rl"
        assert config.access.target_permissions == "rwl"
        assert config.sandbox.cpu == 2.0
        assert config.sandbox.memory_gb == 4.0
        assert config.sandbox.tool == "azcopy"
        assert config.global_config.transaction_log is None

    def test_load_with_overrides(self, config_file):
        """Test that optional sections override defaults."""
        config, _ = load_config(config_file)

        assert config.retention.protection_policy == "truthy"
        assert config.access.expiry_hours == 12
        assert config.sandbox.cpu == 4.0
        assert config.sandbox.memory_gb == 8.0
        assert config.sandbox.name_prefix == "Nightly_Copy"
        assert config.global_config.transaction_log == "/tmp/azfiles-backup-ng.jsonl"

    def test_sandbox_subscription_defaults_to_target(self, config_file):
        config, _ = load_config(config_file)
        assert config.sandbox_subscription == "sub-2"

    def test_config_is_immutable(self, config_file):
        config, _ = load_config(config_file)
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.retention.ceiling = 10

    def test_load_nonexistent_file(self, tmp_path):
        """Test error when loading nonexistent file."""
        with pytest.raises(ConfigError, match="Cannot read config file"):
            load_config(tmp_path / "nonexistent.toml")

    def test_load_invalid_toml(self, tmp_config_dir):
        """Test error when loading invalid TOML."""
        bad_config = tmp_config_dir / "bad.toml"
        bad_config.write_text("this is not valid [ toml")

        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(bad_config)

    def test_empty_config(self, tmp_config_dir):
        """Test loading an empty config file."""
        empty_config = tmp_config_dir / "empty.toml"
        empty_config.write_text("")

        with pytest.raises(ConfigError, match=r"\[source\]"):
            load_config(empty_config)

    def test_accepts_string_path(self, config_file):
        config, _ = load_config(str(config_file))
        assert config.source.share_name == "data"


class TestParseConfig:
    """Tests for field validation."""

    def test_missing_share_field(self, config_data):
        del config_data["target"]["share_name"]
        with pytest.raises(ConfigError, match="target.*share_name"):
            parse_config(config_data)

    def test_empty_required_field(self, config_data):
        config_data["source"]["account_name"] = ""
        with pytest.raises(ConfigError, match="account_name"):
            parse_config(config_data)

    def test_missing_sandbox_subnet(self, config_data):
        del config_data["sandbox"]["subnet_id"]
        with pytest.raises(ConfigError, match="subnet_id"):
            parse_config(config_data)

    def test_invalid_protection_policy(self, config_data):
        config_data["retention"] = {"protection_policy": "sometimes"}
        with pytest.raises(ConfigError, match="protection_policy"):
            parse_config(config_data)

    def test_negative_buffer(self, config_data):
        config_data["retention"] = {"source_buffer": -1}
        with pytest.raises(ConfigError, match="buffers"):
            parse_config(config_data)

    def test_zero_ceiling(self, config_data):
        config_data["retention"] = {"ceiling": 0}
        with pytest.raises(ConfigError, match="ceiling"):
            parse_config(config_data)

    def test_invalid_permission_letters(self, config_data):
        config_data["access"] = {"target_permissions": "rwx"}
        with pytest.raises(ConfigError, match="target_permissions"):
            parse_config(config_data)

    def test_invalid_expiry(self, config_data):
        config_data["access"] = {"expiry_hours": 0}
        with pytest.raises(ConfigError, match="expiry_hours"):
            parse_config(config_data)

    def test_invalid_sandbox_size(self, config_data):
        config_data["sandbox"]["memory_gb"] = 0
        with pytest.raises(ConfigError, match="memory_gb"):
            parse_config(config_data)

    def test_non_numeric_cpu(self, config_data):
        config_data["sandbox"]["cpu"] = "lots"
        with pytest.raises(ConfigError, match="Invalid value"):
            parse_config(config_data)


class TestConfigWarnings:
    """Tests for configuration warnings."""

    def test_same_share_warning(self, config_data):
        config_data["target"] = dict(config_data["source"])
        _, warnings = parse_config(config_data)
        assert any("same share" in w for w in warnings)

    def test_buffer_above_ceiling_warning(self, config_data):
        config_data["retention"] = {"ceiling": 10, "target_buffer": 10, "source_buffer": 2}
        _, warnings = parse_config(config_data)
        assert any(w.startswith("target buffer") for w in warnings)
        assert not any(w.startswith("source buffer") for w in warnings)

    def test_source_write_warning(self, config_data):
        config_data["access"] = {"source_permissions": "rwl"}
        _, warnings = parse_config(config_data)
        assert any("Source permissions" in w for w in warnings)

    def test_target_missing_write_warning(self, config_data):
        config_data["access"] = {"target_permissions": "rl"}
        _, warnings = parse_config(config_data)
        assert any("Target permissions" in w for w in warnings)

    def test_subnet_warning(self, config_data):
        config_data["sandbox"]["subnet_id"] = "snet-aci"
        _, warnings = parse_config(config_data)
        assert any("subnet_id" in w for w in warnings)

    def test_no_warnings_for_defaults(self, config_data):
        _, warnings = parse_config(config_data)
        assert warnings == []


class TestGenerateExampleConfig:
    """Tests for the example configuration."""

    def test_example_is_loadable(self, tmp_path):
        path = tmp_path / "example.toml"
        path.write_text(generate_example_config())

        config, warnings = load_config(path)

        assert config.source.share_name == "data"
        assert config.target.share_name == "data-mirror"
        assert warnings == []
