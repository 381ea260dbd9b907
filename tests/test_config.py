"""Tests for agent configuration."""

import pytest

from inventory_agent.config import (
    DEFAULT_API_URL,
    AgentConfig,
    env_values,
    load_config,
    yaml_values,
)
from inventory_agent.errors import ConfigError


class TestAgentConfigDefaults:
    """Tests for default values."""

    def test_defaults(self):
        """Should fall back to the documented defaults."""
        config = AgentConfig()

        assert config.api_url == DEFAULT_API_URL
        assert config.api_key == ""
        assert config.tenant_id == ""
        assert config.interval == 3600
        assert config.scan_range is None
        assert config.max_concurrent_probes == 50
        assert config.connect_timeout == 0.5
        assert config.ping_timeout == 1.0
        assert config.request_timeout == 10.0
        assert config.host_timeout == 30.0
        assert config.dns_timeout == 2.0
        assert config.scan_timeout is None
        assert config.log_level == "INFO"
        assert config.is_scanner_mode is False

    def test_endpoint_urls(self):
        """Should build endpoint URLs without doubled slashes."""
        config = AgentConfig(api_url="https://inv.example.com/api/v1/")

        assert config.checkin_url == "https://inv.example.com/api/v1/agent/checkin"
        assert config.scan_url == "https://inv.example.com/api/v1/agent/scan"

    def test_frozen(self):
        """Config should be immutable once built."""
        config = AgentConfig()

        with pytest.raises(Exception):
            config.interval = 10


class TestAgentConfigValidation:
    """Tests for field validation."""

    def test_scanner_mode(self):
        """Setting a range should switch to scanner mode."""
        config = AgentConfig(scan_range="192.168.1.0/24")

        assert config.is_scanner_mode is True
        assert config.scan_range == "192.168.1.0/24"

    def test_empty_scan_range_is_endpoint_mode(self):
        """An empty range should mean endpoint mode."""
        assert AgentConfig(scan_range="  ").scan_range is None

    @pytest.mark.parametrize("values", [
        {"scan_range": "not-a-cidr"},
        {"scan_range": "10.0.0.0/33"},
        {"max_concurrent_probes": 0},
        {"interval": 0},
        {"log_level": "VERBOSE"},
        {"api_url": "ftp://example.com"},
        {"unknown_field": "x"},
    ])
    def test_invalid_values(self, values):
        """Should reject invalid settings with ConfigError."""
        with pytest.raises(ConfigError):
            AgentConfig.from_values(values)

    def test_log_level_case_insensitive(self):
        """Should normalise the log level."""
        assert AgentConfig(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize("value", ["", "none", "0", 0])
    def test_zero_timeout_means_none(self, value):
        """Should read 0, "" and "none" as no deadline."""
        config = AgentConfig(host_timeout=value, scan_timeout=value, dns_timeout=value)

        assert config.host_timeout is None
        assert config.scan_timeout is None
        assert config.dns_timeout is None


class TestLoadFromEnv:
    """Tests for environment loading."""

    def test_env_values(self):
        """Should map known variables onto fields."""
        environ = {
            "INVENTORY_URL": "https://inv.example.com/api/v1",
            "INVENTORY_KEY": "secret",
            "INVENTORY_TENANT": "acme",
            "INVENTORY_INTERVAL": "600",
            "INVENTORY_SCAN_RANGE": "10.0.0.0/24",
            "INVENTORY_MAX_PROBES": "20",
            "UNRELATED": "ignored",
        }

        config = AgentConfig.from_env(environ)

        assert config.api_url == "https://inv.example.com/api/v1"
        assert config.api_key == "secret"
        assert config.tenant_id == "acme"
        assert config.interval == 600
        assert config.scan_range == "10.0.0.0/24"
        assert config.max_concurrent_probes == 20

    def test_unset_variables_keep_defaults(self):
        """Should only pick up variables that are set."""
        assert env_values({}) == {}
        assert AgentConfig.from_env({}).interval == 3600

    def test_invalid_env_value(self):
        """Should raise ConfigError for an unparsable number."""
        with pytest.raises(ConfigError):
            AgentConfig.from_env({"INVENTORY_INTERVAL": "hourly"})

    def test_legacy_variable_names(self):
        """Should honour the ASSETRONICS_* names used by earlier releases."""
        config = AgentConfig.from_env({
            "ASSETRONICS_URL": "https://old.example.com/api/v1",
            "ASSETRONICS_KEY": "old-secret",
            "ASSETRONICS_TENANT": "old-tenant",
        })

        assert config.api_url == "https://old.example.com/api/v1"
        assert config.api_key == "old-secret"
        assert config.tenant_id == "old-tenant"

    def test_new_names_win_over_legacy(self):
        """INVENTORY_* should take precedence when both are set."""
        config = AgentConfig.from_env({
            "ASSETRONICS_TENANT": "old-tenant",
            "INVENTORY_TENANT": "new-tenant",
        })

        assert config.tenant_id == "new-tenant"

    def test_dns_timeout(self):
        """Should read the reverse DNS timeout."""
        assert AgentConfig.from_env({"INVENTORY_DNS_TIMEOUT": "5"}).dns_timeout == 5


class TestLoadFromYaml:
    """Tests for YAML loading."""

    def test_yaml_file(self, tmp_path):
        """Should read nested api and scan sections."""
        path = tmp_path / "agent.yaml"
        path.write_text(
            "api:\n"
            "  url: https://inv.example.com/api/v1\n"
            "  tenant: acme\n"
            "  key: secret\n"
            "interval: 900\n"
            "scan:\n"
            "  range: 10.10.0.0/16\n"
            "  max_probes: 25\n"
            "  host_timeout: 10\n"
            "  dns_timeout: 3\n"
            "  timeout: 600\n"
            "log_level: warning\n"
        )

        config = AgentConfig.from_yaml(path)

        assert config.tenant_id == "acme"
        assert config.api_key == "secret"
        assert config.interval == 900
        assert config.scan_range == "10.10.0.0/16"
        assert config.max_concurrent_probes == 25
        assert config.host_timeout == 10
        assert config.dns_timeout == 3
        assert config.scan_timeout == 600
        assert config.log_level == "WARNING"

    def test_missing_file(self, tmp_path):
        """Should raise ConfigError for a missing file."""
        with pytest.raises(ConfigError):
            yaml_values(tmp_path / "missing.yaml")

    def test_bad_yaml(self, tmp_path):
        """Should raise ConfigError for unparsable YAML."""
        path = tmp_path / "bad.yaml"
        path.write_text("api: [unclosed\n")

        with pytest.raises(ConfigError):
            yaml_values(path)

    def test_not_a_mapping(self, tmp_path):
        """Should raise ConfigError when the document is a list."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            yaml_values(path)

    def test_empty_file(self, tmp_path):
        """An empty file should give defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert AgentConfig.from_yaml(path) == AgentConfig()


class TestLoadConfig:
    """Tests for load_config layering."""

    def test_overrides_win(self):
        """Command line values should beat the environment."""
        config = load_config(
            overrides={"tenant_id": "from-flag", "interval": None},
            environ={"INVENTORY_TENANT": "from-env", "INVENTORY_INTERVAL": "120"},
        )

        assert config.tenant_id == "from-flag"
        assert config.interval == 120

    def test_yaml_used_when_given(self, tmp_path):
        """Should read the file instead of the environment."""
        path = tmp_path / "agent.yaml"
        path.write_text("api:\n  tenant: from-file\n")

        config = load_config(path, environ={"INVENTORY_TENANT": "from-env"})

        assert config.tenant_id == "from-file"
