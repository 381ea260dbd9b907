"""
Configuration management for the inventory agent.

Settings come from environment variables or a YAML file, with command
line flags layered on top. The result is a validated, immutable
AgentConfig that is built once at startup and passed explicitly to the
scanner, the API client and the agent loop.
"""

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ._types import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_DNS_TIMEOUT,
    DEFAULT_MAX_CONCURRENT_PROBES,
    DEFAULT_PING_TIMEOUT,
)
from .discovery.address_range import parse_cidr
from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:4000/api/v1"

# Environment variable -> config field
ENV_VARS = {
    "INVENTORY_URL": "api_url",
    "INVENTORY_KEY": "api_key",
    "INVENTORY_TENANT": "tenant_id",
    "INVENTORY_INTERVAL": "interval",
    "INVENTORY_SCAN_RANGE": "scan_range",
    "INVENTORY_MAX_PROBES": "max_concurrent_probes",
    "INVENTORY_HOST_TIMEOUT": "host_timeout",
    "INVENTORY_SCAN_TIMEOUT": "scan_timeout",
    "INVENTORY_DNS_TIMEOUT": "dns_timeout",
    "LOG_LEVEL": "log_level",
}

# Names read by earlier agent releases. The INVENTORY_* name wins when
# both are set.
LEGACY_ENV_VARS = {
    "ASSETRONICS_URL": "api_url",
    "ASSETRONICS_KEY": "api_key",
    "ASSETRONICS_TENANT": "tenant_id",
}


class AgentConfig(BaseModel):
    """Inventory agent configuration."""

    # ========================================================================
    # Inventory Service
    # ========================================================================

    api_url: str = Field(
        default=DEFAULT_API_URL,
        description="Inventory service base URL"
    )
    api_key: str = Field(
        default="",
        description="Agent API key, sent as a bearer token"
    )
    tenant_id: str = Field(
        default="",
        description="Tenant ID/slug, sent as X-Tenant-ID"
    )
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        description="HTTP request timeout in seconds"
    )

    # ========================================================================
    # Endpoint Mode
    # ========================================================================

    interval: int = Field(
        default=3600,
        ge=1,
        description="Seconds between check-ins"
    )

    # ========================================================================
    # Scanner Mode
    # ========================================================================

    scan_range: Optional[str] = Field(
        default=None,
        description="CIDR to sweep; when set the agent runs in scanner mode"
    )
    max_concurrent_probes: int = Field(
        default=DEFAULT_MAX_CONCURRENT_PROBES,
        ge=1,
        description="Maximum host probe pipelines in flight"
    )
    connect_timeout: float = Field(
        default=DEFAULT_CONNECT_TIMEOUT,
        gt=0,
        description="TCP connect timeout per port in seconds"
    )
    ping_timeout: float = Field(
        default=DEFAULT_PING_TIMEOUT,
        gt=0,
        description="ICMP echo wait in seconds"
    )
    use_ping: bool = Field(
        default=True,
        description="Try the platform ping before TCP fallback"
    )
    dns_timeout: Optional[float] = Field(
        default=DEFAULT_DNS_TIMEOUT,
        gt=0,
        description="Reverse DNS lookup timeout per host (None = resolver default)"
    )
    host_timeout: Optional[float] = Field(
        default=30.0,
        gt=0,
        description="Deadline for one host's probe pipeline (None = unbounded)"
    )
    scan_timeout: Optional[float] = Field(
        default=None,
        gt=0,
        description="Deadline for a whole sweep (None = unbounded)"
    )

    # ========================================================================
    # Logging
    # ========================================================================

    log_level: str = Field(
        default="INFO",
        description="Agent log level"
    )

    # ========================================================================
    # Validators
    # ========================================================================

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("scan_range", mode="before")
    @classmethod
    def validate_scan_range(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        parse_cidr(v)
        return v.strip()

    @field_validator("host_timeout", "scan_timeout", "dns_timeout", mode="before")
    @classmethod
    def empty_timeout_is_none(cls, v):
        # 0, "" and "none" all mean no deadline
        if isinstance(v, str) and v.strip().lower() in ("", "none", "0"):
            return None
        if isinstance(v, (int, float)) and not isinstance(v, bool) and v == 0:
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        v = v.upper()
        if v not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("log_level must be DEBUG, INFO, WARNING, ERROR or CRITICAL")
        return v

    # ========================================================================
    # Parsed Properties
    # ========================================================================

    @property
    def is_scanner_mode(self) -> bool:
        """Agent sweeps a network range instead of checking in."""
        return self.scan_range is not None

    @property
    def checkin_url(self) -> str:
        return f"{self.api_url}/agent/checkin"

    @property
    def scan_url(self) -> str:
        return f"{self.api_url}/agent/scan"

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    # ========================================================================
    # Loaders
    # ========================================================================

    @classmethod
    def from_values(cls, values: Mapping[str, Any]) -> "AgentConfig":
        """
        Build a validated config from a field mapping.

        Raises:
            ConfigError: If any value is invalid
        """
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AgentConfig":
        """Load configuration from environment variables."""
        return cls.from_values(env_values(environ))

    @classmethod
    def from_yaml(cls, path: Path) -> "AgentConfig":
        """Load configuration from a YAML file."""
        return cls.from_values(yaml_values(path))


def env_values(environ: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    """Collect config values from environment variables that are set."""
    environ = os.environ if environ is None else environ
    values = {}
    for env_vars in (LEGACY_ENV_VARS, ENV_VARS):
        for var, field_name in env_vars.items():
            if var in environ:
                values[field_name] = environ[var]
    return values


def yaml_values(path: Path) -> dict[str, Any]:
    """
    Collect config values from a YAML file.

    Raises:
        ConfigError: If the file is missing or not valid YAML
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {path} is not valid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    values: dict[str, Any] = {}

    if "api" in data:
        a = data["api"] or {}
        for key, field_name in (
            ("url", "api_url"),
            ("key", "api_key"),
            ("tenant", "tenant_id"),
            ("timeout", "request_timeout"),
        ):
            if key in a:
                values[field_name] = a[key]

    if "interval" in data:
        values["interval"] = data["interval"]

    if "scan" in data:
        s = data["scan"] or {}
        for key, field_name in (
            ("range", "scan_range"),
            ("max_probes", "max_concurrent_probes"),
            ("connect_timeout", "connect_timeout"),
            ("ping_timeout", "ping_timeout"),
            ("use_ping", "use_ping"),
            ("host_timeout", "host_timeout"),
            ("dns_timeout", "dns_timeout"),
            ("timeout", "scan_timeout"),
        ):
            if key in s:
                values[field_name] = s[key]

    if "log_level" in data:
        values["log_level"] = data["log_level"]

    return values


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> AgentConfig:
    """
    Load agent configuration.

    Values come from the YAML file when one is given, otherwise from the
    environment. Non-None ``overrides`` (command line flags) win over both.

    Raises:
        ConfigError: If settings are missing or invalid
    """
    if config_path:
        values = yaml_values(config_path)
        logger.debug(f"Loaded config from {config_path}")
    else:
        values = env_values(environ)

    if overrides:
        values.update({k: v for k, v in overrides.items() if v is not None})

    return AgentConfig.from_values(values)


# Example inventory-agent.yaml:
"""
api:
  url: "https://inventory.example.com/api/v1"
  key: "agent-key"
  tenant: "acme"

interval: 3600

scan:
  range: "192.168.1.0/24"
  max_probes: 50
  host_timeout: 30
  dns_timeout: 2
  timeout: 600

log_level: "INFO"
"""
