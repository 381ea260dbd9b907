"""
Inventory Agent - Asset inventory collection for endpoints and networks.

Endpoint mode reports this machine's hardware, OS and installed software
to the inventory service on a fixed interval. Scanner mode sweeps a CIDR
range, finds live hosts and fingerprints a fixed set of TCP ports on
each.

Discovery pipeline (per address):
    ping (TCP fallback) -> reverse DNS -> port fingerprint -> Device
"""

__version__ = "1.0.0"

from ._types import (
    Device,
    ScanResult,
    Software,
    SystemInfo,
    FINGERPRINT_PORTS,
    FALLBACK_PORTS,
)
from .errors import (
    InventoryAgentError,
    InvalidRange,
    ScanTimeout,
    CollectionError,
    UploadError,
    ConfigError,
)
from .config import AgentConfig, load_config
from .scanner import NetworkScanner, scan_network

__all__ = [
    "__version__",
    "Device",
    "ScanResult",
    "Software",
    "SystemInfo",
    "FINGERPRINT_PORTS",
    "FALLBACK_PORTS",
    "InventoryAgentError",
    "InvalidRange",
    "ScanTimeout",
    "CollectionError",
    "UploadError",
    "ConfigError",
    "AgentConfig",
    "load_config",
    "NetworkScanner",
    "scan_network",
]
