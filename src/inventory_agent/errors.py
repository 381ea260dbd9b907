"""
Exceptions raised by the inventory agent.

Per-host probe failures are not errors: an unreachable host, a missing
PTR record or a closed port simply shrink the scan result. Only the
conditions below reach callers.
"""

from typing import Optional


class InventoryAgentError(Exception):
    """Base exception for inventory agent errors."""
    pass


class InvalidRange(InventoryAgentError, ValueError):
    """The address range is not a valid CIDR."""

    def __init__(self, cidr: str, reason: str = ""):
        self.cidr = cidr
        message = f"invalid CIDR: {cidr!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ScanTimeout(InventoryAgentError):
    """A sweep ran past its configured deadline."""

    def __init__(self, cidr: str, timeout: float):
        self.cidr = cidr
        self.timeout = timeout
        super().__init__(f"scan of {cidr} did not finish within {timeout:g}s")


class CollectionError(InventoryAgentError):
    """Host facts could not be collected."""
    pass


class UploadError(InventoryAgentError):
    """Delivery to the inventory service failed."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class ConfigError(InventoryAgentError):
    """Agent configuration is missing or invalid."""
    pass
