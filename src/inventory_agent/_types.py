"""
Type definitions for the inventory agent.

These dataclasses define the records the agent produces: devices found
by a network sweep, the sweep result itself, and the host facts sent
on check-in. Field names in ``to_dict()`` are the wire format expected
by the inventory service and must not change.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


# Ports probed on every reachable host to tell printers, servers and
# workstations apart. Order is the probe order and the report order.
FINGERPRINT_PORTS: tuple[int, ...] = (
    21,    # FTP
    22,    # SSH
    23,    # Telnet
    80,    # HTTP
    443,   # HTTPS
    445,   # SMB
    3389,  # RDP
    8080,  # HTTP alt
    9100,  # Raw printing (JetDirect)
)

# TCP ports tried when ICMP gets no answer. Windows hosts almost always
# expose 135/445, appliances usually 80/443, unix hosts 22.
FALLBACK_PORTS: tuple[int, ...] = (80, 443, 135, 445, 22)

STATUS_ONLINE = "online"

DEFAULT_MAX_CONCURRENT_PROBES = 50
DEFAULT_CONNECT_TIMEOUT = 0.5
DEFAULT_PING_TIMEOUT = 1.0
DEFAULT_DNS_TIMEOUT = 2.0


@dataclass(frozen=True)
class Device:
    """
    A host found reachable during a network sweep.

    ``mac`` and ``vendor`` are reserved and stay empty: the scanner has
    no ARP table access. ``status`` is always "online" because records
    are only created for reachable hosts.
    """
    ip: str
    hostname: str = ""
    mac: str = ""
    ports: tuple[int, ...] = ()
    vendor: str = ""
    status: str = STATUS_ONLINE

    def to_dict(self) -> dict[str, Any]:
        return {
            "ip": self.ip,
            "hostname": self.hostname,
            "mac": self.mac,
            "open_ports": list(self.ports),
            "vendor": self.vendor,
            "status": self.status,
        }


@dataclass(frozen=True)
class ScanResult:
    """Result of one sweep over a CIDR range."""
    range: str
    devices: tuple[Device, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "range": self.range,
            "devices": [d.to_dict() for d in self.devices],
        }


@dataclass
class Software:
    """An installed software package."""
    name: str
    version: str = ""
    vendor: str = ""
    install_date: str = ""

    def to_dict(self) -> dict[str, str]:
        # Optional fields are left out when empty
        data = {"name": self.name}
        if self.version:
            data["version"] = self.version
        if self.vendor:
            data["vendor"] = self.vendor
        if self.install_date:
            data["install_date"] = self.install_date
        return data


@dataclass
class SystemInfo:
    """Facts about the local host, sent to the service on check-in."""
    hostname: str
    username: str = ""
    serial_number: str = ""
    os: str = ""
    platform: str = ""
    ip_address: str = ""
    mac_address: str = ""
    make: str = ""
    model: str = ""
    cpu_model: str = ""
    cpu_cores: int = 0
    ram_gb: int = 0
    disk_total_gb: int = 0
    disk_free_gb: int = 0
    installed_software: list[Software] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hostname": self.hostname,
            "username": self.username,
            "serial_number": self.serial_number,
            "os": self.os,
            "platform": self.platform,
            "ip_address": self.ip_address,
            "mac_address": self.mac_address,
            "make": self.make,
            "model": self.model,
            "cpu_model": self.cpu_model,
            "cpu_cores": self.cpu_cores,
            "ram_gb": self.ram_gb,
            "disk_total_gb": self.disk_total_gb,
            "disk_free_gb": self.disk_free_gb,
            "installed_software": [s.to_dict() for s in self.installed_software],
        }
