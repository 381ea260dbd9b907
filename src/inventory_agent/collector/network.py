"""
Primary network identity of the local host.
"""

from __future__ import annotations

import ipaddress
import logging
import socket
import sys
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

SYS_CLASS_NET = Path("/sys/class/net")

# Any routable address works: connect() on a UDP socket only picks the
# outgoing interface, nothing is sent.
_ROUTE_PROBE_ADDR = ("192.0.2.1", 9)

_NULL_MAC = "00:00:00:00:00:00"


def get_primary_ipv4() -> str:
    """
    Get the IPv4 address of the interface that carries the default route.

    Returns "" when the host has no usable IPv4 address.
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(_ROUTE_PROBE_ADDR)
            ip = s.getsockname()[0]
    except OSError:
        ip = ""

    if not _is_usable(ip):
        try:
            ip = socket.gethostbyname(socket.gethostname())
        except OSError:
            return ""

    return ip if _is_usable(ip) else ""


def _is_usable(ip: str) -> bool:
    try:
        addr = ipaddress.IPv4Address(ip)
    except ValueError:
        return False
    return not (addr.is_loopback or addr.is_unspecified)


def format_mac(node: int) -> str:
    """Format a 48-bit hardware address as aa:bb:cc:dd:ee:ff."""
    return ":".join(f"{(node >> shift) & 0xff:02x}" for shift in range(40, -1, -8))


def _sysfs_mac(net_dir: Path = SYS_CLASS_NET) -> str:
    """First hardware address of an up, non-loopback interface (Linux)."""
    try:
        interfaces = sorted(net_dir.iterdir())
    except OSError:
        return ""

    for iface in interfaces:
        if iface.name == "lo":
            continue
        try:
            state = (iface / "operstate").read_text().strip()
            mac = (iface / "address").read_text().strip().lower()
        except OSError:
            continue
        if state == "up" and mac and mac != _NULL_MAC:
            return mac
    return ""


def get_primary_mac() -> str:
    """
    Get the hardware address of the primary interface.

    Returns "" when no real hardware address can be found.
    """
    if sys.platform.startswith("linux"):
        mac = _sysfs_mac()
        if mac:
            return mac

    node = uuid.getnode()
    # uuid falls back to a random node with the multicast bit set
    if node >> 40 & 0x01:
        return ""
    return format_mac(node)


def get_network_info() -> tuple[str, str]:
    """
    Get the primary IPv4 address and MAC address.

    Returns:
        (ip, mac); both "" if there is no active network interface
    """
    ip = get_primary_ipv4()
    if not ip:
        logger.warning("No active network interface found")
        return "", ""
    return ip, get_primary_mac()
