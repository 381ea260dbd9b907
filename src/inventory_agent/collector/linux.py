"""
Linux host-fact collector.

Hardware facts come from DMI in sysfs and from /proc; software comes
from dpkg on Debian-family systems or rpm on Red Hat-family systems.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from .._types import Software, SystemInfo
from ..errors import CollectionError
from .base import Collector, command_output, leading_int, read_text

logger = logging.getLogger(__name__)

DMI_DIR = Path("/sys/class/dmi/id")
OS_RELEASE = Path("/etc/os-release")
CPUINFO = Path("/proc/cpuinfo")
MEMINFO = Path("/proc/meminfo")

RPM_QUERYFORMAT = "%{NAME}|%{VERSION}|%{VENDOR}|%{INSTALLTIME}\n"


def parse_os_release(text: str) -> str:
    """
    Pick the OS name from /etc/os-release content.

    PRETTY_NAME wins over NAME; "Linux" if neither is present.
    """
    fields = {}
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if sep and key in ("PRETTY_NAME", "NAME"):
            fields[key] = value.strip().strip('"').strip("'")

    return fields.get("PRETTY_NAME") or fields.get("NAME") or "Linux"


def parse_cpuinfo(text: str) -> tuple[str, int]:
    """
    Get CPU model and logical core count from /proc/cpuinfo content.

    Cores are counted as "model name" entries, at least 1.
    """
    model = ""
    cores = 0
    for line in text.splitlines():
        if line.startswith("model name"):
            _, _, value = line.partition(":")
            model = value.strip()
            cores += 1
    return model, max(cores, 1)


def parse_meminfo(text: str) -> int:
    """Get total RAM in whole GiB from /proc/meminfo content."""
    for line in text.splitlines():
        if line.startswith("MemTotal:"):
            parts = line.split()
            if len(parts) >= 2:
                # Reported in kB
                return leading_int(parts[1]) // (1024 * 1024)
    return 0


def parse_dpkg_list(text: str) -> list[Software]:
    """
    Parse `dpkg -l` output.

    Only installed packages ("ii") and held installed packages ("hi")
    are kept.
    """
    packages = []
    for line in text.splitlines():
        if not line.startswith(("ii ", "hi ")):
            continue
        fields = line.split()
        if len(fields) >= 3:
            packages.append(Software(name=fields[1], version=fields[2]))
    return packages


def parse_rpm_query(text: str) -> list[Software]:
    """Parse `rpm -qa` output in NAME|VERSION|VENDOR|INSTALLTIME format."""
    packages = []
    for line in text.splitlines():
        parts = line.split("|")
        if len(parts) < 4:
            continue

        name, version, vendor, install_time = parts[:4]
        install_date = ""
        try:
            install_date = datetime.fromtimestamp(int(install_time)).strftime("%Y-%m-%d")
        except (ValueError, OverflowError, OSError):
            pass

        packages.append(Software(
            name=name,
            version=version,
            vendor=vendor,
            install_date=install_date,
        ))
    return packages


class LinuxCollector(Collector):
    """Collect facts from a Linux host."""

    platform = "linux"
    username_env = "USER"

    async def get_serial_number(self) -> str:
        try:
            return (DMI_DIR / "product_serial").read_text().strip()
        except OSError as e:
            # Usually root-only, and absent in most containers
            raise CollectionError(f"cannot read DMI serial: {e}") from e

    async def get_os_name(self) -> str:
        try:
            text = OS_RELEASE.read_text()
        except OSError:
            return "Linux (Unknown Distro)"
        return parse_os_release(text)

    async def collect_hardware(self, info: SystemInfo) -> None:
        info.make = read_text(DMI_DIR / "sys_vendor")
        info.model = read_text(DMI_DIR / "product_name")

        try:
            info.cpu_model, info.cpu_cores = parse_cpuinfo(CPUINFO.read_text())
        except OSError:
            info.cpu_model, info.cpu_cores = "Unknown", 1

        try:
            info.ram_gb = parse_meminfo(MEMINFO.read_text())
        except OSError:
            info.ram_gb = 0

    async def get_installed_software(self) -> list[Software]:
        output = await command_output(["dpkg", "-l"])
        if output:
            return parse_dpkg_list(output)

        output = await command_output(["rpm", "-qa", "--queryformat", RPM_QUERYFORMAT])
        if output:
            return parse_rpm_query(output)

        logger.warning("Failed to get Linux software inventory: no dpkg or rpm")
        return []
