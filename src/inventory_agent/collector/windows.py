"""
Windows host-fact collector.

All facts are read through wmic, which ships with every supported
Windows release and needs no extra modules.
"""

from __future__ import annotations

import csv
import logging

from .._types import Software, SystemInfo
from ..errors import CollectionError
from .base import GIB, Collector, command_output, leading_int

logger = logging.getLogger(__name__)

# wmic product enumerates MSI packages and is notoriously slow
WMIC_PRODUCT_TIMEOUT = 300


def parse_wmic_value(text: str, prop: str) -> str:
    """
    Get the first value from `wmic <alias> get <prop>` output.

    The header line is skipped by matching the property name.
    """
    for line in text.splitlines():
        value = line.strip()
        if value and prop.lower() not in value.lower():
            return value
    return ""


def parse_wmic_disk(text: str) -> tuple[int, int]:
    """
    Parse `wmic logicaldisk ... get Size,FreeSpace` output.

    wmic orders columns alphabetically, so FreeSpace comes first.

    Returns:
        (total_gb, free_gb)
    """
    for line in text.splitlines():
        if not line.strip() or "FreeSpace" in line:
            continue
        parts = line.split()
        if len(parts) >= 2:
            free, size = leading_int(parts[0]), leading_int(parts[1])
            return size // GIB, free // GIB
    return 0, 0


def parse_wmic_software_csv(text: str) -> list[Software]:
    """
    Parse `wmic product get Name,Version,Vendor,InstallDate /format:csv`.

    Columns are located by header name; rows without a name are skipped.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    rows = list(csv.reader(lines))
    if len(rows) < 2:
        return []

    header = [col.strip() for col in rows[0]]
    if "Name" not in header:
        return []
    columns = {col: header.index(col) for col in ("Name", "Version", "Vendor", "InstallDate") if col in header}

    def cell(row: list[str], col: str) -> str:
        idx = columns.get(col)
        if idx is None or idx >= len(row):
            return ""
        return row[idx].strip()

    software = []
    for row in rows[1:]:
        name = cell(row, "Name")
        if not name:
            continue
        software.append(Software(
            name=name,
            version=cell(row, "Version"),
            vendor=cell(row, "Vendor"),
            install_date=cell(row, "InstallDate"),
        ))
    return software


class WindowsCollector(Collector):
    """Collect facts from a Windows host."""

    platform = "windows"
    username_env = "USERNAME"
    disk_path = "C:\\"

    async def get_serial_number(self) -> str:
        serial = await self._wmic("bios", "serialnumber")
        if not serial:
            raise CollectionError("serial number not found")
        return serial

    async def get_os_name(self) -> str:
        output = await command_output(["wmic", "os", "get", "Caption"])
        if not output:
            return "Windows (Unknown Version)"
        return parse_wmic_value(output, "Caption") or "Windows"

    async def collect_hardware(self, info: SystemInfo) -> None:
        info.make = await self._wmic("csproduct", "vendor")
        info.model = await self._wmic("csproduct", "name")
        info.cpu_model = await self._wmic("cpu", "name")
        info.cpu_cores = leading_int(await self._wmic("cpu", "NumberOfCores"))
        info.ram_gb = leading_int(await self._wmic("computersystem", "TotalPhysicalMemory")) // GIB

    async def get_disk_usage(self) -> tuple[int, int]:
        output = await command_output(
            ["wmic", "logicaldisk", "where", "DeviceID='C:'", "get", "Size,FreeSpace"]
        )
        return parse_wmic_disk(output)

    async def get_installed_software(self) -> list[Software]:
        output = await command_output(
            ["wmic", "product", "get", "Name,Version,Vendor,InstallDate", "/format:csv"],
            timeout=WMIC_PRODUCT_TIMEOUT,
        )
        if not output:
            return []

        try:
            return parse_wmic_software_csv(output)
        except csv.Error as e:
            logger.warning(f"Failed to parse Windows software CSV: {e}")
            return []

    async def _wmic(self, alias: str, prop: str) -> str:
        output = await command_output(["wmic", alias, "get", prop])
        return parse_wmic_value(output, prop)
