"""
macOS host-fact collector.
"""

from __future__ import annotations

import json
import logging
from pathlib import PurePosixPath

from .._types import Software, SystemInfo
from ..errors import CollectionError
from .base import GIB, Collector, command_output, leading_int

logger = logging.getLogger(__name__)

# system_profiler walks every application bundle and can be slow
SYSTEM_PROFILER_TIMEOUT = 120


def parse_ioreg_serial(text: str) -> str:
    """Extract IOPlatformSerialNumber from `ioreg` output, "" if absent."""
    for line in text.splitlines():
        if "IOPlatformSerialNumber" in line:
            _, sep, value = line.partition("=")
            if sep:
                return value.strip().strip('"')
    return ""


def parse_system_profiler(text: str) -> list[Software]:
    """
    Parse `system_profiler SPApplicationsDataType -json` output.

    The display name comes from ``_name``, then ``info``, then the
    bundle file name without ".app".

    Raises:
        ValueError: If the output is not valid JSON
    """
    data = json.loads(text)
    apps = data.get("SPApplicationsDataType") or []

    software = []
    for app in apps:
        name = app.get("_name") or app.get("info") or ""
        path = app.get("path") or app.get("_path")
        if not name and path:
            name = PurePosixPath(path).name.removesuffix(".app")
        if not name:
            continue
        software.append(Software(name=name, version=app.get("version", "")))
    return software


class DarwinCollector(Collector):
    """Collect facts from a macOS host."""

    platform = "darwin"
    username_env = "USER"

    async def get_serial_number(self) -> str:
        output = await command_output(["ioreg", "-c", "IOPlatformExpertDevice", "-d", "2"])
        serial = parse_ioreg_serial(output)
        if not serial:
            raise CollectionError("serial number not found in ioreg output")
        return serial

    async def get_os_name(self) -> str:
        version = (await command_output(["sw_vers", "-productVersion"])).strip()
        if not version:
            return "macOS (Unknown Version)"
        return f"macOS {version}"

    async def collect_hardware(self, info: SystemInfo) -> None:
        info.make = "Apple"
        info.model = await self._sysctl("hw.model")
        info.cpu_model = await self._sysctl("machdep.cpu.brand_string")
        info.cpu_cores = leading_int(await self._sysctl("hw.ncpu"))
        info.ram_gb = leading_int(await self._sysctl("hw.memsize")) // GIB

    async def get_installed_software(self) -> list[Software]:
        output = await command_output(
            ["system_profiler", "SPApplicationsDataType", "-json"],
            timeout=SYSTEM_PROFILER_TIMEOUT,
        )
        if not output:
            return []

        try:
            return parse_system_profiler(output)
        except (ValueError, AttributeError) as e:
            logger.warning(f"Failed to parse macOS software JSON: {e}")
            return []

    async def _sysctl(self, key: str) -> str:
        return (await command_output(["sysctl", "-n", key])).strip()
