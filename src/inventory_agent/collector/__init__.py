"""
Host-fact collection for endpoint check-ins.

Collectors:
- LinuxCollector: DMI, /proc, dpkg/rpm
- DarwinCollector: ioreg, sysctl, system_profiler
- WindowsCollector: wmic
"""

import sys
from typing import Optional

from ..errors import CollectionError
from .base import Collector, command_output, run_command
from .darwin import DarwinCollector
from .linux import LinuxCollector
from .network import get_network_info
from .windows import WindowsCollector


def get_collector(platform: Optional[str] = None) -> Collector:
    """
    Get the collector for a platform.

    Args:
        platform: sys.platform value (defaults to the running platform)

    Raises:
        CollectionError: If the platform is not supported
    """
    platform = platform or sys.platform

    if platform.startswith("linux"):
        return LinuxCollector()
    if platform == "darwin":
        return DarwinCollector()
    if platform.startswith("win"):
        return WindowsCollector()

    raise CollectionError(f"Unsupported platform: {platform}")


__all__ = [
    "Collector",
    "command_output",
    "run_command",
    "get_collector",
    "get_network_info",
    "LinuxCollector",
    "DarwinCollector",
    "WindowsCollector",
]
