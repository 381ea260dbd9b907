"""
Base collector and shared helpers.

A collector gathers facts about the machine the agent runs on. The
steps common to every platform live here; platform subclasses supply
serial number, OS name, hardware details and the software list.
"""

from __future__ import annotations

import asyncio
import getpass
import logging
import os
import re
import shutil
import socket
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .._types import Software, SystemInfo
from ..errors import CollectionError
from .network import get_network_info

logger = logging.getLogger(__name__)

GIB = 1024 * 1024 * 1024

# Default timeout for external commands, in seconds
COMMAND_TIMEOUT = 30

UNKNOWN_SERIAL = "UNKNOWN"


async def run_command(cmd: list[str], timeout: Optional[float] = COMMAND_TIMEOUT) -> str:
    """
    Run a command asynchronously and return its stdout.

    Args:
        cmd: Command and arguments as list
        timeout: Timeout in seconds (None = no timeout)

    Raises:
        OSError: If the command cannot be started
        subprocess.CalledProcessError: If the command exits non-zero
        asyncio.TimeoutError: If timeout exceeded
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE
    )

    try:
        if timeout:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=timeout
            )
        else:
            stdout, stderr = await process.communicate()
    except asyncio.TimeoutError:
        # Kill process on timeout
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    output = stdout.decode('utf-8', errors='replace') if stdout else ''

    if process.returncode != 0:
        raise subprocess.CalledProcessError(
            process.returncode,
            cmd,
            output=output,
            stderr=stderr.decode('utf-8', errors='replace') if stderr else ''
        )

    return output


async def command_output(cmd: list[str], timeout: Optional[float] = COMMAND_TIMEOUT) -> str:
    """
    Run a command and return its stdout, or "" if it failed.

    Failures are logged at WARNING; collection carries on with an empty
    value.
    """
    try:
        return await run_command(cmd, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(f"Command {cmd[0]} timed out after {timeout}s")
        return ""
    except subprocess.CalledProcessError as e:
        logger.warning(f"Command {cmd[0]} failed with exit code {e.returncode}")
        return ""
    except OSError as e:
        logger.warning(f"Could not run {cmd[0]}: {e}")
        return ""


def read_text(path: Path) -> str:
    """Read and strip a small text file, "" if unreadable."""
    try:
        return Path(path).read_text(errors="replace").strip()
    except OSError:
        return ""


def leading_int(value: str) -> int:
    """Parse the integer at the start of a string, 0 if there is none."""
    match = re.match(r"\s*(-?\d+)", value or "")
    return int(match.group(1)) if match else 0


def get_hostname() -> str:
    """
    Get the local hostname.

    Raises:
        CollectionError: If the hostname cannot be determined
    """
    try:
        hostname = socket.gethostname()
    except OSError as e:
        raise CollectionError(f"failed to get hostname: {e}") from e

    if not hostname:
        raise CollectionError("failed to get hostname: empty name")
    return hostname


def get_username(env_var: str = "USER") -> str:
    """Get the current user, falling back to an environment variable."""
    try:
        return getpass.getuser()
    except (OSError, KeyError, ImportError):
        return os.environ.get(env_var, "")


def get_disk_usage_gb(path: str) -> tuple[int, int]:
    """
    Get total and free space of the volume holding ``path``.

    Returns:
        (total_gb, free_gb), both (0, 0) if the volume cannot be read
    """
    try:
        usage = shutil.disk_usage(path)
    except OSError as e:
        logger.warning(f"Failed to read disk usage for {path}: {e}")
        return 0, 0
    return usage.total // GIB, usage.free // GIB


class Collector(ABC):
    """
    Base class for host-fact collectors.

    ``collect()`` fails only if the hostname is unavailable. Every other
    fact degrades to an empty value (or "UNKNOWN" for the serial number)
    when it cannot be read.
    """

    # Platform name reported to the inventory service
    platform: str = ""

    # Environment variable holding the user name if the lookup fails
    username_env: str = "USER"

    # Volume whose capacity is reported
    disk_path: str = "/"

    async def collect(self) -> SystemInfo:
        """
        Collect facts about this machine.

        Raises:
            CollectionError: If the hostname cannot be determined
        """
        info = SystemInfo(hostname=get_hostname(), platform=self.platform)
        info.username = get_username(self.username_env)

        try:
            info.serial_number = await self.get_serial_number() or UNKNOWN_SERIAL
        except CollectionError as e:
            logger.warning(f"Failed to get serial number: {e}")
            info.serial_number = UNKNOWN_SERIAL

        info.os = await self.get_os_name()
        info.ip_address, info.mac_address = get_network_info()

        await self.collect_hardware(info)
        info.disk_total_gb, info.disk_free_gb = await self.get_disk_usage()

        info.installed_software = await self.get_installed_software()

        logger.info(
            f"Collected facts for {info.hostname}: {info.os}, "
            f"{len(info.installed_software)} software packages"
        )
        return info

    @abstractmethod
    async def get_serial_number(self) -> str:
        """
        Read the hardware serial number.

        Raises:
            CollectionError: If no serial number is available
        """
        pass

    @abstractmethod
    async def get_os_name(self) -> str:
        """Human-readable OS name and version."""
        pass

    @abstractmethod
    async def collect_hardware(self, info: SystemInfo) -> None:
        """Fill in make, model, CPU and RAM fields."""
        pass

    @abstractmethod
    async def get_installed_software(self) -> list[Software]:
        """List installed software, [] if it cannot be listed."""
        pass

    async def get_disk_usage(self) -> tuple[int, int]:
        return get_disk_usage_gb(self.disk_path)
