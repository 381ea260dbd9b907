"""
ICMP echo probe using the platform ping utility.

Shelling out avoids needing raw-socket privileges. The command line
differs per platform because the wait flag has different units:
Linux -W takes seconds, BSD/macOS uses -t (seconds), Windows -w takes
milliseconds. Windows waits half the timeout, so the 1 s default gives the
usual `-w 500`.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import sys
from typing import Optional

from .._types import DEFAULT_PING_TIMEOUT
from .base import ReachabilityProbe

logger = logging.getLogger(__name__)

# Extra time given to the ping process beyond its own wait before it is
# killed. Covers process startup and DNS-free address parsing.
KILL_GRACE_SECONDS = 1.0

# Share of the timeout given to the Windows reply wait
WINDOWS_WAIT_FRACTION = 0.5


def build_ping_command(
    ip: str,
    platform: Optional[str] = None,
    timeout: float = DEFAULT_PING_TIMEOUT,
) -> list[str]:
    """
    Build a single-echo ping command for the given platform.

    Args:
        ip: Address to ping
        platform: sys.platform value (defaults to the running platform)
        timeout: Reply wait in seconds

    Returns:
        argv list for the ping utility
    """
    platform = platform or sys.platform
    wait_seconds = max(1, int(round(timeout)))

    if platform.startswith("win"):
        wait_ms = max(1, int(timeout * WINDOWS_WAIT_FRACTION * 1000))
        return ["ping", "-n", "1", "-w", str(wait_ms), ip]
    if platform == "darwin" or "bsd" in platform:
        return ["ping", "-c", "1", "-t", str(wait_seconds), ip]
    return ["ping", "-c", "1", "-W", str(wait_seconds), ip]


class PingProbe(ReachabilityProbe):
    """
    Reachability via one ICMP echo request.

    A zero exit status is authoritative: the host replied. Anything else
    (no reply, ping missing, process hung and killed) is a miss.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_PING_TIMEOUT,
        platform: Optional[str] = None,
    ):
        """
        Initialize ping probe.

        Args:
            timeout: Seconds to wait for the echo reply
            platform: Override sys.platform (for tests)
        """
        self.timeout = timeout
        self.platform = platform or sys.platform

    @property
    def name(self) -> str:
        return "ping"

    async def is_available(self) -> bool:
        """Check if a ping utility is on PATH."""
        return shutil.which("ping") is not None

    async def probe(self, ip: str) -> bool:
        cmd = build_ping_command(ip, self.platform, self.timeout)

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except (FileNotFoundError, PermissionError, OSError) as e:
            logger.debug(f"Could not start ping for {ip}: {e}")
            return False

        try:
            returncode = await asyncio.wait_for(
                proc.wait(),
                timeout=self.timeout + KILL_GRACE_SECONDS,
            )
        except asyncio.TimeoutError:
            logger.debug(f"Ping to {ip} hung, killing pid {proc.pid}")
            await self._kill(proc)
            return False
        except asyncio.CancelledError:
            await self._kill(proc)
            raise

        return returncode == 0

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process) -> None:
        """Kill a ping process and reap it."""
        if proc.returncode is not None:
            return
        try:
            proc.kill()
        except ProcessLookupError:
            return
        await proc.wait()
