"""
TCP connect probing.

Used twice per host: as the reachability fallback when ICMP is filtered,
and as the port fingerprint scan once a host is known to be up. A port
counts as open only if the three-way handshake completes within the
timeout; refused and timed-out are not distinguished.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from .._types import DEFAULT_CONNECT_TIMEOUT, FALLBACK_PORTS, FINGERPRINT_PORTS
from .base import ReachabilityProbe

logger = logging.getLogger(__name__)


async def check_port(ip: str, port: int, timeout: float = DEFAULT_CONNECT_TIMEOUT) -> bool:
    """
    Try a TCP connection to ip:port.

    Returns True if the connection was accepted within ``timeout``.
    """
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(ip, port),
            timeout=timeout,
        )
    except (asyncio.TimeoutError, OSError):
        return False

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return True


class TcpProbe(ReachabilityProbe):
    """
    Reachability via TCP connect to commonly-open ports.

    Ports are tried one at a time in order; the first accepted
    connection answers True.
    """

    def __init__(
        self,
        ports: Iterable[int] = FALLBACK_PORTS,
        timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ):
        self.ports = tuple(ports)
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "tcp"

    async def probe(self, ip: str) -> bool:
        for port in self.ports:
            if await check_port(ip, port, self.timeout):
                logger.debug(f"{ip} answered on tcp/{port}")
                return True
        return False


class PortScanner:
    """
    Fingerprint scan of a fixed port list.

    Runs only against hosts already judged reachable. Ports are probed
    sequentially so a single host never holds more than one socket.
    """

    def __init__(
        self,
        ports: Iterable[int] = FINGERPRINT_PORTS,
        timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ):
        self.ports = tuple(dict.fromkeys(ports))
        self.timeout = timeout

    async def scan(self, ip: str, found: Optional[list[int]] = None) -> tuple[int, ...]:
        """
        Scan the port list on one host.

        Args:
            ip: Host to scan
            found: List that open ports are appended to as they are seen,
                so a caller that cancels the scan keeps what was found

        Returns:
            Ports that accepted a connection, in probe order
        """
        open_ports = [] if found is None else found
        for port in self.ports:
            if await check_port(ip, port, self.timeout):
                open_ports.append(port)

        if open_ports:
            logger.debug(f"Open ports on {ip}: {open_ports}")
        return tuple(open_ports)
