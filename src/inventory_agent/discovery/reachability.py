"""
Two-tier host reachability detection.

ICMP is often dropped by host or network firewalls, while a live host
usually still accepts a TCP connection on at least one common port
(SMB/RPC on Windows, HTTP(S) on appliances, SSH on unix). The detector
therefore asks its probes in order and stops at the first yes.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .._types import DEFAULT_CONNECT_TIMEOUT, DEFAULT_PING_TIMEOUT, FALLBACK_PORTS
from .base import ReachabilityProbe
from .ping import PingProbe
from .tcp import TcpProbe

logger = logging.getLogger(__name__)


class ReachabilityDetector:
    """
    Decide whether a host is present at an address.

    Default strategy order is ping first, then TCP connect to the
    fallback ports. "Unreachable" is a normal answer, never an error.
    """

    def __init__(self, probes: Optional[Sequence[ReachabilityProbe]] = None):
        """
        Initialize detector.

        Args:
            probes: Probes to try in order (default: ping then TCP)
        """
        if probes is None:
            probes = [PingProbe(), TcpProbe()]
        if not probes:
            raise ValueError("ReachabilityDetector needs at least one probe")
        self.probes = list(probes)

    @classmethod
    def default(
        cls,
        ping_timeout: float = DEFAULT_PING_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        use_ping: bool = True,
    ) -> "ReachabilityDetector":
        """Build the standard ping + TCP fallback detector."""
        probes: list[ReachabilityProbe] = []
        if use_ping:
            probes.append(PingProbe(timeout=ping_timeout))
        probes.append(TcpProbe(ports=FALLBACK_PORTS, timeout=connect_timeout))
        return cls(probes)

    async def is_reachable(self, ip: str) -> bool:
        for probe in self.probes:
            if await probe.probe(ip):
                logger.debug(f"{ip} is up ({probe.name})")
                return True
        return False
