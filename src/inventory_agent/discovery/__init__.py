"""
Network discovery building blocks.

- Address range expansion (CIDR -> candidate addresses)
- Reachability probes: ping, TCP connect fallback
- Port fingerprint scanning
- Reverse DNS hostname resolution
"""

from .base import ReachabilityProbe
from .address_range import candidate_count, expand_range, iter_candidates, parse_cidr
from .ping import PingProbe, build_ping_command
from .tcp import PortScanner, TcpProbe, check_port
from .reachability import ReachabilityDetector
from .hostname import HostnameResolver

__all__ = [
    "ReachabilityProbe",
    "candidate_count",
    "expand_range",
    "iter_candidates",
    "parse_cidr",
    "PingProbe",
    "build_ping_command",
    "PortScanner",
    "TcpProbe",
    "check_port",
    "ReachabilityDetector",
    "HostnameResolver",
]
